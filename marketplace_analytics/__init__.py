"""
Marketplace Analytics - Reporting Aggregation Engine

This package turns committed marketplace records (bookings, listings, users,
reviews and reward ledger entries) into admin dashboard metrics and report
datasets, with proper separation of concerns across models, repositories and
services.
"""

__version__ = "1.0.0"
__author__ = "Marketplace Analytics Team"
