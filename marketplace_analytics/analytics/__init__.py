"""
pandas helpers for time-series style aggregations.
"""
