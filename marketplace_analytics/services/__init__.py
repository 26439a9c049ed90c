"""
Services package.

Aggregation, ranking and report-building services. Import from the
submodules directly, e.g. ``from marketplace_analytics.services.analytics_service
import AnalyticsService``.
"""
