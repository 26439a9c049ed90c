"""
Dependency Injection Container

Wires settings, the record repository and the analytics services together.
"""

from typing import Any, Dict, Optional

from .config.settings import Settings
from .repositories.base import RecordRepository
from .repositories.sqlite_repository import DatabaseConnection, SQLiteRecordRepository
from .services.analytics_service import AnalyticsService
from .services.enrichment import BookingCountEnricher, EnrichmentStrategy
from .services.metrics_aggregator import MetricsAggregator
from .services.ranking_engine import RankingEngine
from .services.report_data_builder import ReportDataBuilder
from .services.reporting_service import ReportExporter, get_exporter
from .utils.secure_logging import setup_application_logging


class Container:
    """Dependency injection container for managing application services."""

    def __init__(self):
        self._singletons: Dict[str, Any] = {}
        self._settings: Optional[Settings] = None
        self._db_connection: Optional[DatabaseConnection] = None
        self._repository: Optional[RecordRepository] = None

    def configure(self, settings: Optional[Settings] = None,
                  repository: Optional[RecordRepository] = None) -> None:
        """Configure the container; an explicit repository replaces the SQLite store."""
        self._settings = settings or Settings()
        self._repository = repository
        setup_application_logging(self._settings.app.log_level, self._settings.app.service_name)

        self._register_services()

    def get_settings(self) -> Settings:
        """Get application settings."""
        if not self._settings:
            self._settings = Settings()
        return self._settings

    def get_db_connection(self) -> DatabaseConnection:
        """Get database connection."""
        if not self._db_connection:
            database = self.get_settings().database
            self._db_connection = DatabaseConnection(database.absolute_path, database.connection_timeout)
            self._db_connection.init_schema()
        return self._db_connection

    def get_repository(self) -> RecordRepository:
        if self._repository is None:
            self._repository = SQLiteRecordRepository(self.get_db_connection())
        return self._repository

    def _register_services(self) -> None:
        """Register service instances."""
        repository = self.get_repository()
        settings = self.get_settings()
        config = settings.analytics

        ranking_engine = RankingEngine(config.low_rating_threshold)
        self._singletons["ranking_engine"] = ranking_engine
        self._singletons["report_data_builder"] = ReportDataBuilder(
            repository, ranking_engine=ranking_engine, ranking_limit=config.report_ranking_limit
        )
        self._singletons["analytics_service"] = AnalyticsService(
            repository,
            settings=settings,
            aggregator=MetricsAggregator(),
            ranking_engine=ranking_engine,
            builder=self._singletons["report_data_builder"],
            enricher=BookingCountEnricher(
                repository,
                strategy=EnrichmentStrategy(config.enrichment_strategy),
                concurrency=config.enrichment_concurrency,
            ),
        )

    def get_analytics_service(self) -> AnalyticsService:
        """Get analytics service instance."""
        if "analytics_service" not in self._singletons:
            self._register_services()
        return self._singletons["analytics_service"]

    def get_report_data_builder(self) -> ReportDataBuilder:
        if "report_data_builder" not in self._singletons:
            self._register_services()
        return self._singletons["report_data_builder"]

    def get_exporter(self, format_type: str) -> ReportExporter:
        return get_exporter(format_type)

    def close(self) -> None:
        """Release the database connection, if one was opened."""
        if self._db_connection:
            self._db_connection.close()
            self._db_connection = None
        self._singletons.clear()


_container: Optional[Container] = None


def get_container() -> Container:
    """Get the global container instance."""
    global _container
    if _container is None:
        _container = Container()
        _container.configure()
    return _container


def configure_container(settings: Optional[Settings] = None,
                        repository: Optional[RecordRepository] = None) -> Container:
    """Configure and return the global container."""
    global _container
    _container = Container()
    _container.configure(settings, repository)
    return _container


def cleanup_container() -> None:
    """Cleanup the global container."""
    global _container
    if _container:
        _container.close()
        _container = None
