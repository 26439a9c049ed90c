"""
Reporting Service
Serializes report datasets for download. Rendering (PDF, charts) happens
outside the engine; exporters only turn a payload into bytes.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List

import pandas as pd

from ..models.analytics import ReportPayload
from ..utils.secure_logging import get_structured_logger

logger = get_structured_logger().get_logger(__name__)


class ReportFormat:
    """Report format constants"""
    CSV = "csv"
    JSON = "json"


class ReportExporter(ABC):
    """Turns a report payload into a downloadable document."""

    format: str = ""
    content_type: str = "application/octet-stream"

    @abstractmethod
    def export(self, payload: ReportPayload) -> bytes:
        """Serialize the payload."""

    def filename(self, payload: ReportPayload) -> str:
        window = payload.window
        return (
            f"{payload.report_type.value}_report_"
            f"{window.start.strftime('%Y%m%d')}_{window.end.strftime('%Y%m%d')}.{self.format}"
        )


class JSONReportExporter(ReportExporter):
    format = ReportFormat.JSON
    content_type = "application/json"

    def __init__(self, indent: int = 2):
        self.indent = indent

    def export(self, payload: ReportPayload) -> bytes:
        data = payload.to_dict()
        logger.debug("Exporting report", operation="export_report", format=self.format,
                     report_type=data["report_type"])
        return json.dumps(data, indent=self.indent, default=str).encode("utf-8")


class CSVReportExporter(ReportExporter):
    """Single-row CSV; nested sections become prefixed columns."""

    format = ReportFormat.CSV
    content_type = "text/csv"

    def export(self, payload: ReportPayload) -> bytes:
        data = payload.to_dict()
        logger.debug("Exporting report", operation="export_report", format=self.format,
                     report_type=data["report_type"])
        frame = pd.DataFrame(self._flatten_for_csv(data))
        return frame.to_csv(index=False).encode("utf-8")

    @staticmethod
    def _flatten_for_csv(data: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Flatten nested report data for CSV export."""

        def flatten_dict(d, parent_key="", sep="_"):
            items = []
            for k, v in d.items():
                new_key = f"{parent_key}{sep}{k}" if parent_key else k
                if isinstance(v, dict):
                    items.extend(flatten_dict(v, new_key, sep=sep).items())
                elif isinstance(v, list) and v and isinstance(v[0], dict):
                    # rankings: one column group per position
                    for i, item in enumerate(v, start=1):
                        items.extend(flatten_dict(item, f"{new_key}_{i}", sep=sep).items())
                elif isinstance(v, list):
                    items.append((new_key, len(v)))
                else:
                    items.append((new_key, v))
            return dict(items)

        return [flatten_dict(data)]


EXPORTERS = {
    ReportFormat.JSON: JSONReportExporter,
    ReportFormat.CSV: CSVReportExporter,
}


def get_exporter(format_type: str) -> ReportExporter:
    """Exporter for a format name; raises ValueError for unknown formats."""
    try:
        return EXPORTERS[format_type.lower()]()
    except KeyError:
        raise ValueError(f"Unsupported report format: {format_type}") from None
