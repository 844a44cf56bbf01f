"""Weekly feedback reports.

Components:
- ReportConfig: Pydantic settings for storage and reference zone
- WeeklyReport: Aggregated result with document and response shapes
- ReportStore / FileReportStore: Storage port and filesystem adapter
- GenerateWeeklyReport: Window, query, aggregate, store
"""

from feedback_sync.reports.config import ReportConfig
from feedback_sync.reports.schemas import WeeklyReport
from feedback_sync.reports.service import GenerateWeeklyReport
from feedback_sync.reports.store import FileReportStore, ReportStore

__all__ = [
    "FileReportStore",
    "GenerateWeeklyReport",
    "ReportConfig",
    "ReportStore",
    "WeeklyReport",
]
