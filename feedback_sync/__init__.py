"""feedback-sync: survey feedback ingestion, critical alerts, and weekly reports."""

__version__ = "1.0.0"
