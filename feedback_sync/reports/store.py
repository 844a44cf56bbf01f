"""Report storage.

``ReportStore`` is the port the weekly report service writes through.
``FileReportStore`` writes JSON documents under a local (or mounted)
directory and hands out either a public URL or a ``file://`` URI.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any

from feedback_sync.errors import PersistenceError
from feedback_sync.reports.config import ReportConfig

logger = logging.getLogger(__name__)

REPORT_PREFIX = "relatorios"


def weekly_report_key(document: dict[str, Any]) -> str:
    """Storage key for a report, named after its generation date."""
    try:
        generated = datetime.fromisoformat(document["data_geracao"])
    except (KeyError, TypeError, ValueError) as e:
        raise PersistenceError(f"Report document has no valid data_geracao: {e}") from e
    return f"{REPORT_PREFIX}/relatorio-{generated.date().isoformat()}.json"


class ReportStore(ABC):
    """Destination for generated weekly reports."""

    @abstractmethod
    async def save_weekly_report(self, document: dict[str, Any]) -> str:
        """Persist a report document and return its storage key.

        Raises:
            PersistenceError: If the document could not be written.
        """

    @abstractmethod
    def get_location_url(self, key: str) -> str:
        """URL under which a stored report can be retrieved."""


class FileReportStore(ReportStore):
    """Writes reports as UTF-8 JSON files below ``storage_dir``.

    A second report generated on the same day replaces the first.
    """

    def __init__(
        self,
        storage_dir: Path | str | None = None,
        public_base_url: str | None = None,
        config: ReportConfig | None = None,
    ) -> None:
        config = config or ReportConfig()
        self._root = Path(storage_dir or config.storage_dir)
        base_url = public_base_url or config.public_base_url
        self._public_base_url = base_url.rstrip("/") if base_url else None

    async def save_weekly_report(self, document: dict[str, Any]) -> str:
        key = weekly_report_key(document)
        path = self._root / key
        content = json.dumps(document, ensure_ascii=False, indent=2)

        try:
            await asyncio.to_thread(self._write, path, content)
        except OSError as e:
            logger.error("Failed to write report %s: %s", path, e)
            raise PersistenceError(f"Failed to store report {key}: {e}") from e

        logger.info("Report stored at %s", path)
        return key

    @staticmethod
    def _write(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(content, encoding="utf-8")
        tmp.replace(path)

    def get_location_url(self, key: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{key}"
        return (self._root / key).resolve().as_uri()
