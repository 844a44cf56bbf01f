"""Tests for GenerateWeeklyReport."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from feedback_sync.errors import PersistenceError
from feedback_sync.feedback.schemas import Feedback
from feedback_sync.feedback.store import FeedbackStore, InMemoryFeedbackStore
from feedback_sync.reports.schemas import WeeklyReport
from feedback_sync.reports.service import GenerateWeeklyReport
from feedback_sync.reports.store import FileReportStore, ReportStore

UTC = timezone.utc
# Monday 2024-01-15, previous week is 2024-01-08 .. 2024-01-14
NOW = datetime(2024, 1, 15, 6, 0, 0, tzinfo=UTC)


def _fb(fid: str, score: int, created_at: datetime, urgency: str = "LOW") -> Feedback:
    return Feedback.rehydrate(
        id=fid,
        description=f"feedback {fid}",
        score=score,
        urgency=urgency,
        created_at=created_at,
    )


@pytest.fixture
def report_store():
    store = MagicMock(spec=ReportStore)
    store.save_weekly_report = AsyncMock(return_value="relatorios/relatorio-2024-01-15.json")
    store.get_location_url.return_value = "https://reports.example.com/relatorios/relatorio-2024-01-15.json"
    return store


async def _seeded_store() -> InMemoryFeedbackStore:
    store = InMemoryFeedbackStore()
    for fb in (
        _fb("a", 5, datetime(2024, 1, 8, 9, 0, tzinfo=UTC), "HIGH"),
        _fb("b", 7, datetime(2024, 1, 8, 17, 0, tzinfo=UTC)),
        _fb("c", 9, datetime(2024, 1, 10, 12, 0, tzinfo=UTC), "medium"),
        # Outside the window on both sides
        _fb("old", 0, datetime(2024, 1, 7, 23, 59, 59, tzinfo=UTC)),
        _fb("new", 0, datetime(2024, 1, 15, 0, 0, 0, tzinfo=UTC)),
    ):
        await store.save(fb)
    return store


def _service(feedback_store, report_store) -> GenerateWeeklyReport:
    return GenerateWeeklyReport(feedback_store, report_store, clock=lambda: NOW, tz=UTC)


class TestGenerateWeeklyReport:
    """Tests for a week with feedback."""

    @pytest.mark.asyncio
    async def test_aggregates(self, report_store):
        report = await _service(await _seeded_store(), report_store).execute()

        assert report.period_start == datetime(2024, 1, 8, 0, 0, 0, tzinfo=UTC)
        assert report.period_end == datetime(2024, 1, 14, 23, 59, 59, tzinfo=UTC)
        assert report.total_count == 3
        assert report.average_score == 7.0
        assert report.counts_by_day == {"2024-01-08": 2, "2024-01-10": 1}
        assert report.counts_by_urgency == {"LOW": 1, "MEDIUM": 1, "HIGH": 1}
        assert report.generated_at == NOW
        assert report.storage_location == (
            "https://reports.example.com/relatorios/relatorio-2024-01-15.json"
        )

    @pytest.mark.asyncio
    async def test_stored_document(self, report_store):
        await _service(await _seeded_store(), report_store).execute()

        report_store.save_weekly_report.assert_awaited_once()
        document = report_store.save_weekly_report.await_args.args[0]
        assert document["periodo_inicio"] == "2024-01-08T00:00:00+00:00"
        assert document["periodo_fim"] == "2024-01-14T23:59:59+00:00"
        assert document["total_avaliacoes"] == 3
        assert document["media_avaliacoes"] == 7.0
        assert document["data_geracao"] == NOW.isoformat()
        # Newest first, as returned by the store
        assert [f["nota"] for f in document["feedbacks"]] == [9, 7, 5]
        assert document["feedbacks"][0] == {
            "descricao": "feedback c",
            "nota": 9,
            "urgencia": "MEDIUM",
            "data_envio": "2024-01-10T12:00:00+00:00",
        }
        report_store.get_location_url.assert_called_once_with(
            "relatorios/relatorio-2024-01-15.json"
        )

    @pytest.mark.asyncio
    async def test_to_response(self, report_store):
        report = await _service(await _seeded_store(), report_store).execute()
        response = report.to_response()

        assert response["total_avaliacoes"] == 3
        assert response["media_avaliacoes"] == 7.0
        assert response["report_url"] == report.storage_location
        assert "feedbacks" not in response

    @pytest.mark.asyncio
    async def test_reference_zone(self, report_store):
        store = InMemoryFeedbackStore()
        await store.save(_fb("x", 4, datetime(2024, 1, 10, 12, 0, tzinfo=UTC)))
        brt = timezone(timedelta(hours=-3))
        service = GenerateWeeklyReport(store, report_store, clock=lambda: NOW, tz=brt)

        report = await service.execute()
        assert report.period_start.tzinfo is brt

    @pytest.mark.asyncio
    async def test_end_to_end_with_file_store(self, tmp_path):
        report = await _service(await _seeded_store(), FileReportStore(storage_dir=tmp_path)).execute()

        assert (tmp_path / "relatorios" / "relatorio-2024-01-15.json").exists()
        assert report.storage_location.startswith("file://")


class TestEmptyWeek:
    """A week without feedback stores nothing."""

    @pytest.mark.asyncio
    async def test_empty_report(self, report_store):
        report = await _service(InMemoryFeedbackStore(), report_store).execute()

        assert isinstance(report, WeeklyReport)
        assert report.is_empty
        assert report.total_count == 0
        assert report.average_score == 0.0
        assert report.counts_by_day == {}
        assert report.counts_by_urgency == {}
        assert report.storage_location is None
        report_store.save_weekly_report.assert_not_awaited()
        report_store.get_location_url.assert_not_called()


class TestFailures:
    """Store failures surface as PersistenceError."""

    @pytest.mark.asyncio
    async def test_query_failure(self, report_store):
        failing = AsyncMock(spec=FeedbackStore)
        failing.find_by_period.side_effect = PersistenceError("db down")

        with pytest.raises(PersistenceError, match="db down"):
            await _service(failing, report_store).execute()
        report_store.save_weekly_report.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_query_error_wrapped(self, report_store):
        failing = AsyncMock(spec=FeedbackStore)
        failing.find_by_period.side_effect = TimeoutError("slow query")

        with pytest.raises(PersistenceError, match="slow query"):
            await _service(failing, report_store).execute()

    @pytest.mark.asyncio
    async def test_write_failure(self, report_store):
        report_store.save_weekly_report.side_effect = PersistenceError("bucket gone")

        with pytest.raises(PersistenceError, match="bucket gone"):
            await _service(await _seeded_store(), report_store).execute()

    @pytest.mark.asyncio
    async def test_unexpected_write_error_wrapped(self, report_store):
        report_store.save_weekly_report.side_effect = OSError("disk full")

        with pytest.raises(PersistenceError, match="disk full"):
            await _service(await _seeded_store(), report_store).execute()
