import asyncio
import threading
import time

import pytest

from lead_intake.core.exceptions import DependencyError
from lead_intake.models.suppression import SuppressionRecord
from lead_intake.services.lead_builder import RequestMetadata, build_lead
from lead_intake.services.optout import record_opt_out
from lead_intake.services.row_store import InMemoryRowStore
from lead_intake.services.suppression import SuppressionChecker, SuppressionIndex

from tests.conftest import make_config


class FailingRowStore(InMemoryRowStore):
    def _get_rows(self, range_name):
        raise OSError("sheets unavailable")


class SlowRowStore(InMemoryRowStore):
    def _get_rows(self, range_name):
        time.sleep(0.3)
        return []


def _lead(config, **fields):
    return build_lead(fields, RequestMetadata(), config)


def _store(*rows):
    return InMemoryRowStore({"OptOuts": [list(r) for r in rows]})


def test_suppression_record_from_short_rows():
    assert SuppressionRecord.from_row([]) == SuppressionRecord()
    rec = SuppressionRecord.from_row(["2025-01-01T00:00:00Z", "A@B.com"])
    assert rec.email == "A@B.com"
    assert rec.phone == ""
    assert rec.notes == ""
    rec = SuppressionRecord.from_row(["t", None, "555", "do_not_sell", "n", "extra"])
    assert rec.email == ""
    assert rec.to_row() == ["t", "", "555", "do_not_sell", "n"]


def test_index_never_matches_empty_values():
    index = SuppressionIndex.from_records(
        [SuppressionRecord(email="", phone=""), SuppressionRecord(email="x@y.com")],
        phone_max_digits=10,
    )
    assert index.size == 2
    assert index.matches("", "") is None
    assert index.matches("x@y.com", "") == "email"


@pytest.mark.asyncio
async def test_email_match_suppresses_even_if_phone_differs(config):
    store = _store(["2025-01-01", "  A@B.COM ", "9998887777"])
    checker = SuppressionChecker(store, config)
    assert await checker.is_suppressed(_lead(config, email="a@b.com", phone="5551234567")) is True


@pytest.mark.asyncio
async def test_phone_match_suppresses_even_if_email_differs(config):
    store = _store(["2025-01-01", "other@example.com", "+1 (555) 123-4567"])
    checker = SuppressionChecker(store, config)
    assert await checker.is_suppressed(_lead(config, email="a@b.com", phone="555.123.4567")) is True


@pytest.mark.asyncio
async def test_empty_fields_do_not_match_each_other(config):
    # Record has no phone, lead has no phone: must not count as a match
    store = _store(["2025-01-01", "someone@example.com", ""], ["2025-01-02"], [])
    checker = SuppressionChecker(store, config)
    assert await checker.is_suppressed(_lead(config, email="a@b.com")) is False


@pytest.mark.asyncio
async def test_no_records_means_not_suppressed(config, store):
    checker = SuppressionChecker(store, config)
    assert await checker.is_suppressed(_lead(config, phone="5551234567")) is False


@pytest.mark.asyncio
async def test_read_failure_raises_dependency_error(config):
    checker = SuppressionChecker(FailingRowStore(), config)
    with pytest.raises(DependencyError) as exc_info:
        await checker.is_suppressed(_lead(config, email="a@b.com"))
    assert exc_info.value.code == "row_store_read_failed"


@pytest.mark.asyncio
async def test_read_timeout_raises_dependency_error(config):
    checker = SuppressionChecker(SlowRowStore(timeout=0.05), config)
    with pytest.raises(DependencyError) as exc_info:
        await checker.is_suppressed(_lead(config, email="a@b.com"))
    assert exc_info.value.code == "row_store_read_timeout"


@pytest.mark.asyncio
async def test_uncached_checker_sees_new_records(config, store):
    checker = SuppressionChecker(store, config)
    lead = _lead(config, email="a@b.com")
    assert await checker.is_suppressed(lead) is False

    await store.append_row("OptOuts!A:E", ["2025-01-01", "a@b.com", ""])
    assert await checker.is_suppressed(lead) is True


@pytest.mark.asyncio
async def test_cached_index_refreshes_after_invalidate(store):
    config = make_config(suppression_cache_seconds=300)
    checker = SuppressionChecker(store, config)
    lead = _lead(config, email="a@b.com")
    assert await checker.is_suppressed(lead) is False

    await store.append_row("OptOuts!A:E", ["2025-01-01", "a@b.com", ""])
    assert await checker.is_suppressed(lead) is False

    checker.invalidate()
    assert await checker.is_suppressed(lead) is True


class PausedReadStore(InMemoryRowStore):
    """Takes its snapshot, then holds the first read open until released."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.read_started = threading.Event()
        self.release = threading.Event()

    def _get_rows(self, range_name):
        rows = super()._get_rows(range_name)
        if not self.release.is_set():
            self.read_started.set()
            self.release.wait(2)
        return rows


@pytest.mark.asyncio
async def test_opt_out_during_cache_refresh_is_not_lost():
    config = make_config(suppression_cache_seconds=300)
    store = PausedReadStore()
    checker = SuppressionChecker(store, config)
    lead = _lead(config, email="a@b.com")

    pending = asyncio.create_task(checker.is_suppressed(lead))
    assert await asyncio.to_thread(store.read_started.wait, 2)

    await record_opt_out({"email": "A@B.com"}, store, config, suppression=checker)
    store.release.set()

    assert await pending is True
    assert await checker.is_suppressed(lead) is True
