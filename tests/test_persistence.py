import pytest

from lead_intake.core.exceptions import DependencyError
from lead_intake.models.lead import LeadStatus
from lead_intake.services.lead_builder import RequestMetadata, build_lead
from lead_intake.services.persistence import LEAD_COLUMNS, LeadWriter, build_lead_row
from lead_intake.services.row_store import InMemoryRowStore

from tests.conftest import VALID_LEAD

METADATA = RequestMetadata(ip="203.0.113.9", user_agent="Mozilla/5.0")


class FailingRowStore(InMemoryRowStore):
    def _append_row(self, range_name, row):
        raise OSError("quota exceeded")


def test_lead_columns_are_fixed():
    assert LEAD_COLUMNS == (
        "created_at", "ip", "user_agent", "first_name", "last_name", "email",
        "phone", "zip", "vertical", "consent_flag", "consent_text", "source_url", "status",
    )


def test_build_lead_row(config):
    lead = build_lead(VALID_LEAD, METADATA, config, now="2026-01-02T03:04:05.000Z")
    row = build_lead_row(lead, LeadStatus.ACCEPTED)

    assert row == [
        "2026-01-02T03:04:05.000Z",
        "203.0.113.9",
        "Mozilla/5.0",
        "Alice",
        "Smith",
        "a@b.com",
        "5551234567",
        "78701",
        "auto",
        "no",
        "I agree to be contacted.",
        "https://searchnrate.com/auto",
        "accepted",
    ]


def test_build_lead_row_blocked_and_consent(config):
    lead = build_lead({"phone": "5551234567", "consent": True}, RequestMetadata(), config)
    row = build_lead_row(lead, LeadStatus.BLOCKED)
    assert len(row) == len(LEAD_COLUMNS)
    assert row[LEAD_COLUMNS.index("consent_flag")] == "yes"
    assert row[-1] == "blocked"
    assert all(isinstance(v, str) for v in row)


@pytest.mark.asyncio
async def test_writer_appends_to_leads_sheet(config, store):
    writer = LeadWriter(store, config)
    lead = build_lead(VALID_LEAD, METADATA, config)

    await writer.append_lead(lead, LeadStatus.ACCEPTED)
    await writer.append_lead(lead, LeadStatus.BLOCKED)

    rows = store.rows("Leads")
    assert [r[-1] for r in rows] == ["accepted", "blocked"]
    assert store.rows("OptOuts") == []


@pytest.mark.asyncio
async def test_writer_failure_raises_dependency_error(config):
    writer = LeadWriter(FailingRowStore(), config)
    lead = build_lead(VALID_LEAD, METADATA, config)
    with pytest.raises(DependencyError) as exc_info:
        await writer.append_lead(lead, LeadStatus.ACCEPTED)
    assert exc_info.value.code == "row_store_append_failed"
    assert exc_info.value.status_code == 500
