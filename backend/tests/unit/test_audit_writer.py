"""Audit writes are best-effort"""
from datetime import datetime, timedelta, timezone

import pytest

from caseflow.domain.enums import AuditEntityType
from caseflow.domain.models import AuditEntry
from caseflow.utils.time import format_iso
from caseflow.engine.audit_writer import AuditWriter


class BrokenAuditRepository:
    def create_entry(self, entry):
        raise RuntimeError("audit store unavailable")


def test_append_swallows_store_failures(user_repo, caplog):
    writer = AuditWriter(BrokenAuditRepository(), user_repo)

    result = writer.append(
        tenant_id="tenant_acme",
        actor_id="usr_maker",
        entity_type=AuditEntityType.CASE,
        entity_id="CASE-1",
        action="TRANSITION_SUBMIT"
    )

    assert result is None
    assert "Failed to write audit entry TRANSITION_SUBMIT" in caplog.text


def test_trail_is_newest_first_with_actor_names(audit_writer, users):
    for action in ("CREATE", "TRANSITION_SUBMIT", "TRANSITION_APPROVE"):
        audit_writer.append(
            tenant_id="tenant_acme",
            actor_id="usr_maker",
            entity_type=AuditEntityType.CASE,
            entity_id="CASE-1",
            action=action
        )
    audit_writer.append(
        tenant_id="tenant_acme",
        actor_id="usr_maker",
        entity_type=AuditEntityType.CASE,
        entity_id="CASE-2",
        action="CREATE"
    )

    trail = audit_writer.trail("tenant_acme", AuditEntityType.CASE, "CASE-1", limit=10)

    assert len(trail) == 3
    assert trail[0].timestamp >= trail[-1].timestamp
    assert {entry.actor_name for entry in trail} == {"Mo Maker"}


@pytest.mark.parametrize("limit", [1, 2])
def test_trail_limit(audit_writer, limit):
    for _ in range(3):
        audit_writer.append("tenant_acme", "usr_x", AuditEntityType.CASE, "CASE-1", "COMMENT")

    assert len(audit_writer.trail("tenant_acme", AuditEntityType.CASE, "CASE-1", limit=limit)) == limit


def test_trail_order_is_exact_across_whole_seconds(audit_repo):
    on_the_second = datetime(2026, 3, 1, 9, 30, 0, tzinfo=timezone.utc)
    for entry_id, timestamp in (
        ("AUD-late", on_the_second + timedelta(milliseconds=500)),
        ("AUD-early", on_the_second),
        ("AUD-before", on_the_second - timedelta(microseconds=1)),
    ):
        audit_repo.create_entry(AuditEntry(
            audit_entry_id=entry_id,
            tenant_id="tenant_acme",
            actor_id="usr_maker",
            entity_type=AuditEntityType.CASE,
            entity_id="CASE-1",
            action="COMMENT",
            timestamp=timestamp
        ))

    trail = audit_repo.get_trail("tenant_acme", AuditEntityType.CASE, "CASE-1")

    assert [entry.audit_entry_id for entry in trail] == ["AUD-late", "AUD-early", "AUD-before"]
    assert trail[1].timestamp == on_the_second


@pytest.mark.parametrize("value,expected", [
    (datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc), "2026-03-01T09:30:00.000000Z"),
    (datetime(2026, 3, 1, 9, 30, 0, 500000), "2026-03-01T09:30:00.500000Z"),
    (datetime(2026, 3, 1, 11, 30, tzinfo=timezone(timedelta(hours=2))), "2026-03-01T09:30:00.000000Z"),
])
def test_format_iso_is_fixed_width_utc(value, expected):
    assert format_iso(value) == expected
