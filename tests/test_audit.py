"""
Test suite for audit module

Tests the hash-chained audit trail, tamper detection and integrity
verification.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from lending_pool.storage import InMemoryStorage
from lending_pool.audit import AuditTrail, AuditEvent, AuditEventType


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def audit_trail(storage):
    return AuditTrail(storage)


class TestAuditEvent:
    """Test AuditEvent functionality"""

    def test_metadata_serialization(self):
        """Decimals, datetimes and enums become JSON-safe values"""
        now = datetime.now(timezone.utc)

        event = AuditEvent(
            id="AUDIT001",
            created_at=now,
            updated_at=now,
            sequence=1,
            event_type=AuditEventType.LOAN_ORIGINATED,
            entity_type="loan",
            entity_id="LOAN001",
            previous_hash="",
            current_hash="",
            metadata={
                "interest_rate": Decimal('5.1053'),
                "opened_at": now,
                "kind": AuditEventType.LOAN_ORIGINATED,
                "nested": {"rate": Decimal('0.5')}
            }
        )

        assert event.metadata["interest_rate"] == "5.1053"
        assert event.metadata["opened_at"] == now.isoformat()
        assert event.metadata["kind"] == "loan_originated"
        assert event.metadata["nested"]["rate"] == "0.5"

    def test_hash_is_deterministic(self):
        now = datetime.now(timezone.utc)
        kwargs = dict(
            id="AUDIT001", created_at=now, updated_at=now, sequence=1,
            event_type=AuditEventType.POOL_INITIALIZED, entity_type="pool",
            entity_id="default", previous_hash="", current_hash="",
            metadata={"owner": "GOWNER"}
        )

        assert AuditEvent(**kwargs).calculate_hash() == AuditEvent(**kwargs).calculate_hash()
        assert len(AuditEvent(**kwargs).calculate_hash()) == 64


class TestAuditTrail:
    """Test hash chaining and verification"""

    def test_log_event_chains_hashes(self, audit_trail):
        first = audit_trail.log_event(AuditEventType.POOL_INITIALIZED, "pool", "default", {"owner": "GOWNER"})
        second = audit_trail.log_event(AuditEventType.LOAN_ORIGINATED, "loan", "L1", {"amount": 500}, user_id="GALICE")

        assert first.sequence == 1
        assert first.previous_hash == ""
        assert second.sequence == 2
        assert second.previous_hash == first.current_hash
        assert second.verify_hash()
        assert audit_trail.get_latest_hash() == second.current_hash

    def test_empty_trail(self, audit_trail):
        result = audit_trail.verify_integrity()

        assert result['valid']
        assert result['total_events'] == 0
        assert audit_trail.get_latest_hash() is None

    def test_verify_untampered_chain(self, audit_trail):
        for i in range(5):
            audit_trail.log_event(AuditEventType.LOAN_PAYMENT_MADE, "loan", "L1", {"amount": i})

        result = audit_trail.verify_integrity()
        assert result['valid']
        assert result['total_events'] == 5
        assert audit_trail.count_events() == 5

    def test_detects_modified_metadata(self, audit_trail, storage):
        audit_trail.log_event(AuditEventType.LOAN_ORIGINATED, "loan", "L1", {"amount": 500})
        event = audit_trail.log_event(AuditEventType.LOAN_PAYMENT_MADE, "loan", "L1", {"amount": 100})

        record = storage.load("audit_events", event.id)
        record['metadata']['amount'] = 1
        storage.save("audit_events", event.id, record)

        result = audit_trail.verify_integrity()
        assert not result['valid']
        assert result['hash_errors'][0]['event_id'] == event.id

    def test_detects_deleted_event(self, audit_trail, storage):
        audit_trail.log_event(AuditEventType.POOL_INITIALIZED, "pool", "default")
        middle = audit_trail.log_event(AuditEventType.LOAN_ORIGINATED, "loan", "L1")
        audit_trail.log_event(AuditEventType.LOAN_PAID_OFF, "loan", "L1")

        storage.delete("audit_events", middle.id)

        result = audit_trail.verify_integrity()
        assert not result['valid']
        assert len(result['chain_breaks']) == 1

    def test_events_for_entity(self, audit_trail):
        audit_trail.log_event(AuditEventType.POOL_INITIALIZED, "pool", "default")
        audit_trail.log_event(AuditEventType.LOAN_ORIGINATED, "loan", "L1")
        audit_trail.log_event(AuditEventType.LOAN_ORIGINATED, "loan", "L2")
        audit_trail.log_event(AuditEventType.LOAN_PAID_OFF, "loan", "L1")

        events = audit_trail.get_events_for_entity("loan", "L1")
        assert [event.event_type for event in events] == [
            AuditEventType.LOAN_ORIGINATED, AuditEventType.LOAN_PAID_OFF
        ]

    def test_get_all_events_limit(self, audit_trail):
        for i in range(4):
            audit_trail.log_event(AuditEventType.LOAN_PAYMENT_MADE, "loan", "L1", {"n": i})

        latest = audit_trail.get_all_events(limit=2)
        assert [event.metadata["n"] for event in latest] == [2, 3]
