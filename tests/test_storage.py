"""
Tests for snapshot/audit storage and the audit logger.

Google Sheets is replaced by mocks; no network access.
"""

import asyncio
import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from ledger.audit import AuditLogger
from ledger.models import (
    AuditEventBuilder,
    AuditEventType,
    CardSetting,
    LedgerSnapshot,
    PaymentMethod,
    Transaction,
)
from ledger.services.storage import (
    CorruptSnapshotError,
    GoogleSheetsAuditStorage,
    GoogleSheetsSnapshotStorage,
    InMemoryAuditStorage,
    InMemorySnapshotStorage,
    NotFoundError,
    StorageError,
    join_chunks,
    split_chunks,
)


def _snapshot() -> LedgerSnapshot:
    return LedgerSnapshot(
        transactions=[Transaction(
            date=date(2024, 3, 1),
            amount=Decimal("120"),
            payment_method=PaymentMethod.CREDIT_CARD,
            card_bank="國泰",
            description="午餐",
        )],
        card_settings={"國泰": CardSetting(statement_day=15)},
        categories=["食"],
    )


class TestChunking:
    """Tests for splitting the snapshot across sheet cells."""

    def test_split_and_join(self):
        document = "abcdefghij" * 5
        chunks = split_chunks(document, 7)
        assert all(len(c) <= 7 for c in chunks)
        rows = [[str(i), c] for i, c in enumerate(chunks)]
        rows.reverse()
        assert join_chunks(rows) == document

    def test_join_skips_blank_rows(self):
        assert join_chunks([["0", "ab"], [], ["", ""], ["1", "cd"]]) == "abcd"

    def test_join_detects_missing_chunk(self):
        with pytest.raises(CorruptSnapshotError):
            join_chunks([["0", "ab"], ["2", "cd"]])

    def test_join_detects_bad_index(self):
        with pytest.raises(CorruptSnapshotError):
            join_chunks([["zero", "ab"]])

    def test_empty_document(self):
        assert split_chunks("", 10) == []
        assert join_chunks([]) == ""

    def test_chunk_size_must_be_positive(self):
        with pytest.raises(ValueError):
            split_chunks("abc", 0)


class TestInMemoryStorage:
    """Tests for the in-memory backends."""

    def test_snapshot_round_trip(self):
        storage = InMemorySnapshotStorage()
        assert asyncio.run(storage.load()) is None

        assert asyncio.run(storage.save(_snapshot())) is True
        loaded = asyncio.run(storage.load())
        assert loaded.transactions[0].description == "午餐"
        assert storage.save_count == 1
        assert storage.load_count == 2

    def test_failure_raises_storage_error(self):
        storage = InMemorySnapshotStorage(initial=_snapshot())
        storage.fail_with = RuntimeError("offline")
        with pytest.raises(StorageError, match="offline"):
            asyncio.run(storage.load())
        with pytest.raises(StorageError):
            asyncio.run(storage.save(_snapshot()))

    def test_audit_storage_queries(self):
        storage = InMemoryAuditStorage()
        storage.append_event(AuditEventBuilder.statement_day_set("X", 15))
        storage.append_event(AuditEventBuilder.statement_day_set("Y", 10))
        storage.append_event(AuditEventBuilder.next_month_flag_set("X", True))

        events = storage.get_events_by_entity("card", "X")
        assert [e.event_type for e in events] == [
            AuditEventType.STATEMENT_DAY_SET,
            AuditEventType.NEXT_MONTH_FLAG_SET,
        ]
        assert len(storage.get_recent_events(limit=2)) == 2


class TestGoogleSheetsStorage:
    """Tests for the Sheets backends with a mocked worksheet."""

    def _client(self, sheet: MagicMock) -> MagicMock:
        client = MagicMock()
        client.get_snapshot_sheet.return_value = sheet
        client.get_audit_sheet.return_value = sheet
        return client

    def test_save_writes_chunks(self):
        sheet = MagicMock()
        storage = GoogleSheetsSnapshotStorage(self._client(sheet), chunk_size=50)

        assert asyncio.run(storage.save(_snapshot())) is True
        sheet.clear.assert_called_once()
        values = sheet.update.call_args.kwargs["values"]
        assert values[0] == ["chunk_index", "payload"]
        assert len(values) > 2
        assert "".join(row[1] for row in values[1:]) == _snapshot().to_json()

    def test_load_reassembles(self):
        document = _snapshot().to_json()
        chunks = split_chunks(document, 40)
        sheet = MagicMock()
        sheet.get_all_values.return_value = [["chunk_index", "payload"]] + [
            [str(i), c] for i, c in enumerate(chunks)
        ]
        storage = GoogleSheetsSnapshotStorage(self._client(sheet), chunk_size=40)

        loaded = asyncio.run(storage.load())
        assert loaded.card_settings["國泰"].statement_day == 15

    def test_load_empty_sheet(self):
        sheet = MagicMock()
        sheet.get_all_values.return_value = [["chunk_index", "payload"]]
        storage = GoogleSheetsSnapshotStorage(self._client(sheet), chunk_size=40)
        assert asyncio.run(storage.load()) is None

    def test_corrupt_sheet_is_read_once(self):
        sheet = MagicMock()
        sheet.get_all_values.return_value = [
            ["chunk_index", "payload"],
            ["0", "{\"transactions\""],
            ["2", ": []}"],
        ]
        storage = GoogleSheetsSnapshotStorage(self._client(sheet), chunk_size=40)

        with pytest.raises(CorruptSnapshotError):
            asyncio.run(storage.load())
        assert sheet.get_all_values.call_count == 1

    def test_missing_spreadsheet_is_not_retried(self):
        client = MagicMock()
        client.get_snapshot_sheet.side_effect = NotFoundError("Spreadsheet not found: abc")
        storage = GoogleSheetsSnapshotStorage(client, chunk_size=40)

        with pytest.raises(NotFoundError):
            asyncio.run(storage.load())
        assert client.get_snapshot_sheet.call_count == 1

    def test_audit_rows_round_trip(self):
        sheet = MagicMock()
        storage = GoogleSheetsAuditStorage(self._client(sheet))
        event = AuditEventBuilder.issued_toggled("X", "2024-03", True, Decimal("5000"))

        assert storage.append_event(event) is True
        row = sheet.append_row.call_args.args[0]

        sheet.get_all_values.return_value = [["header"] * 10, row, ["", ""]]
        events = storage.get_events_by_entity("card", "X")
        assert len(events) == 1
        assert events[0].event_id == event.event_id
        assert events[0].details["billing_month"] == "2024-03"
        assert events[0].is_user_action


class TestAuditLogger:
    """Tests for the audit logger."""

    def test_keeps_recent_history(self):
        audit = AuditLogger(history_size=2)
        audit.log(AuditEventBuilder.statement_day_set("X", 1))
        audit.log(AuditEventBuilder.statement_day_set("X", 2))
        audit.log(AuditEventBuilder.statement_day_set("X", 3))
        recent = audit.recent_events()
        assert [e.details["statement_day"] for e in recent] == [3, 2]

    def test_persists_to_storage(self):
        storage = InMemoryAuditStorage()
        audit = AuditLogger(storage)
        assert audit.log(AuditEventBuilder.ledger_reset()) is True
        assert len(storage.get_recent_events()) == 1

    def test_storage_failure_is_not_raised(self):
        storage = MagicMock()
        storage.append_event.side_effect = StorageError("sheet gone")
        audit = AuditLogger(storage)
        assert audit.log(AuditEventBuilder.ledger_reset()) is False
        assert len(audit.recent_events()) == 1

    def test_log_error_helpers(self):
        audit = AuditLogger()
        audit.log_error("ValueError", "boom", {"where": "test"})
        audit.log_external_service_error("snapshot_save", "timeout")
        types = [e.event_type for e in audit.recent_events()]
        assert types == [AuditEventType.EXTERNAL_SERVICE_ERROR, AuditEventType.SYSTEM_ERROR]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
