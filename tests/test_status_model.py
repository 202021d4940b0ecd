from __future__ import annotations

from datetime import datetime, timezone

import pytest

from cin.builds import BuildStatus


def test_document_uses_wire_field_names() -> None:
    status = BuildStatus(running=False, last_run_at=datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc), success=True)

    document = status.to_document()

    assert list(document) == ["running", "lastRunAt", "success"]
    assert document["lastRunAt"].startswith("2025-01-02T03:04:05")


def test_parses_wire_document() -> None:
    status = BuildStatus.model_validate({"running": True, "lastRunAt": None, "success": False})

    assert status.running is True
    assert status.last_run_at is None


def test_merged_only_changes_given_fields() -> None:
    original = BuildStatus(success=True)

    updated = original.merged(running=True)

    assert updated.running is True
    assert updated.success is True
    assert original.running is False


def test_merged_rejects_unknown_fields() -> None:
    with pytest.raises(ValueError, match="cancelled"):
        BuildStatus().merged(cancelled=True)
