"""
Unit tests for gemawi_client.core.utils and the domain models.

Tests cover:
  • Reference flattening and id normalization
  • Temporary ids
  • Datetime parsing
  • JSON dumping of datetimes and models
  • Model aliasing (camelCase, ``_id``)
"""

from datetime import date, datetime, timezone

import pytest

from gemawi_client.core.utils import (
    dumps, normalize_record, normalize_records, parse_datetime, ref_id, temp_id,
)
from gemawi_client.domain.models import DevTaskModification, Notification, User


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

class TestRefId:
    def test_populated_reference(self):
        assert ref_id({"_id": "d1", "name": "HR"}) == "d1"

    def test_plain_id(self):
        assert ref_id("d1") == "d1"

    @pytest.mark.parametrize("empty", [None, "", {}])
    def test_empty(self, empty):
        assert ref_id(empty) is None


class TestNormalizeRecord:
    def test_copies_and_sets_id(self):
        doc = {"_id": "x1", "name": "A"}
        record = normalize_record(doc)
        assert record["id"] == "x1"
        assert "id" not in doc

    def test_keeps_existing_id(self):
        assert normalize_record({"id": "x2"})["id"] == "x2"

    def test_none(self):
        assert normalize_records(None) == []


def test_temp_ids_are_strictly_increasing():
    ids = [int(temp_id()) for _ in range(50)]
    assert ids == sorted(set(ids))
    assert temp_id("reg-").startswith("reg-")


# ---------------------------------------------------------------------------
# Datetimes
# ---------------------------------------------------------------------------

class TestParseDatetime:
    def test_zulu_suffix(self):
        assert parse_datetime("2026-03-02T09:30:00Z") == datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_datetime("2026-03-02T09:30:00").tzinfo is timezone.utc

    def test_epoch_millis(self):
        assert parse_datetime(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_date(self):
        assert parse_datetime(date(2026, 1, 2)) == datetime(2026, 1, 2, tzinfo=timezone.utc)

    @pytest.mark.parametrize("bad", [None, "", "yesterday"])
    def test_unparseable(self, bad):
        assert parse_datetime(bad) is None


def test_dumps_handles_datetimes_and_models():
    when = datetime(2026, 3, 2, tzinfo=timezone.utc)
    user = User(id="u1", name="Salma")
    text = dumps({"at": when, "user": user, "name": "سلمى"})
    assert '"at": "2026-03-02T00:00:00+00:00"' in text
    assert '"id": "u1"' in text
    assert "سلمى" in text


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class TestModels:
    def test_user_from_backend_document(self):
        user = User.model_validate({
            "_id": "u1",
            "companyId": {"_id": "c1"},
            "departmentId": "d1",
            "isActive": False,
            "permissions": [{"module": "tasks", "actions": ["view"]}],
            "avatar": "a.png",
        })
        assert user.id == "u1"
        assert user.company_id == "c1"
        assert user.department_id == "d1"
        assert user.is_active is False
        assert user.permissions[0].actions == ["view"]

        dumped = user.to_json()
        assert dumped["companyId"] == "c1"
        assert dumped["avatar"] == "a.png"
        assert "_id" not in dumped

    def test_notification_defaults(self):
        n = Notification.model_validate({"id": "n1", "createdAt": "garbage"})
        assert n.user_id == ""
        assert n.type == "system"
        assert n.created_at.tzinfo is not None

    def test_modification_dump(self):
        entry = DevTaskModification(id="1", user_name="Mona", action="edited", description="Edited task details")
        dumped = entry.to_json()
        assert dumped["userName"] == "Mona"
        assert "field" not in dumped
