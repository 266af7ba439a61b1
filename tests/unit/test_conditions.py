"""Tests for condition utilities."""

from __future__ import annotations

from seed_extension_operator.constants import (
    COND_INSTALLED,
    COND_VALID,
    REASON_INITIALIZED,
    STATUS_FALSE,
    STATUS_TRUE,
    STATUS_UNKNOWN,
)
from seed_extension_operator.utils.conditions import (
    Condition,
    ConditionSet,
    get_or_init_condition,
    merge_conditions,
    updated_condition,
)


class TestCondition:
    """Test cases for the Condition type."""

    def test_defaults_to_unknown(self) -> None:
        """Test that a new condition is Unknown and initialized."""
        cond = Condition(type=COND_VALID)
        assert cond.status == STATUS_UNKNOWN
        assert cond.reason == REASON_INITIALIZED
        assert cond.last_transition_time

    def test_dict_uses_api_field_names(self) -> None:
        """Test conversion from and to the API representation."""
        data = {
            "type": COND_INSTALLED,
            "status": STATUS_TRUE,
            "reason": "Applied",
            "message": "ok",
            "lastTransitionTime": "2024-01-01T00:00:00+00:00",
            "lastUpdateTime": "2024-01-02T00:00:00+00:00",
        }
        assert Condition.from_dict(data).to_dict() == data


class TestGetOrInitCondition:
    """Test cases for get_or_init_condition function."""

    def test_returns_existing(self) -> None:
        """Test that an existing condition is returned."""
        existing = [{"type": COND_VALID, "status": STATUS_TRUE, "reason": "R", "message": "m"}]
        cond = get_or_init_condition(existing, COND_VALID)
        assert cond.status == STATUS_TRUE
        assert cond.reason == "R"

    def test_initializes_missing(self) -> None:
        """Test that a missing condition is initialized as Unknown."""
        cond = get_or_init_condition([], COND_INSTALLED)
        assert cond.type == COND_INSTALLED
        assert cond.status == STATUS_UNKNOWN


class TestUpdatedCondition:
    """Test cases for updated_condition function."""

    def test_transition_time_kept_when_status_unchanged(self) -> None:
        """Test that only a status change moves lastTransitionTime."""
        cond = Condition(type=COND_VALID, status=STATUS_FALSE, last_transition_time="then")
        updated = updated_condition(cond, STATUS_FALSE, "Other", "new message")
        assert updated.last_transition_time == "then"
        assert updated.reason == "Other"
        assert updated.message == "new message"

    def test_transition_time_moves_on_status_change(self) -> None:
        """Test that lastTransitionTime changes with the status."""
        cond = Condition(type=COND_VALID, status=STATUS_FALSE, last_transition_time="then")
        updated = updated_condition(cond, STATUS_TRUE, "Valid", "ok")
        assert updated.last_transition_time != "then"
        assert updated.status == STATUS_TRUE


class TestMergeConditions:
    """Test cases for merge_conditions function."""

    def test_foreign_conditions_survive(self) -> None:
        """Test that condition types not updated are kept untouched."""
        foreign = {"type": "Healthy", "status": STATUS_TRUE, "reason": "Reported"}
        merged = merge_conditions([foreign], Condition(type=COND_VALID, status=STATUS_TRUE))

        assert [c["type"] for c in merged] == [COND_VALID, "Healthy"]
        assert merged[1] == foreign

    def test_update_replaces_same_type(self) -> None:
        """Test that at most one condition per type remains."""
        existing = [
            {"type": COND_INSTALLED, "status": STATUS_TRUE, "reason": "Applied"},
            {"type": COND_VALID, "status": STATUS_UNKNOWN, "reason": REASON_INITIALIZED},
        ]
        merged = merge_conditions(existing, Condition(type=COND_VALID, status=STATUS_FALSE, reason="Broken"))

        assert len(merged) == 2
        assert merged[0]["type"] == COND_VALID
        assert merged[0]["reason"] == "Broken"
        assert merged[1] == existing[0]

    def test_existing_not_modified(self) -> None:
        """Test that the input list is not mutated."""
        existing = [{"type": COND_VALID, "status": STATUS_UNKNOWN}]
        merge_conditions(existing, Condition(type=COND_VALID, status=STATUS_TRUE))
        assert existing == [{"type": COND_VALID, "status": STATUS_UNKNOWN}]


class TestConditionSet:
    """Test cases for ConditionSet class."""

    def test_load_initializes_missing_types(self) -> None:
        """Test that both owned types are present after loading."""
        conditions = ConditionSet.load(None)
        assert [c.type for c in conditions] == [COND_VALID, COND_INSTALLED]
        assert all(c.status == STATUS_UNKNOWN for c in conditions)

    def test_update_and_merge_into(self) -> None:
        """Test that updates are merged by type into the latest status."""
        conditions = ConditionSet.load([{"type": COND_VALID, "status": STATUS_UNKNOWN}])
        conditions.update(COND_VALID, STATUS_TRUE, "RegistrationValid", "ok")

        # Meanwhile another writer reported the installation state
        latest = [
            {"type": COND_VALID, "status": STATUS_UNKNOWN},
            {"type": COND_INSTALLED, "status": STATUS_TRUE, "reason": "Healthy"},
            {"type": "Progressing", "status": STATUS_FALSE},
        ]
        merged = conditions.merge_into(latest)

        by_type = {c["type"]: c for c in merged}
        assert by_type[COND_VALID]["status"] == STATUS_TRUE
        assert by_type[COND_INSTALLED]["reason"] == "Healthy"
        assert by_type["Progressing"] == {"type": "Progressing", "status": STATUS_FALSE}
        assert conditions[COND_VALID].reason == "RegistrationValid"

    def test_merge_into_fills_missing_types(self) -> None:
        """Test that owned types absent from status are written as Unknown."""
        conditions = ConditionSet.load([])
        merged = conditions.merge_into([])
        assert [c["type"] for c in merged] == [COND_VALID, COND_INSTALLED]
        assert all(c["status"] == STATUS_UNKNOWN for c in merged)
