"""Utilities for managing Kubernetes conditions."""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator

from ..constants import (
    COND_INSTALLED,
    COND_VALID,
    REASON_INITIALIZED,
    STATUS_UNKNOWN,
)

# Serialization order of the condition types owned by this operator.
WELL_KNOWN_CONDITION_TYPES = (COND_VALID, COND_INSTALLED)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclasses.dataclass(frozen=True)
class Condition:
    """A single typed status condition."""

    type: str
    status: str = STATUS_UNKNOWN
    reason: str = REASON_INITIALIZED
    message: str = "The condition has been initialized but its semantic check has not been performed yet."
    last_transition_time: str = dataclasses.field(default_factory=_now)
    last_update_time: str = dataclasses.field(default_factory=_now)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Condition:
        """Build a condition from its API representation."""
        now = _now()
        return cls(
            type=data["type"],
            status=data.get("status", STATUS_UNKNOWN),
            reason=data.get("reason", REASON_INITIALIZED),
            message=data.get("message", ""),
            last_transition_time=data.get("lastTransitionTime") or now,
            last_update_time=data.get("lastUpdateTime") or now,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the API representation of the condition."""
        return {
            "type": self.type,
            "status": self.status,
            "reason": self.reason,
            "message": self.message,
            "lastTransitionTime": self.last_transition_time,
            "lastUpdateTime": self.last_update_time,
        }


def init_condition(condition_type: str) -> Condition:
    """Return a fresh condition in the Unknown state."""
    return Condition(type=condition_type)


def get_or_init_condition(conditions: Iterable[dict[str, Any]], condition_type: str) -> Condition:
    """Return the condition of the given type, or an initialized one if absent.

    Args:
        conditions: Conditions as found in the resource status
        condition_type: Type to look up

    Returns:
        The existing condition or a new Unknown condition
    """
    for cond in conditions:
        if cond.get("type") == condition_type:
            return Condition.from_dict(cond)
    return init_condition(condition_type)


def updated_condition(condition: Condition, status: str, reason: str, message: str) -> Condition:
    """Return a copy of the condition with new status, reason and message.

    The lastTransitionTime only moves when the status changes.
    """
    now = _now()
    transition_time = condition.last_transition_time if condition.status == status else now
    return dataclasses.replace(
        condition,
        status=status,
        reason=reason,
        message=message,
        last_transition_time=transition_time,
        last_update_time=now,
    )


def merge_conditions(
    existing: Iterable[dict[str, Any]],
    *updates: Condition,
) -> list[dict[str, Any]]:
    """Merge conditions by type into an existing condition list.

    Updated types replace their existing entry, types not mentioned in the
    updates are kept untouched. Well-known types come first, foreign types
    follow in their existing order.

    Args:
        existing: Conditions as found in the resource status
        *updates: Conditions to merge in

    Returns:
        Merged list of conditions in API representation
    """
    merged: dict[str, dict[str, Any]] = {}
    for cond in existing:
        cond_type = cond.get("type")
        if cond_type:
            merged[cond_type] = dict(cond)
    for update in updates:
        merged[update.type] = update.to_dict()

    ordered = [merged.pop(t) for t in WELL_KNOWN_CONDITION_TYPES if t in merged]
    ordered.extend(merged.values())
    return ordered


class ConditionSet:
    """Conditions owned by the operator, keyed by type.

    Loaded from the current status at the start of a pass; mutated with
    :meth:`update` while the pass runs and merged back into the status when it
    ends.
    """

    def __init__(self, conditions: dict[str, Condition]):
        self._conditions = conditions
        self._updated: set[str] = set()

    @classmethod
    def load(
        cls,
        status_conditions: Iterable[dict[str, Any]] | None,
        condition_types: Iterable[str] = WELL_KNOWN_CONDITION_TYPES,
    ) -> ConditionSet:
        """Load or initialize the given condition types from status."""
        current = list(status_conditions or [])
        return cls({t: get_or_init_condition(current, t) for t in condition_types})

    def __getitem__(self, condition_type: str) -> Condition:
        return self._conditions[condition_type]

    def __iter__(self) -> Iterator[Condition]:
        ordered = [t for t in WELL_KNOWN_CONDITION_TYPES if t in self._conditions]
        ordered.extend(t for t in self._conditions if t not in WELL_KNOWN_CONDITION_TYPES)
        return (self._conditions[t] for t in ordered)

    def update(self, condition_type: str, status: str, reason: str, message: str) -> Condition:
        """Set status, reason and message of a condition."""
        condition = updated_condition(self._conditions[condition_type], status, reason, message)
        self._conditions[condition_type] = condition
        self._updated.add(condition_type)
        return condition

    def merge_into(self, existing: Iterable[dict[str, Any]] | None) -> list[dict[str, Any]]:
        """Merge the held conditions into an existing status condition list.

        Conditions not updated since loading are only written if the status
        lacks their type, so values reported meanwhile by others are kept.
        """
        existing = list(existing or [])
        present = {cond.get("type") for cond in existing}
        return merge_conditions(
            existing,
            *(c for c in self if c.type in self._updated or c.type not in present),
        )
