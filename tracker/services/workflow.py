from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import AbstractSet, Dict, Optional, Union

from tracker.core.enums import RequestStatus

PENDING = RequestStatus.pending.value
APPROVED = RequestStatus.approved.value
REJECTED = RequestStatus.rejected.value
COMPLETED = RequestStatus.completed.value

STATUSES = (PENDING, APPROVED, REJECTED, COMPLETED)

# position along Pending -> Approved -> Completed; Rejected sits at the end
_RANK = {PENDING: 0, APPROVED: 1, COMPLETED: 2, REJECTED: 2}


class Outcome(str, Enum):
    changed = "changed"
    unchanged = "unchanged"
    illegal = "illegal"


@dataclass(frozen=True)
class DataDelivered:
    """Ledger state after an append: categories delivered so far vs. requested."""

    delivered: AbstractSet[str]
    needed: AbstractSet[str]


@dataclass(frozen=True)
class ModeratorSet:
    target: str


Event = Union[DataDelivered, ModeratorSet]


@dataclass(frozen=True)
class Transition:
    previous: str
    status: str
    outcome: Outcome
    backward: bool = False
    reason: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.outcome is Outcome.changed


def is_complete(needed: AbstractSet[str], delivered: AbstractSet[str]) -> bool:
    return set(needed) <= set(delivered)


def _to(current: str, target: str, backward: bool = False) -> Transition:
    if target == current:
        return Transition(current, current, Outcome.unchanged)
    return Transition(current, target, Outcome.changed, backward=backward)


def advance(current: str, event: Event) -> Transition:
    """Next status for ``current`` given ``event``.

    Deliveries recompute from the whole ledger, so replaying the same
    ledger gives the same status.  A moderator may set any status; moves
    against the normal direction are allowed and flagged ``backward``.
    """
    if current not in STATUSES:
        return Transition(current, current, Outcome.illegal, reason=f"Unknown status {current}")

    if isinstance(event, ModeratorSet):
        if event.target not in STATUSES:
            return Transition(current, current, Outcome.illegal, reason="Invalid status provided")
        return _to(current, event.target, backward=_RANK[event.target] < _RANK[current])

    if isinstance(event, DataDelivered):
        if current == REJECTED:
            return Transition(
                current, current, Outcome.illegal,
                reason="Cannot deliver data for a rejected request",
            )
        if is_complete(event.needed, event.delivered):
            return _to(current, COMPLETED)
        if current == PENDING:
            return _to(current, APPROVED)
        return Transition(current, current, Outcome.unchanged)

    raise TypeError(f"Unsupported lifecycle event: {event!r}")


def apply_transition_updates(
    transition: Transition, moderator_notes: Optional[str] = None
) -> Dict[str, Dict[str, object]]:
    updates: Dict[str, Dict[str, object]] = {
        "$set": {
            "status": transition.status,
            "updatedAt": datetime.now(timezone.utc),
        }
    }
    if moderator_notes is not None:
        updates["$set"]["moderatorNotes"] = moderator_notes
    return updates
