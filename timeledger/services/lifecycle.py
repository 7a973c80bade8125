"""
Timesheet entry state machine.

Transitions live in one table keyed by (status, action). ``transition`` never
raises; it returns ``Ok(new_status)`` or ``Err(...)`` and the caller decides
what an illegal move means (``InvalidState`` for single entries, a no-op for
bulk updates, which use ``source_statuses`` to build their WHERE clause).

    DRAFT     --submit-->  SUBMITTED
    REJECTED  --submit-->  SUBMITTED
    SUBMITTED --approve--> APPROVED
    SUBMITTED --reject-->  REJECTED
    APPROVED  --lock-->    LOCKED
    LOCKED    --unlock-->  APPROVED
"""

import enum
from dataclasses import dataclass
from typing import Union

from timeledger.models.timesheet import TimesheetStatus
from timeledger.services.errors import InvalidState


class Action(str, enum.Enum):
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    LOCK = "LOCK"
    UNLOCK = "UNLOCK"


_TRANSITIONS: dict[tuple[TimesheetStatus, Action], TimesheetStatus] = {
    (TimesheetStatus.DRAFT, Action.SUBMIT): TimesheetStatus.SUBMITTED,
    (TimesheetStatus.REJECTED, Action.SUBMIT): TimesheetStatus.SUBMITTED,
    (TimesheetStatus.SUBMITTED, Action.APPROVE): TimesheetStatus.APPROVED,
    (TimesheetStatus.SUBMITTED, Action.REJECT): TimesheetStatus.REJECTED,
    (TimesheetStatus.APPROVED, Action.LOCK): TimesheetStatus.LOCKED,
    (TimesheetStatus.LOCKED, Action.UNLOCK): TimesheetStatus.APPROVED,
}

# Owner may edit or delete only while the entry is in one of these
EDITABLE_STATUSES = frozenset({TimesheetStatus.DRAFT, TimesheetStatus.REJECTED})

# Statuses listed in an approver's review queue
PENDING_STATUSES = frozenset({TimesheetStatus.SUBMITTED, TimesheetStatus.REJECTED})


@dataclass(frozen=True)
class Ok:
    status: TimesheetStatus


@dataclass(frozen=True)
class Err:
    current: TimesheetStatus
    action: Action

    @property
    def message(self) -> str:
        allowed = sorted(s.value for s in source_statuses(self.action))
        return (
            f"Cannot {self.action.value.lower()} an entry in status {self.current.value}; "
            f"allowed from {', '.join(allowed)}."
        )


TransitionResult = Union[Ok, Err]


def as_status(value) -> TimesheetStatus:
    return value if isinstance(value, TimesheetStatus) else TimesheetStatus(value)


def transition(current, action: Action) -> TransitionResult:
    status = as_status(current)
    target = _TRANSITIONS.get((status, action))
    if target is None:
        return Err(current=status, action=action)
    return Ok(status=target)


def source_statuses(action: Action) -> frozenset[TimesheetStatus]:
    return frozenset(src for (src, act) in _TRANSITIONS if act == action)


def target_status(action: Action) -> TimesheetStatus:
    """The single status an action lands in."""
    targets = {dst for (_, act), dst in _TRANSITIONS.items() if act == action}
    (target,) = targets
    return target


def require_transition(entry, action: Action) -> TimesheetStatus:
    """Resolve the next status for ``entry`` or raise ``InvalidState``."""
    result = transition(entry.status, action)
    if isinstance(result, Err):
        raise InvalidState(
            result.message,
            entry_id=entry.entry_id,
            status=result.current.value,
            action=action.value,
        )
    return result.status


def require_editable(entry, operation: str) -> None:
    status = as_status(entry.status)
    if status not in EDITABLE_STATUSES:
        raise InvalidState(
            f"Only DRAFT and REJECTED entries can be {operation}.",
            entry_id=entry.entry_id,
            status=status.value,
            action=operation,
        )
