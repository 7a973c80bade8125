"""
Authorization predicates for timesheet entries.

Each predicate takes ``(actor_id, resource)`` and returns a ``Decision``; none of
them touch the database. Services resolve the resource first, then ask.

  owns_entry             entry.user_id == actor
  is_default_approver    project.default_approver == actor
  may_transition_range   admin, or default approver of the filtered project
  may_read_entry         owner, the project's default approver, or an admin
"""

import logging
import uuid
from dataclasses import dataclass

from timeledger.models.user import ROLE_ADMIN

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def owns_entry(actor_id: uuid.UUID, entry) -> Decision:
    if entry.user_id == actor_id:
        return ALLOW
    return Decision(False, "Entry belongs to another user.")


def is_default_approver(actor_id: uuid.UUID, project) -> Decision:
    if project.default_approver is None:
        return Decision(False, "Project has no default approver.")
    if project.default_approver == actor_id:
        return ALLOW
    return Decision(False, "Only the project's default approver may review its entries.")


def may_transition_range(actor, project=None) -> Decision:
    """Bulk lock/unlock: admins anywhere, default approvers on their own project."""
    if actor is None:
        return Decision(False, "Unknown actor.")
    if actor.role == ROLE_ADMIN:
        return ALLOW
    if project is not None and project.default_approver == actor.user_id:
        return ALLOW
    return Decision(False, "Only administrators or the project's default approver may lock or unlock.")


def may_read_entry(actor_id: uuid.UUID, actor, entry, project) -> Decision:
    """Single-entry reads: the owner, the project's default approver, or an admin."""
    if owns_entry(actor_id, entry):
        return ALLOW
    if project is not None and is_default_approver(actor_id, project):
        return ALLOW
    if actor is not None and actor.role == ROLE_ADMIN:
        return ALLOW
    return Decision(False, "Entry is visible only to its owner, approver or an administrator.")


def log_denied(decision: Decision, actor_id, resource_id, operation: str) -> None:
    logger.warning(
        "Denied %s on %s for actor %s: %s", operation, resource_id, actor_id, decision.reason
    )
