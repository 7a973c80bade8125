from timeledger.models.audit_log import AuditLog
from timeledger.models.holiday import Holiday
from timeledger.models.project import Project
from timeledger.models.timesheet import TaskType, TimesheetEntry, TimesheetStatus
from timeledger.models.user import User

__all__ = [
    "AuditLog",
    "Holiday",
    "Project",
    "TaskType",
    "TimesheetEntry",
    "TimesheetStatus",
    "User",
]
