# system_management/exceptions.py
"""
Exception classes for the system management subsystem.

Only BackupFailed is ever raised out of a public operation. ProbeFailure and
UnknownTask are turned into result data by the health checker and the
maintenance runner; CleanupFileError is logged and the retention scan goes on.
UnsupportedDatabase aborts optimize_tables and is reported by its caller.
"""

import logging

logger = logging.getLogger(__name__)


class SystemManagementException(Exception):
    """Base exception for system management operations"""

    default_message = "A system management operation failed"
    log_level = logging.ERROR

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

        logger.log(
            self.log_level,
            f"{self.__class__.__name__}: {self.message} - Details: {self.details}"
        )


class ProbeFailure(SystemManagementException):
    """Raised inside a health probe to report a failed check with a reason"""

    default_message = "Health check failed"
    log_level = logging.WARNING


class UnknownTask(SystemManagementException):
    """Maintenance task name is not part of the recognized task set"""

    log_level = logging.WARNING

    def __init__(self, task_name, **kwargs):
        self.task_name = task_name
        super().__init__(f"Unknown task: {task_name}", **kwargs)


class BackupFailed(SystemManagementException):
    """Raised when the database dump or the files archive cannot be produced"""

    default_message = "Backup failed"

    def __init__(self, message=None, step=None, **kwargs):
        self.step = step
        super().__init__(message, **kwargs)


class CleanupFileError(SystemManagementException):
    """A single stale file could not be removed during retention cleanup"""

    log_level = logging.WARNING

    def __init__(self, path, error, **kwargs):
        self.path = path
        self.error = error
        super().__init__(f"Could not delete {path}: {error}", **kwargs)


class UnsupportedDatabase(SystemManagementException):
    """The configured database engine has no maintenance statement"""

    def __init__(self, vendor, **kwargs):
        self.vendor = vendor
        super().__init__(f"No optimize statement for database vendor {vendor}", **kwargs)
