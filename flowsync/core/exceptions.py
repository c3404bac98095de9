"""
Custom exceptions for flowsync.

Every error carries a message and structured details; the HTTP status is
attached here and only applied at the API boundary.
"""

from typing import Any, Dict, Optional


class FlowSyncException(Exception):
    """Base exception for all flowsync errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(FlowSyncException):
    """A referenced record is not known. Treated as "not applicable"."""

    status_code = 404


class FlowNotFoundError(NotFoundError):
    """No flow row is registered under the given name."""

    def __init__(self, flow_name: str):
        super().__init__(
            f"Flow '{flow_name}' is not tracked", details={"flow_name": flow_name}
        )
        self.flow_name = flow_name


class ExecutionNotFoundError(NotFoundError):
    """The execution id is absent from the flow's execution history."""

    def __init__(self, flow_name: str, execution_id: str):
        super().__init__(
            f"Execution '{execution_id}' not found in history of flow '{flow_name}'",
            details={"flow_name": flow_name, "execution_id": execution_id},
        )
        self.flow_name = flow_name
        self.execution_id = execution_id


class ExternalServiceError(FlowSyncException):
    """A call to the flow engine (or another AWS service) failed."""

    status_code = 502

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        merged = dict(details or {})
        if operation:
            merged["operation"] = operation
        if error_code:
            merged["error_code"] = error_code
        super().__init__(message, details=merged)
        self.operation = operation
        self.error_code = error_code


class DataIntegrityAnomaly(FlowSyncException):
    """Engine data is inconsistent. Corrected locally, never escalated."""

    status_code = 500


class ConfigurationError(FlowSyncException):
    """Settings, credentials or the database pool are unusable at startup."""

    status_code = 500
