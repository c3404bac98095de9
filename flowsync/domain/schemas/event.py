"""
Inbound execution-status notification.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ExecutionNotification:
    """The fields of a notification needed to drive reconciliation."""

    status: str
    flow_name: str
    execution_id: str

    @classmethod
    def parse(cls, payload: Any) -> Optional["ExecutionNotification"]:
        """
        Extract status, flow name and execution id from a notification.

        Shape: {"detail": {"status": ..., "flow-name": ..., "execution-id": ...}}.
        Returns None when anything required is missing; such notifications are
        acknowledged without action so the sender does not retry them.
        """
        if not isinstance(payload, dict):
            return None
        detail: Dict[str, Any] = payload.get("detail") or {}
        if not isinstance(detail, dict):
            return None

        status = detail.get("status")
        if not status:
            return None

        flow_name = detail.get("flow-name")
        execution_id = detail.get("execution-id")
        if not flow_name or not execution_id:
            return None

        return cls(
            status=str(status),
            flow_name=str(flow_name),
            execution_id=str(execution_id),
        )
