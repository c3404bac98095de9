"""
Domain schemas.
"""

from flowsync.domain.schemas.common import (
    BaseSchema,
    ErrorResponse,
    HealthResponse,
    MessageResponse,
)
from flowsync.domain.schemas.event import ExecutionNotification
from flowsync.domain.schemas.execution import (
    FlowExecution,
    PromotionOutcome,
    ReconcileOutcome,
    ReconciliationResult,
)
from flowsync.domain.schemas.flow import FlowContext


__all__ = [
    "BaseSchema",
    "ErrorResponse",
    "ExecutionNotification",
    "FlowContext",
    "FlowExecution",
    "HealthResponse",
    "MessageResponse",
    "PromotionOutcome",
    "ReconcileOutcome",
    "ReconciliationResult",
]
