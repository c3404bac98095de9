"""
Domain models initialization.

Exports all SQLAlchemy ORM models.
"""

from flowsync.domain.models.base import Base
from flowsync.domain.models.connection import Connection
from flowsync.domain.models.flow import ExecutionStatus, Flow, FlowType


__all__ = [
    "Base",
    "Connection",
    "ExecutionStatus",
    "Flow",
    "FlowType",
]
