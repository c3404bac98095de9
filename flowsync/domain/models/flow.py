"""
Flow model - local record of an engine flow and its execution totals.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flowsync.domain.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from flowsync.domain.models.connection import Connection


class FlowType(str, Enum):
    """Pull strategy of a flow. Only ever moves HISTORICAL -> INCREMENTAL."""

    HISTORICAL = "HISTORICAL"
    INCREMENTAL = "INCREMENTAL"


class ExecutionStatus(str, Enum):
    """Execution statuses reported by the flow engine."""

    IN_PROGRESS = "InProgress"
    SUCCESSFUL = "Successful"
    ERROR = "Error"
    CANCEL_STARTED = "CancelStarted"
    CANCELED = "Canceled"


class Flow(Base, TimestampMixin):
    """
    One extraction flow defined in the engine.

    Execution columns are written only by reconciliation; flow_type only
    by promotion.
    """

    __tablename__ = "flows"
    __table_args__ = {"comment": "Engine flows and cumulative execution totals"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Flow name in the engine",
    )
    connection_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("connections.id"),
        nullable=False,
        index=True,
        comment="Source connection",
    )
    flow_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=FlowType.HISTORICAL.value,
        comment="HISTORICAL or INCREMENTAL",
    )
    status: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, comment="Flow status as last reported by the engine"
    )
    event_type: Mapped[str] = mapped_column(
        String(255), nullable=False, comment="Source entity name"
    )
    connector_id: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, comment="Connector identifier"
    )
    last_execution_id: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, comment="Most recently reconciled execution"
    )
    last_execution_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Data pull end time of the last reconciled execution",
    )
    last_execution_status: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, comment="Status of the last reconciled execution"
    )
    last_execution_records: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
        comment="Cumulative records processed",
    )
    total_execution_time: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
        comment="Cumulative execution time in seconds",
    )

    connection: Mapped["Connection"] = relationship(
        "Connection",
        back_populates="flows",
        lazy="select",
    )
