"""
Flow repository.

Reads go through the flow/connection join; writes are single UPDATE
statements keyed by flow id so counters are incremented server-side.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from flowsync.core.logging import get_logger
from flowsync.domain.models.connection import Connection
from flowsync.domain.models.flow import Flow, FlowType
from flowsync.domain.schemas.flow import FlowContext

logger = get_logger(__name__)


class FlowRepository:
    """Repository for Flow reads and reconciliation writes."""

    def __init__(self, db: Session):
        self.db = db

    def get_context_by_name(self, flow_name: str) -> Optional[FlowContext]:
        """Return the flow joined with its connection, or None if untracked."""
        stmt = (
            select(
                Flow,
                Connection.name.label("connection_name"),
                Connection.user_id,
                Connection.connector_id.label("connection_connector_id"),
                Connection.status.label("connection_status"),
            )
            .join(Connection, Flow.connection_id == Connection.id)
            .where(Flow.name == flow_name)
        )
        row = self.db.execute(stmt).first()
        if row is None:
            return None

        flow = row[0]
        return FlowContext(
            id=flow.id,
            name=flow.name,
            connection_id=flow.connection_id,
            flow_type=flow.flow_type,
            status=flow.status,
            event_type=flow.event_type,
            connector_id=flow.connector_id,
            last_execution_id=flow.last_execution_id,
            last_execution_time=flow.last_execution_time,
            last_execution_status=flow.last_execution_status,
            last_execution_records=flow.last_execution_records or 0,
            total_execution_time=flow.total_execution_time or 0.0,
            connection_name=row.connection_name,
            user_id=row.user_id,
            connection_connector_id=row.connection_connector_id,
            connection_status=row.connection_status,
        )

    def apply_execution(
        self,
        flow_id: int,
        execution_id: str,
        last_execution_time: Optional[datetime],
        last_execution_status: str,
        records_delta: int,
        duration_delta: float,
        status: Optional[str] = None,
    ) -> bool:
        """
        Merge one execution into the flow row in a single UPDATE.

        The row is only touched when its last_execution_id differs from
        execution_id, so concurrent deliveries of one execution increment
        the counters at most once. status is written only when given.

        Returns:
            True if the row was updated, False if the execution was
            already reconciled (or the flow vanished).
        """
        values: Dict[str, Any] = {
            "last_execution_id": execution_id,
            "last_execution_time": last_execution_time,
            "last_execution_status": last_execution_status,
            "last_execution_records": func.coalesce(Flow.last_execution_records, 0) + records_delta,
            "total_execution_time": func.coalesce(Flow.total_execution_time, 0.0) + duration_delta,
        }
        if status is not None:
            values["status"] = status

        stmt = (
            update(Flow)
            .where(Flow.id == flow_id)
            .where(Flow.last_execution_id.is_distinct_from(execution_id))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount > 0

    def mark_incremental(self, flow_id: int) -> None:
        """Persist the promotion to incremental pull mode."""
        stmt = (
            update(Flow)
            .where(Flow.id == flow_id)
            .values(flow_type=FlowType.INCREMENTAL.value)
            .execution_options(synchronize_session=False)
        )
        self.db.execute(stmt)
        logger.info("Flow marked incremental", flow_id=flow_id)
