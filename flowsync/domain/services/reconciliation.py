"""
Reconciliation service - merges engine execution outcomes into the flow registry.

Handles the idempotency gate, duration and counter aggregation, the
error-branch status refresh, and hands historical flows to the promoter.
All engine reads happen before the single UPDATE for an execution.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from flowsync.core.config import Settings
from flowsync.core.exceptions import DataIntegrityAnomaly, ExternalServiceError
from flowsync.core.logging import get_logger
from flowsync.domain.models.flow import ExecutionStatus
from flowsync.domain.repositories.flow import FlowRepository
from flowsync.domain.schemas.event import ExecutionNotification
from flowsync.domain.schemas.execution import (
    FlowExecution,
    PromotionOutcome,
    ReconcileOutcome,
    ReconciliationResult,
    Timestamp,
)
from flowsync.domain.schemas.flow import FlowContext
from flowsync.domain.services.execution_history import ExecutionHistoryFetcher
from flowsync.domain.services.flow_registry import FlowRegistry
from flowsync.domain.services.promotion import PullModePromoter
from flowsync.infrastructure.appflow import AppFlowClient

logger = get_logger(__name__)

# Terminal entity types that never get an incremental cursor.
NON_PROMOTABLE_EVENT_TYPES = frozenset({"LinkSend", "Link"})


def compute_duration_seconds(started_at: Timestamp, last_updated_at: Timestamp) -> float:
    """
    Seconds between start and last update.

    Accepts datetimes or epoch milliseconds. Raises DataIntegrityAnomaly
    for missing, mismatched or reversed timestamps.
    """
    if started_at is None or last_updated_at is None:
        raise DataIntegrityAnomaly(
            "Execution is missing timestamps",
            details={"started_at": started_at, "last_updated_at": last_updated_at},
        )

    try:
        if isinstance(started_at, datetime) and isinstance(last_updated_at, datetime):
            duration = (last_updated_at - started_at).total_seconds()
        else:
            duration = (last_updated_at - started_at) / 1000
    except TypeError as e:
        raise DataIntegrityAnomaly(
            "Execution timestamps are not comparable",
            details={"started_at": str(started_at), "last_updated_at": str(last_updated_at)},
        ) from e

    if duration < 0:
        raise DataIntegrityAnomaly(
            "Execution ended before it started",
            details={"duration_seconds": duration},
        )
    return float(duration)


class ReconciliationService:
    """
    Business logic for execution reconciliation.

    Coordinates the registry lookup, execution history, the flow
    repository and the pull-mode promoter.
    """

    def __init__(self, db: Session, appflow: AppFlowClient, settings: Settings):
        self.db = db
        self.appflow = appflow
        self.flow_repo = FlowRepository(db)
        self.registry = FlowRegistry(db)
        self.history = ExecutionHistoryFetcher(appflow)
        self.promoter = PullModePromoter(appflow, self.flow_repo, settings)

    def handle_notification(self, notification: ExecutionNotification) -> ReconciliationResult:
        """
        Reconcile the execution a notification refers to.

        Raises FlowNotFoundError / ExecutionNotFoundError when there is
        nothing to reconcile; both happen before any write.
        """
        flow = self.registry.get(notification.flow_name)
        execution = self.history.fetch(notification.flow_name, notification.execution_id)
        return self.reconcile(flow, execution)

    def reconcile(self, flow: FlowContext, execution: FlowExecution) -> ReconciliationResult:
        """Merge one execution into the flow record, then consider promotion."""
        if execution.execution_id == flow.last_execution_id:
            logger.info(
                "Execution already reconciled",
                flow_name=flow.name,
                execution_id=execution.execution_id,
            )
            return ReconciliationResult(
                flow_name=flow.name,
                execution_id=execution.execution_id,
                outcome=ReconcileOutcome.DUPLICATE,
            )

        try:
            duration = compute_duration_seconds(execution.started_at, execution.last_updated_at)
        except DataIntegrityAnomaly as e:
            logger.warning(
                "Execution duration clamped to zero",
                flow_name=flow.name,
                execution_id=execution.execution_id,
                reason=e.message,
                **{k: str(v) for k, v in e.details.items()},
            )
            duration = 0.0

        flow_status: Optional[str] = None
        if execution.execution_status == ExecutionStatus.ERROR:
            flow_status = self.appflow.get_flow_status(flow.name)

        applied = self.flow_repo.apply_execution(
            flow.id,
            execution_id=execution.execution_id,
            last_execution_time=execution.data_pull_end_time,
            last_execution_status=execution.execution_status,
            records_delta=execution.records_processed,
            duration_delta=duration,
            status=flow_status,
        )
        self.db.commit()

        if not applied:
            logger.info(
                "Execution reconciled concurrently, nothing applied",
                flow_name=flow.name,
                execution_id=execution.execution_id,
            )
            return ReconciliationResult(
                flow_name=flow.name,
                execution_id=execution.execution_id,
                outcome=ReconcileOutcome.DUPLICATE,
            )

        logger.info(
            "Execution reconciled",
            flow_name=flow.name,
            execution_id=execution.execution_id,
            execution_status=execution.execution_status,
            records_processed=execution.records_processed,
            duration_seconds=duration,
            flow_status=flow_status,
        )

        result = ReconciliationResult(
            flow_name=flow.name,
            execution_id=execution.execution_id,
            outcome=ReconcileOutcome.APPLIED,
            duration_seconds=duration,
            records_processed=execution.records_processed,
            flow_status=flow_status,
        )

        if flow.is_historical:
            result.promotion = self._promote(flow)
        return result

    def _promote(self, flow: FlowContext) -> PromotionOutcome:
        """
        Promote a historical flow after its execution was committed.

        A redelivery would stop at the idempotency gate, so an engine
        failure here is logged for manual follow-up and the notification
        is still acknowledged. The flow stays HISTORICAL.
        """
        if flow.event_type in NON_PROMOTABLE_EVENT_TYPES:
            return PromotionOutcome.SKIPPED_NOT_PROMOTABLE

        try:
            outcome = self.promoter.promote(flow)
        except ExternalServiceError as e:
            self.db.rollback()
            logger.error(
                "Promotion failed, flow left historical",
                flow_name=flow.name,
                event_type=flow.event_type,
                reason=e.message,
                **e.details,
            )
            return PromotionOutcome.FAILED
        if outcome == PromotionOutcome.PROMOTED:
            self.db.commit()
        return outcome
