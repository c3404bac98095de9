"""
Flow execution event endpoint.

Receives execution-status notifications from the flow engine and drives
reconciliation. Recognised no-op cases are acknowledged with the normal
success body so the sender does not retry them.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from flowsync.api.deps import get_reconciliation_service
from flowsync.core.exceptions import NotFoundError
from flowsync.core.logging import get_logger
from flowsync.domain.schemas.common import ErrorResponse, MessageResponse
from flowsync.domain.schemas.event import ExecutionNotification
from flowsync.domain.services.reconciliation import ReconciliationService

logger = get_logger(__name__)
router = APIRouter()

FLOW_UPDATED = "Flow Updated"


@router.post(
    "/flow-execution",
    response_model=MessageResponse,
    summary="Receive flow execution notification",
    responses={502: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def receive_flow_execution_event(
    payload: Any = Body(default=None),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> MessageResponse:
    """Reconcile the execution a notification refers to."""
    notification = ExecutionNotification.parse(payload)
    if notification is None:
        logger.info("Notification ignored, status, flow name or execution id missing")
        return MessageResponse(message=FLOW_UPDATED)

    try:
        result = service.handle_notification(notification)
    except NotFoundError as e:
        logger.info("Notification not applicable", reason=e.message, **e.details)
        return MessageResponse(message=FLOW_UPDATED)

    logger.info(
        "Notification handled",
        flow_name=result.flow_name,
        execution_id=result.execution_id,
        outcome=result.outcome.value,
        promotion=result.promotion.value if result.promotion else None,
    )
    return MessageResponse(message=FLOW_UPDATED)
