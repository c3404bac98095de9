"""
Execution history lookup.
"""

from flowsync.core.exceptions import ExecutionNotFoundError
from flowsync.core.logging import get_logger
from flowsync.domain.schemas.execution import FlowExecution
from flowsync.infrastructure.appflow import AppFlowClient

logger = get_logger(__name__)


class ExecutionHistoryFetcher:
    """Finds one execution in a flow's history."""

    def __init__(self, appflow: AppFlowClient):
        self.appflow = appflow

    def fetch(self, flow_name: str, execution_id: str) -> FlowExecution:
        """
        Return the execution with execution_id.

        Raises ExecutionNotFoundError when the engine does not (yet) list it.
        """
        records = self.appflow.list_flow_executions(flow_name)
        for record in records:
            if record.get("executionId") == execution_id:
                return FlowExecution.from_record(record)

        logger.info(
            "Execution not in history",
            flow_name=flow_name,
            execution_id=execution_id,
            history_size=len(records),
        )
        raise ExecutionNotFoundError(flow_name, execution_id)
