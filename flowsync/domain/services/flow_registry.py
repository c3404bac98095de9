"""
Flow registry lookup.
"""

from sqlalchemy.orm import Session

from flowsync.core.exceptions import FlowNotFoundError
from flowsync.domain.repositories.flow import FlowRepository
from flowsync.domain.schemas.flow import FlowContext


class FlowRegistry:
    """Reads tracked flows by name."""

    def __init__(self, db: Session):
        self.flow_repo = FlowRepository(db)

    def get(self, flow_name: str) -> FlowContext:
        """Raises FlowNotFoundError if the flow is not tracked."""
        flow = self.flow_repo.get_context_by_name(flow_name)
        if flow is None:
            raise FlowNotFoundError(flow_name)
        return flow
