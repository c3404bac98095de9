"""
Flow registry projections.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from flowsync.domain.models.flow import FlowType
from flowsync.domain.schemas.common import BaseSchema


class FlowContext(BaseSchema):
    """
    A flow row merged with its connection.

    This is what the registry lookup hands to reconciliation: every flow
    column plus the connection columns needed to talk to the engine.
    """

    id: int
    name: str
    connection_id: int
    flow_type: FlowType
    status: Optional[str] = None
    event_type: str
    connector_id: Optional[str] = None
    last_execution_id: Optional[str] = None
    last_execution_time: Optional[datetime] = None
    last_execution_status: Optional[str] = None
    last_execution_records: int = 0
    total_execution_time: float = 0.0

    connection_name: str = Field(..., description="Engine connector profile name")
    user_id: str
    connection_connector_id: Optional[str] = None
    connection_status: Optional[str] = None

    @property
    def is_historical(self) -> bool:
        return self.flow_type == FlowType.HISTORICAL
