"""
Watermark field resolution.

Picks the entity attribute a flow should use as its incremental cursor.
"""

from typing import Any, Dict, List, Optional

from flowsync.core.logging import get_logger
from flowsync.infrastructure.appflow import AppFlowClient

logger = get_logger(__name__)

# Entities whose cursor field is known without asking the engine.
STATIC_WATERMARK_FIELDS: Dict[str, str] = {
    "NotSentEvent": "EventDate",
    "SentEvent": "EventDate",
    "sales_accounts": "updated_at",
    "contacts": "updated_at",
}


def select_timestamp_field(fields: List[Dict[str, Any]]) -> Optional[str]:
    """First queryable field flagged as the incremental timestamp, else None."""
    for field in fields:
        props = field.get("sourceProperties") or {}
        if not props.get("isQueryable"):
            continue
        if props.get("isTimestampFieldForIncrementalQueries"):
            return field.get("identifier")
    return None


class WatermarkFieldResolver:
    """Resolves the incremental cursor field for a source entity."""

    def __init__(self, appflow: AppFlowClient):
        self.appflow = appflow

    def resolve(
        self,
        event_type: str,
        connector_type: Optional[str] = None,
        connector_profile_name: Optional[str] = None,
        api_version: Optional[str] = None,
    ) -> Optional[str]:
        """
        Return the watermark field for event_type, or None if the entity
        exposes no timestamp field. Introspection failures propagate as
        ExternalServiceError.
        """
        static_field = STATIC_WATERMARK_FIELDS.get(event_type)
        if static_field:
            return static_field

        fields = self.appflow.describe_connector_entity(
            event_type,
            connector_type=connector_type,
            connector_profile_name=connector_profile_name,
            api_version=api_version,
        )
        field = select_timestamp_field(fields)
        logger.info(
            "Watermark field introspected",
            event_type=event_type,
            field_count=len(fields),
            watermark_field=field,
        )
        return field
