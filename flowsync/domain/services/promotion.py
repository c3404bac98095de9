"""
Pull-mode promotion.

Moves a flow from historical (full) extraction to scheduled incremental
extraction once a watermark field is known. The engine definition is
replaced first; the local flow_type is only written after that succeeds.
"""

from typing import Any, Dict, Optional

from flowsync.core.config import Settings
from flowsync.core.logging import get_logger
from flowsync.domain.models.flow import FlowType
from flowsync.domain.repositories.flow import FlowRepository
from flowsync.domain.schemas.execution import PromotionOutcome
from flowsync.domain.schemas.flow import FlowContext
from flowsync.domain.services.watermark import WatermarkFieldResolver
from flowsync.infrastructure.appflow import AppFlowClient

logger = get_logger(__name__)

SOURCE_CONFIG_KEYS = (
    "connectorType",
    "apiVersion",
    "connectorProfileName",
    "sourceConnectorProperties",
)


def build_scheduled_trigger(schedule_expression: str, offset: int = 0) -> Dict[str, Any]:
    scheduled: Dict[str, Any] = {
        "scheduleExpression": schedule_expression,
        "dataPullMode": "Incremental",
    }
    if offset:
        scheduled["scheduleOffset"] = offset
    return {
        "triggerType": "Scheduled",
        "triggerProperties": {"Scheduled": scheduled},
    }


def partition_destination(destination: Dict[str, Any]) -> Dict[str, Any]:
    """Daily path partitions with a single aggregated file for S3 sinks."""
    if destination.get("connectorType") != "S3":
        return destination

    props = destination.get("destinationConnectorProperties", {}).get("S3", {})
    output_format = dict(props.get("s3OutputFormatConfig") or {})
    output_format["prefixConfig"] = {"prefixType": "PATH", "prefixFormat": "DAY"}
    output_format["aggregationConfig"] = {"aggregationType": "SingleFile"}

    s3_props = {key: value for key, value in props.items() if key != "s3OutputFormatConfig"}
    s3_props["s3OutputFormatConfig"] = output_format

    partitioned = dict(destination)
    partitioned["destinationConnectorProperties"] = {"S3": s3_props}
    return partitioned


def build_incremental_definition(
    current: Dict[str, Any],
    watermark_field: str,
    schedule_expression: str,
    schedule_offset: int = 0,
) -> Dict[str, Any]:
    """
    Build an update_flow request from a describe_flow response.

    Destination and tasks are carried over; only the trigger and the
    source pull mode change.
    """
    current_source = current.get("sourceFlowConfig", {})
    source_config = {
        key: current_source[key] for key in SOURCE_CONFIG_KEYS if key in current_source
    }
    source_config["incrementalPullConfig"] = {"datetimeTypeFieldName": watermark_field}

    definition: Dict[str, Any] = {
        "flowName": current["flowName"],
        "triggerConfig": build_scheduled_trigger(schedule_expression, schedule_offset),
        "sourceFlowConfig": source_config,
        "destinationFlowConfigList": [
            partition_destination(d) for d in current.get("destinationFlowConfigList", [])
        ],
        "tasks": current.get("tasks", []),
    }
    if current.get("description"):
        definition["description"] = current["description"]
    return definition


class PullModePromoter:
    """Promotes historical flows to incremental pull mode."""

    def __init__(
        self,
        appflow: AppFlowClient,
        flow_repo: FlowRepository,
        settings: Settings,
        resolver: Optional[WatermarkFieldResolver] = None,
    ):
        self.appflow = appflow
        self.flow_repo = flow_repo
        self.settings = settings
        self.resolver = resolver or WatermarkFieldResolver(appflow)

    def promote(self, flow: FlowContext) -> PromotionOutcome:
        """
        Replace the engine definition and mark the flow incremental.

        Engine failures propagate as ExternalServiceError before anything
        is persisted.
        """
        if flow.flow_type != FlowType.HISTORICAL:
            return PromotionOutcome.SKIPPED_ALREADY_INCREMENTAL

        current = self.appflow.describe_flow(flow.name)
        source = current.get("sourceFlowConfig", {})

        watermark_field = self.resolver.resolve(
            flow.event_type,
            connector_type=source.get("connectorType"),
            connector_profile_name=source.get("connectorProfileName") or flow.connection_name,
            api_version=source.get("apiVersion"),
        )
        if not watermark_field:
            logger.warning(
                "No watermark field found, flow left historical for manual follow-up",
                flow_name=flow.name,
                event_type=flow.event_type,
                connection_name=flow.connection_name,
            )
            return PromotionOutcome.SKIPPED_NO_WATERMARK

        definition = build_incremental_definition(
            current,
            watermark_field,
            self.settings.incremental_schedule_expression,
            self.settings.incremental_schedule_offset,
        )
        flow_status = self.appflow.update_flow(definition)

        self.flow_repo.mark_incremental(flow.id)
        logger.info(
            "Flow promoted to incremental",
            flow_name=flow.name,
            watermark_field=watermark_field,
            flow_status=flow_status,
        )
        return PromotionOutcome.PROMOTED
