"""
Tests for pull-mode promotion and the incremental definition builder.
"""

import pytest

from conftest import flow_definition
from flowsync.core.exceptions import ExternalServiceError
from flowsync.domain.models import Flow, FlowType
from flowsync.domain.repositories.flow import FlowRepository
from flowsync.domain.schemas.execution import PromotionOutcome
from flowsync.domain.services.promotion import (
    PullModePromoter,
    build_incremental_definition,
    partition_destination,
)


@pytest.fixture
def promoter(db_session, mock_appflow, settings):
    return PullModePromoter(mock_appflow, FlowRepository(db_session), settings)


def context(db_session, name="F1"):
    return FlowRepository(db_session).get_context_by_name(name)


def flow_type_of(db_session, flow_id):
    db_session.commit()
    db_session.expire_all()
    return db_session.get(Flow, flow_id).flow_type


class TestBuildIncrementalDefinition:
    def test_trigger_and_pull_mode(self):
        definition = build_incremental_definition(
            flow_definition(), "updated_at", "rate(1hours)"
        )

        assert definition["flowName"] == "F1"
        assert definition["triggerConfig"] == {
            "triggerType": "Scheduled",
            "triggerProperties": {
                "Scheduled": {
                    "scheduleExpression": "rate(1hours)",
                    "dataPullMode": "Incremental",
                }
            },
        }
        source = definition["sourceFlowConfig"]
        assert source["incrementalPullConfig"] == {"datetimeTypeFieldName": "updated_at"}
        assert source["connectorProfileName"] == "F1-profile"
        assert source["apiVersion"] == "v2"

    def test_tasks_and_destination_carried_over(self):
        current = flow_definition()
        definition = build_incremental_definition(current, "updated_at", "rate(1hours)")

        assert definition["tasks"] == current["tasks"]
        s3 = definition["destinationFlowConfigList"][0]["destinationConnectorProperties"]["S3"]
        assert s3["bucketName"] == "raw-bucket"
        assert s3["bucketPrefix"] == "user-1/F1-profile"
        assert s3["s3OutputFormatConfig"] == {
            "fileType": "JSON",
            "prefixConfig": {"prefixType": "PATH", "prefixFormat": "DAY"},
            "aggregationConfig": {"aggregationType": "SingleFile"},
        }

    def test_schedule_offset_included_when_set(self):
        definition = build_incremental_definition(
            flow_definition(), "EventDate", "rate(1days)", schedule_offset=300
        )
        scheduled = definition["triggerConfig"]["triggerProperties"]["Scheduled"]
        assert scheduled["scheduleOffset"] == 300

    def test_non_s3_destination_unchanged(self):
        destination = {
            "connectorType": "Redshift",
            "destinationConnectorProperties": {"Redshift": {"object": "t"}},
        }
        assert partition_destination(destination) == destination


class TestPullModePromoter:
    def test_promotes_with_static_watermark(self, promoter, db_session, make_flow, mock_appflow):
        flow_id = make_flow(event_type="contacts")
        mock_appflow.describe_flow.return_value = flow_definition()
        mock_appflow.update_flow.return_value = "Active"

        outcome = promoter.promote(context(db_session))

        assert outcome == PromotionOutcome.PROMOTED
        mock_appflow.describe_connector_entity.assert_not_called()
        mock_appflow.update_flow.assert_called_once()
        assert flow_type_of(db_session, flow_id) == FlowType.INCREMENTAL.value

    def test_introspects_unknown_entity(self, promoter, db_session, make_flow, mock_appflow):
        flow_id = make_flow(event_type="deals")
        mock_appflow.describe_flow.return_value = flow_definition(entity="deals")
        mock_appflow.describe_connector_entity.return_value = [
            {
                "identifier": "last_modified",
                "sourceProperties": {
                    "isQueryable": True,
                    "isTimestampFieldForIncrementalQueries": True,
                },
            }
        ]

        outcome = promoter.promote(context(db_session))

        assert outcome == PromotionOutcome.PROMOTED
        mock_appflow.describe_connector_entity.assert_called_once_with(
            "deals",
            connector_type="CustomConnector",
            connector_profile_name="F1-profile",
            api_version="v2",
        )
        definition = mock_appflow.update_flow.call_args[0][0]
        assert definition["sourceFlowConfig"]["incrementalPullConfig"] == {
            "datetimeTypeFieldName": "last_modified"
        }
        assert flow_type_of(db_session, flow_id) == FlowType.INCREMENTAL.value

    def test_no_watermark_leaves_flow_historical(
        self, promoter, db_session, make_flow, mock_appflow
    ):
        flow_id = make_flow(event_type="deals")
        mock_appflow.describe_flow.return_value = flow_definition(entity="deals")
        mock_appflow.describe_connector_entity.return_value = []

        outcome = promoter.promote(context(db_session))

        assert outcome == PromotionOutcome.SKIPPED_NO_WATERMARK
        mock_appflow.update_flow.assert_not_called()
        assert flow_type_of(db_session, flow_id) == FlowType.HISTORICAL.value

    def test_introspection_failure_propagates(self, promoter, db_session, make_flow, mock_appflow):
        flow_id = make_flow(event_type="deals")
        mock_appflow.describe_flow.return_value = flow_definition(entity="deals")
        mock_appflow.describe_connector_entity.side_effect = ExternalServiceError(
            "AppFlow describe_connector_entity failed"
        )

        with pytest.raises(ExternalServiceError):
            promoter.promote(context(db_session))

        mock_appflow.update_flow.assert_not_called()
        assert flow_type_of(db_session, flow_id) == FlowType.HISTORICAL.value

    def test_replace_failure_leaves_flow_historical(
        self, promoter, db_session, make_flow, mock_appflow
    ):
        flow_id = make_flow()
        mock_appflow.describe_flow.return_value = flow_definition()
        mock_appflow.update_flow.side_effect = ExternalServiceError("AppFlow update_flow failed")

        with pytest.raises(ExternalServiceError):
            promoter.promote(context(db_session))

        assert flow_type_of(db_session, flow_id) == FlowType.HISTORICAL.value

    def test_already_incremental_is_noop(self, promoter, db_session, make_flow, mock_appflow):
        flow_id = make_flow(flow_type=FlowType.INCREMENTAL.value)

        outcome = promoter.promote(context(db_session))

        assert outcome == PromotionOutcome.SKIPPED_ALREADY_INCREMENTAL
        mock_appflow.describe_flow.assert_not_called()
        mock_appflow.update_flow.assert_not_called()
        assert flow_type_of(db_session, flow_id) == FlowType.INCREMENTAL.value

    def test_second_promotion_is_noop(self, promoter, db_session, make_flow, mock_appflow):
        make_flow()
        mock_appflow.describe_flow.return_value = flow_definition()

        assert promoter.promote(context(db_session)) == PromotionOutcome.PROMOTED
        db_session.commit()
        assert (
            promoter.promote(context(db_session))
            == PromotionOutcome.SKIPPED_ALREADY_INCREMENTAL
        )
        assert mock_appflow.update_flow.call_count == 1
