"""
Tests for the flow repository against SQLite.
"""

from datetime import datetime

from sqlalchemy import UniqueConstraint

from flowsync.domain.models import Flow, FlowType
from flowsync.domain.repositories.flow import FlowRepository


def test_context_merges_connection_columns(db_session, make_flow):
    flow_id = make_flow(name="F1", event_type="SentEvent")

    ctx = FlowRepository(db_session).get_context_by_name("F1")

    assert ctx.id == flow_id
    assert ctx.event_type == "SentEvent"
    assert ctx.flow_type == FlowType.HISTORICAL
    assert ctx.is_historical
    assert ctx.connection_name == "F1-profile"
    assert ctx.user_id == "user-1"
    assert ctx.connection_connector_id == "freshsales"
    assert ctx.connection_status == "ACTIVE"


def test_unknown_flow_returns_none(db_session, make_flow):
    make_flow(name="F1")
    assert FlowRepository(db_session).get_context_by_name("F2") is None


def test_apply_execution_increments_server_side(db_session, make_flow):
    flow_id = make_flow(last_execution_records=10, total_execution_time=1.5)
    repo = FlowRepository(db_session)

    applied = repo.apply_execution(
        flow_id,
        execution_id="E1",
        last_execution_time=datetime(2025, 1, 1),
        last_execution_status="Successful",
        records_delta=5,
        duration_delta=2.5,
    )
    db_session.commit()

    assert applied is True
    flow = db_session.get(Flow, flow_id)
    assert flow.last_execution_records == 15
    assert flow.total_execution_time == 4.0
    assert flow.status == "Active"


def test_apply_execution_skips_reconciled_execution(db_session, make_flow):
    flow_id = make_flow(last_execution_id="E1", last_execution_records=10)
    repo = FlowRepository(db_session)

    applied = repo.apply_execution(
        flow_id,
        execution_id="E1",
        last_execution_time=None,
        last_execution_status="Error",
        records_delta=5,
        duration_delta=2.5,
        status="Errored",
    )
    db_session.commit()

    assert applied is False
    flow = db_session.get(Flow, flow_id)
    assert flow.last_execution_records == 10
    assert flow.status == "Active"


def test_mark_incremental(db_session, make_flow):
    flow_id = make_flow()
    FlowRepository(db_session).mark_incremental(flow_id)
    db_session.commit()
    assert db_session.get(Flow, flow_id).flow_type == FlowType.INCREMENTAL.value


def test_flow_name_has_single_unique_index():
    table = Flow.__table__
    assert not [c for c in table.constraints if isinstance(c, UniqueConstraint)]
    name_indexes = [i for i in table.indexes if [c.name for c in i.columns] == ["name"]]
    assert len(name_indexes) == 1
    assert name_indexes[0].unique
