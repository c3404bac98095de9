"""
API dependencies for dependency injection.

The database manager and engine client are built once in the application
lifespan and read from app.state here.
"""

from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from flowsync.core.config import Settings, get_settings
from flowsync.core.database import DatabaseManager
from flowsync.domain.services.reconciliation import ReconciliationService
from flowsync.infrastructure.appflow import AppFlowClient


def get_db_manager(request: Request) -> DatabaseManager:
    return request.app.state.db


def get_db(
    db_manager: DatabaseManager = Depends(get_db_manager),
) -> Generator[Session, None, None]:
    """
    Get database session dependency (read-write).

    Commits on success, rolls back if the endpoint raises.
    """
    with db_manager.session() as session:
        yield session


def get_appflow_client(request: Request) -> AppFlowClient:
    return request.app.state.appflow


def get_reconciliation_service(
    db: Session = Depends(get_db),
    appflow: AppFlowClient = Depends(get_appflow_client),
    settings: Settings = Depends(get_settings),
) -> ReconciliationService:
    """Get reconciliation service dependency."""
    return ReconciliationService(db, appflow, settings)
