"""
Domain services.
"""

from flowsync.domain.services.execution_history import ExecutionHistoryFetcher
from flowsync.domain.services.flow_registry import FlowRegistry
from flowsync.domain.services.promotion import PullModePromoter
from flowsync.domain.services.reconciliation import ReconciliationService
from flowsync.domain.services.watermark import WatermarkFieldResolver


__all__ = [
    "ExecutionHistoryFetcher",
    "FlowRegistry",
    "PullModePromoter",
    "ReconciliationService",
    "WatermarkFieldResolver",
]
