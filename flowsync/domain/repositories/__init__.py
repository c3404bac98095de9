"""
Data access repositories.
"""

from flowsync.domain.repositories.flow import FlowRepository


__all__ = ["FlowRepository"]
