"""
Application Layer - Contract Graph

Publish orchestration, queries, and the API-facing service.
"""

from .coordinator import PublicationCoordinator, PublishResult
from .query_engine import QueryEngine
from .service import DependencyGraphService

__all__ = [
    "DependencyGraphService",
    "PublicationCoordinator",
    "PublishResult",
    "QueryEngine",
]
