"""
Contract Graph

Dependency graph engine for the versioned smart-contract registry.

주요 기능:
- Reference extraction from published contract interfaces
- Immutable, epoch-versioned graph snapshots (single writer, many readers)
- Publish-time cycle detection with the offending path
- Dependencies / dependents / impact analysis / export queries
- Epoch-invalidated result cache
"""

__version__ = "0.3.0"

from .application import DependencyGraphService, PublicationCoordinator, PublishResult, QueryEngine
from .domain import (
    ContractGraphError,
    ContractVersion,
    CycleDetectedError,
    DependencyEdge,
    DuplicateVersionError,
    MalformedInterfaceError,
    NotFoundError,
    PublicationLogError,
    ReferenceKind,
)
from .infrastructure import GraphSnapshot, GraphStore, PublicationLog, ResultCache, extract

__all__ = [
    "__version__",
    # Application
    "DependencyGraphService",
    "PublicationCoordinator",
    "PublishResult",
    "QueryEngine",
    # Infrastructure
    "GraphSnapshot",
    "GraphStore",
    "PublicationLog",
    "ResultCache",
    "extract",
    # Domain
    "ContractVersion",
    "DependencyEdge",
    "ReferenceKind",
    "ContractGraphError",
    "CycleDetectedError",
    "DuplicateVersionError",
    "MalformedInterfaceError",
    "NotFoundError",
    "PublicationLogError",
]
