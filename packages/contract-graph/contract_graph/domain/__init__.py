"""
Domain Layer - Contract Graph

외부 인프라에 의존하지 않는 순수한 도메인 객체들.
"""

from .exceptions import (
    ContractGraphError,
    CycleDetectedError,
    DuplicateVersionError,
    MalformedInterfaceError,
    NotFoundError,
    PublicationLogError,
)
from .export_models import ExportEdge, ExportNode, GraphExport
from .interface_models import InterfaceBinding, InterfaceDescription
from .models import (
    Contract,
    ContractReference,
    ContractVersion,
    DependencyEdge,
    DependencyRecord,
    DependencyTreeNode,
    DependentRecord,
    GraphStats,
    ImpactRecord,
    QueryKind,
    ReferenceKind,
)

__all__ = [
    # Exceptions
    "ContractGraphError",
    "CycleDetectedError",
    "DuplicateVersionError",
    "MalformedInterfaceError",
    "NotFoundError",
    "PublicationLogError",
    # Models
    "Contract",
    "ContractReference",
    "ContractVersion",
    "DependencyEdge",
    "ReferenceKind",
    "QueryKind",
    # Query records
    "DependencyRecord",
    "DependentRecord",
    "ImpactRecord",
    "DependencyTreeNode",
    "GraphStats",
    # Boundary models
    "InterfaceBinding",
    "InterfaceDescription",
    "ExportNode",
    "ExportEdge",
    "GraphExport",
]
