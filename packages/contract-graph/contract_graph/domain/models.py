"""
Dependency Graph Domain Models

Contract version 노드, 의존성 엣지, 그리고 query 결과 레코드.

- Immutable (frozen dataclasses)
- Query results are plain records with ``to_dict()`` for direct serialization
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# contract_id / version_label must never contain it, so node ids stay unique
NODE_ID_SEPARATOR = "@"


class ReferenceKind(str, Enum):
    """
    Closed set of reference kinds.

    Declaration order is the sort rank used by dependency queries
    (interface < client < import).
    """

    INTERFACE = "interface"
    CLIENT = "client"
    IMPORT = "import"

    @property
    def rank(self) -> int:
        return _KIND_RANK[self]


_KIND_RANK = {kind: index for index, kind in enumerate(ReferenceKind)}


class QueryKind(str, Enum):
    """Cacheable query kinds"""

    DEPENDENCIES = "dependencies"
    DEPENDENTS = "dependents"
    IMPACT = "impact"
    EXPORT = "export"
    TREE = "tree"
    STATS = "stats"


@dataclass(frozen=True)
class Contract:
    """Registry contract (graph는 참조만 함)"""

    contract_id: str
    name: str


@dataclass(frozen=True)
class ContractVersion:
    """
    Graph node: one published version of one contract.

    Example:
        v = ContractVersion("CTOKEN", "1.0.0", "ab12...")
        v.node_id  # "CTOKEN@1.0.0"
    """

    contract_id: str
    version_label: str
    interface_hash: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return (self.contract_id, self.version_label)

    @property
    def node_id(self) -> str:
        return f"{self.contract_id}{NODE_ID_SEPARATOR}{self.version_label}"

    @property
    def sort_key(self) -> tuple[str, str]:
        return self.key

    def __str__(self) -> str:
        return self.node_id


@dataclass(frozen=True)
class ContractReference:
    """Extractor output: a declared reference to another contract."""

    target_contract_id: str
    kind: ReferenceKind
    constraint: str = field(default="*", compare=False)


@dataclass(frozen=True)
class DependencyEdge:
    """
    Directed edge from the dependent version to the depended-upon contract.

    Identity is (from_version, to_contract_id, kind); ``constraint`` is carried
    along for display only.
    """

    from_version: ContractVersion
    to_contract_id: str
    kind: ReferenceKind
    constraint: str = field(default="*", compare=False)

    @classmethod
    def from_reference(cls, version: ContractVersion, reference: ContractReference) -> "DependencyEdge":
        return cls(
            from_version=version,
            to_contract_id=reference.target_contract_id,
            kind=reference.kind,
            constraint=reference.constraint,
        )


# ============================================================
# Query result records
# ============================================================


@dataclass(frozen=True)
class DependencyRecord:
    """Direct dependency (forward edge)"""

    from_version: ContractVersion
    to_contract_id: str
    kind: ReferenceKind
    constraint: str
    resolved: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.from_version.node_id,
            "to": self.to_contract_id,
            "kind": self.kind.value,
            "constraint": self.constraint,
            "resolved": self.resolved,
        }


@dataclass(frozen=True)
class DependentRecord:
    """Direct dependent (reverse edge)"""

    from_version: ContractVersion
    kind: ReferenceKind

    def to_dict(self) -> dict[str, Any]:
        return {
            "contractId": self.from_version.contract_id,
            "versionLabel": self.from_version.version_label,
            "kind": self.kind.value,
        }


@dataclass(frozen=True)
class ImpactRecord:
    """Impact analysis entry (min hop count from the origin)"""

    version: ContractVersion
    depth: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "contractId": self.version.contract_id,
            "versionLabel": self.version.version_label,
            "depth": self.depth,
        }


@dataclass(frozen=True)
class DependencyTreeNode:
    """
    Nested dependency tree node.

    Unresolved targets have ``resolved=False`` and ``version_label=None``.
    """

    contract_id: str
    name: str
    kind: ReferenceKind | None
    constraint: str
    resolved: bool
    version_label: str | None
    dependencies: tuple["DependencyTreeNode", ...] = ()
    truncated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "contract_id": self.contract_id,
            "name": self.name,
            "kind": self.kind.value if self.kind else None,
            "constraint_to_parent": self.constraint,
            "resolved": self.resolved,
            "version_label": self.version_label,
            "truncated": self.truncated,
            "dependencies": [child.to_dict() for child in self.dependencies],
        }


@dataclass(frozen=True)
class GraphStats:
    """Graph-wide counters for one snapshot"""

    epoch: int
    contracts: int
    versions: int
    edges: int
    unresolved_targets: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "epoch": self.epoch,
            "contracts": self.contracts,
            "versions": self.versions,
            "edges": self.edges,
            "unresolved_targets": self.unresolved_targets,
        }
