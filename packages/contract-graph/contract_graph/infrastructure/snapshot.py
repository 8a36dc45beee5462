"""
GraphSnapshot - Immutable Point-in-Time Graph

Forward index (version -> edges) + reverse index (contract -> edges pointing at it).

Copy-on-Write:
- 새 snapshot은 이전 snapshot의 index mapping을 shallow copy
- 영향받는 adjacency tuple만 새로 할당 (나머지는 structural sharing)
- Published snapshot은 절대 변경되지 않음

Performance:
    - edges_from / edges_to / versions_of: O(1)
    - with_version: O(V + C) shallow copy + O(k) for k new edges
"""

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from ..domain.models import Contract, ContractVersion, DependencyEdge

VersionKey = tuple[str, str]


class GraphSnapshot:
    """
    Immutable adjacency structure at one committed epoch.

    Example:
        snap = GraphSnapshot.empty()
        candidate = snap.with_version(v, edges)
        candidate.edges_from(v)
    """

    __slots__ = ("_epoch", "_versions", "_by_contract", "_forward", "_reverse", "_contracts", "_edge_count")

    def __init__(
        self,
        epoch: int,
        versions: dict[VersionKey, ContractVersion],
        by_contract: dict[str, tuple[ContractVersion, ...]],
        forward: dict[VersionKey, tuple[DependencyEdge, ...]],
        reverse: dict[str, tuple[DependencyEdge, ...]],
        contracts: dict[str, Contract],
        edge_count: int,
    ):
        self._epoch = epoch
        self._versions: Mapping[VersionKey, ContractVersion] = MappingProxyType(versions)
        self._by_contract: Mapping[str, tuple[ContractVersion, ...]] = MappingProxyType(by_contract)
        self._forward: Mapping[VersionKey, tuple[DependencyEdge, ...]] = MappingProxyType(forward)
        self._reverse: Mapping[str, tuple[DependencyEdge, ...]] = MappingProxyType(reverse)
        self._contracts: Mapping[str, Contract] = MappingProxyType(contracts)
        self._edge_count = edge_count

    def __setattr__(self, name, value):
        if hasattr(self, "_edge_count"):
            raise AttributeError("GraphSnapshot is immutable")
        object.__setattr__(self, name, value)

    @classmethod
    def empty(cls) -> "GraphSnapshot":
        return cls(0, {}, {}, {}, {}, {}, 0)

    # ------------------------------------------------------------------
    # Construction (copy-on-write)
    # ------------------------------------------------------------------

    def with_version(
        self,
        version: ContractVersion,
        edges: Iterable[DependencyEdge],
        name: str | None = None,
    ) -> "GraphSnapshot":
        """
        Build the candidate snapshot for ``epoch + 1`` containing one more version.

        Duplicate (from, to, kind) edges collapse to the first occurrence.
        Does not check for duplicate versions or cycles (GraphStore가 담당).
        """
        new_edges: list[DependencyEdge] = []
        seen: set[DependencyEdge] = set()
        for edge in edges:
            if edge.from_version != version:
                raise ValueError(f"edge source {edge.from_version} does not match published version {version}")
            if edge in seen:
                continue
            seen.add(edge)
            new_edges.append(edge)

        versions = dict(self._versions)
        versions[version.key] = version

        by_contract = dict(self._by_contract)
        by_contract[version.contract_id] = by_contract.get(version.contract_id, ()) + (version,)

        forward = dict(self._forward)
        forward[version.key] = tuple(new_edges)

        reverse = dict(self._reverse)
        for edge in new_edges:
            reverse[edge.to_contract_id] = reverse.get(edge.to_contract_id, ()) + (edge,)

        contracts = dict(self._contracts)
        contracts[version.contract_id] = Contract(version.contract_id, name or version.contract_id)

        return GraphSnapshot(
            epoch=self._epoch + 1,
            versions=versions,
            by_contract=by_contract,
            forward=forward,
            reverse=reverse,
            contracts=contracts,
            edge_count=self._edge_count + len(new_edges),
        )

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def version_count(self) -> int:
        return len(self._versions)

    @property
    def edge_count(self) -> int:
        return self._edge_count

    @property
    def contract_count(self) -> int:
        return len(self._by_contract)

    def has_version(self, contract_id: str, version_label: str) -> bool:
        return (contract_id, version_label) in self._versions

    def contains(self, version: ContractVersion) -> bool:
        return self._versions.get(version.key) == version

    def get_version(self, contract_id: str, version_label: str) -> ContractVersion | None:
        return self._versions.get((contract_id, version_label))

    def versions(self) -> Iterator[ContractVersion]:
        """All version nodes in publish order"""
        return iter(self._versions.values())

    def versions_of(self, contract_id: str) -> tuple[ContractVersion, ...]:
        """Committed versions of a contract in publish order (empty if unresolved)"""
        return self._by_contract.get(contract_id, ())

    def latest_version(self, contract_id: str) -> ContractVersion | None:
        versions = self._by_contract.get(contract_id)
        return versions[-1] if versions else None

    def edges_from(self, version: ContractVersion) -> tuple[DependencyEdge, ...]:
        return self._forward.get(version.key, ())

    def edges_to(self, contract_id: str) -> tuple[DependencyEdge, ...]:
        return self._reverse.get(contract_id, ())

    def edges(self) -> Iterator[DependencyEdge]:
        """All edges in insertion order"""
        for key in self._versions:
            yield from self._forward.get(key, ())

    def is_resolved(self, contract_id: str) -> bool:
        """Contract has at least one committed version"""
        return contract_id in self._by_contract

    def is_known_contract(self, contract_id: str) -> bool:
        """Published, or referenced by at least one edge"""
        return contract_id in self._by_contract or contract_id in self._reverse

    def contract(self, contract_id: str) -> Contract | None:
        return self._contracts.get(contract_id)

    def display_name(self, contract_id: str) -> str:
        contract = self._contracts.get(contract_id)
        return contract.name if contract else contract_id

    def unresolved_targets(self) -> list[str]:
        """Referenced contract ids with no committed version (insertion order)"""
        return [cid for cid in self._reverse if cid not in self._by_contract]

    def __repr__(self) -> str:
        return f"GraphSnapshot(epoch={self._epoch}, versions={len(self._versions)}, edges={self._edge_count})"
