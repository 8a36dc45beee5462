"""
Cycle Detector

새 version node의 edge set이 cycle을 닫는지 commit 전에 검사.

Algorithm:
    For each new edge (new_version -> T), DFS from every committed version of T
    following forward edges. Reaching new_version again closes a cycle.
    Edges resolve to every committed version of their target contract.

Determinism:
    new edges in insertion order, target versions in publish order,
    forward edges in insertion order. First path found wins.

Performance: O(V+E) per publish (visited set shared across all start nodes)
"""

from collections.abc import Iterable, Iterator

from ..common.observability import get_logger
from ..domain.models import ContractVersion, DependencyEdge
from .snapshot import GraphSnapshot

logger = get_logger(__name__)

CyclePath = tuple[ContractVersion, ...]


def _successors(snapshot: GraphSnapshot, node: ContractVersion) -> Iterator[ContractVersion]:
    for edge in snapshot.edges_from(node):
        yield from snapshot.versions_of(edge.to_contract_id)


def detect_cycle(
    snapshot: GraphSnapshot,
    new_version: ContractVersion,
    new_edges: Iterable[DependencyEdge],
) -> CyclePath | None:
    """
    Check whether ``new_edges`` close a cycle through ``new_version``.

    Args:
        snapshot: Candidate snapshot (already contains new_version and its edges)
        new_version: The version being published
        new_edges: Its outgoing edges, in insertion order

    Returns:
        Path ``(new_version, ..., new_version)`` or None
    """
    visited: set[tuple[str, str]] = set()

    for edge in new_edges:
        for start in snapshot.versions_of(edge.to_contract_id):
            path = _search(snapshot, start, new_version, visited)
            if path is not None:
                cycle = (new_version, *path)
                logger.debug(
                    "cycle_detected",
                    version=new_version.node_id,
                    path=[v.node_id for v in cycle],
                )
                return cycle

    return None


def _search(
    snapshot: GraphSnapshot,
    start: ContractVersion,
    goal: ContractVersion,
    visited: set[tuple[str, str]],
) -> list[ContractVersion] | None:
    """
    Iterative DFS. Returns the path ``start .. goal`` or None.

    The explicit stack mirrors the current DFS path, so no parent map is needed.
    """
    if start.key == goal.key:
        return [start]
    if start.key in visited:
        return None

    visited.add(start.key)
    path: list[ContractVersion] = [start]
    stack: list[Iterator[ContractVersion]] = [_successors(snapshot, start)]

    while stack:
        nxt = next(stack[-1], None)
        if nxt is None:
            stack.pop()
            path.pop()
            continue

        if nxt.key == goal.key:
            return path + [nxt]
        if nxt.key in visited:
            continue

        visited.add(nxt.key)
        path.append(nxt)
        stack.append(_successors(snapshot, nxt))

    return None
