"""
Graph Store

Holds the current GraphSnapshot and commits new versions atomically.

Read path:  current() - lock-free read of the latest swapped-in reference
Write path: duplicate check -> candidate build (CoW) -> cycle check -> hook -> swap
"""

import threading
from collections.abc import Callable, Sequence

from ..common.observability import get_logger
from ..domain.exceptions import CycleDetectedError, DuplicateVersionError
from ..domain.models import ContractVersion, DependencyEdge
from .cycle_detector import detect_cycle
from .snapshot import GraphSnapshot

logger = get_logger(__name__)

BeforePublishHook = Callable[[GraphSnapshot, ContractVersion], None]


class GraphStore:
    """
    Single-writer, many-reader graph store.

    Readers hold an immutable snapshot for their whole operation, so a concurrent
    commit never shows them a half-updated graph.

    Example:
        store = GraphStore()
        snap = store.commit_new_version(v, edges)
        store.current() is snap  # True
    """

    def __init__(self, initial: GraphSnapshot | None = None):
        self._current = initial or GraphSnapshot.empty()
        self._write_lock = threading.Lock()

    def current(self) -> GraphSnapshot:
        """O(1), lock-free"""
        return self._current

    @property
    def epoch(self) -> int:
        return self._current.epoch

    def commit_new_version(
        self,
        version: ContractVersion,
        edges: Sequence[DependencyEdge],
        name: str | None = None,
        before_publish: BeforePublishHook | None = None,
    ) -> GraphSnapshot:
        """
        Commit one new version node with its outgoing edges.

        Args:
            version: New version node
            edges: Outgoing edges (from_version must equal ``version``)
            name: Contract display name
            before_publish: Called with the validated candidate before the swap;
                an exception discards the candidate

        Returns:
            The new current snapshot

        Raises:
            DuplicateVersionError: (contract_id, version_label) already exists
            CycleDetectedError: edges would close a cycle
        """
        with self._write_lock:
            base = self._current

            if base.has_version(version.contract_id, version.version_label):
                raise DuplicateVersionError(version.contract_id, version.version_label)

            candidate = base.with_version(version, edges, name=name)

            cycle = detect_cycle(candidate, version, candidate.edges_from(version))
            if cycle is not None:
                # candidate는 버려짐, current는 그대로
                raise CycleDetectedError(cycle)

            if before_publish is not None:
                before_publish(candidate, version)

            self._current = candidate

        logger.debug(
            "snapshot_committed",
            version=version.node_id,
            epoch=candidate.epoch,
            edges=len(candidate.edges_from(version)),
        )
        return candidate
