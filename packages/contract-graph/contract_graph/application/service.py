"""
Dependency Graph Service

API layer boundary: contract (+ optional version) identifiers in, plain records out.

Each call reads ``store.current()`` exactly once and uses that snapshot's epoch
for cache access, so a cached payload always matches the snapshot it was read
against.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from ..common.observability import get_logger
from ..config import Settings
from ..domain.exceptions import NotFoundError
from ..domain.export_models import GraphExport
from ..domain.models import (
    ContractVersion,
    DependencyRecord,
    DependencyTreeNode,
    DependentRecord,
    GraphStats,
    ImpactRecord,
    QueryKind,
)
from ..infrastructure.graph_store import GraphStore
from ..infrastructure.publication_log import PublicationLog
from ..infrastructure.result_cache import CacheKey, ResultCache
from ..infrastructure.snapshot import GraphSnapshot
from .coordinator import PublicationCoordinator, PublishResult
from .query_engine import QueryEngine

logger = get_logger(__name__)

T = TypeVar("T")


class DependencyGraphService:
    """
    Facade over coordinator + query engine + result cache.

    Example:
        service = DependencyGraphService()
        service.publish("CLIB", "1.0.0", {"contract_id": "CLIB"})
        service.publish("CTOKEN", "1.0.0", {"contract_id": "CTOKEN", "imports": ["CLIB"]})
        service.dependents("CLIB")      # [CTOKEN@1.0.0 (import)]
        service.impact("CLIB")          # [(CTOKEN@1.0.0, depth=1)]
    """

    def __init__(
        self,
        store: GraphStore | None = None,
        cache: ResultCache | None = None,
        publication_log: PublicationLog | None = None,
        query_engine: QueryEngine | None = None,
    ):
        self.store = store or GraphStore()
        self.cache = cache
        self.queries = query_engine or QueryEngine()
        self.coordinator = PublicationCoordinator(self.store, cache=cache, publication_log=publication_log)

    @classmethod
    def from_settings(cls, settings: Settings) -> "DependencyGraphService":
        """
        Build a service from settings; replays the publication log when configured.

        Raises:
            PublicationLogError: log is corrupt or inconsistent
        """
        cache = ResultCache(max_entries=settings.cache_max_entries) if settings.cache_enabled else None
        query_engine = QueryEngine(tree_max_depth=settings.tree_max_depth)

        if settings.publication_log_path is not None:
            service = cls.replay(settings.publication_log_path, cache=cache, query_engine=query_engine)
        else:
            service = cls(cache=cache, query_engine=query_engine)

        logger.info(
            "graph_service_ready",
            epoch=service.store.epoch,
            cache_enabled=cache is not None,
            publication_log=str(settings.publication_log_path) if settings.publication_log_path else None,
        )
        return service

    @classmethod
    def replay(
        cls,
        path: str | Path,
        cache: ResultCache | None = None,
        query_engine: QueryEngine | None = None,
    ) -> "DependencyGraphService":
        """
        Rebuild a service from a publication log; later publishes append to the same log.

        Raises:
            PublicationLogError: log is corrupt or inconsistent
        """
        publication_log = PublicationLog(path)
        store = GraphStore()
        publication_log.replay_into(store)
        return cls(store=store, cache=cache, publication_log=publication_log, query_engine=query_engine)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def publish(self, contract_id: str, version_label: str, interface_description: Any) -> PublishResult:
        return self.coordinator.publish(contract_id, version_label, interface_description)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def snapshot(self) -> GraphSnapshot:
        return self.store.current()

    def dependencies(self, contract_id: str, version_label: str | None = None) -> list[DependencyRecord]:
        snap = self.store.current()
        version = self.resolve_version(snap, contract_id, version_label)
        return list(
            self._cached(
                snap,
                CacheKey(QueryKind.DEPENDENCIES, version.node_id),
                lambda: tuple(self.queries.dependencies(snap, version)),
            )
        )

    def dependents(self, contract_id: str, version_label: str | None = None) -> list[DependentRecord]:
        snap = self.store.current()
        subject: str | ContractVersion = contract_id
        if version_label is not None:
            subject = self.resolve_version(snap, contract_id, version_label)
        return list(
            self._cached(
                snap,
                CacheKey(QueryKind.DEPENDENTS, contract_id),
                lambda: tuple(self.queries.dependents(snap, subject)),
            )
        )

    def impact(self, contract_id: str, version_label: str | None = None) -> list[ImpactRecord]:
        snap = self.store.current()
        version = self.resolve_version(snap, contract_id, version_label)
        return list(
            self._cached(
                snap,
                CacheKey(QueryKind.IMPACT, version.node_id),
                lambda: tuple(self.queries.impact_analysis(snap, version)),
            )
        )

    def export(self) -> GraphExport:
        snap = self.store.current()
        return self._cached(snap, CacheKey(QueryKind.EXPORT, "*"), lambda: self.queries.export_graph(snap))

    def dependency_tree(
        self,
        contract_id: str,
        version_label: str | None = None,
        max_depth: int | None = None,
    ) -> DependencyTreeNode:
        snap = self.store.current()
        version = self.resolve_version(snap, contract_id, version_label)
        depth = max_depth if max_depth is not None else self.queries.tree_max_depth
        return self._cached(
            snap,
            CacheKey(QueryKind.TREE, f"{version.node_id}#{depth}"),
            lambda: self.queries.dependency_tree(snap, version, max_depth=depth),
        )

    def stats(self) -> GraphStats:
        snap = self.store.current()
        return self._cached(snap, CacheKey(QueryKind.STATS, "*"), lambda: self.queries.graph_stats(snap))

    def cache_stats(self) -> dict:
        if self.cache is None:
            return {"enabled": False}
        return {"enabled": True, **self.cache.stats()}

    # ------------------------------------------------------------------

    @staticmethod
    def resolve_version(snapshot: GraphSnapshot, contract_id: str, version_label: str | None) -> ContractVersion:
        """Explicit label, or the contract's latest published version (publish order)"""
        if version_label is None:
            version = snapshot.latest_version(contract_id)
            subject = contract_id
        else:
            version = snapshot.get_version(contract_id, version_label)
            subject = f"{contract_id}@{version_label}"

        if version is None:
            raise NotFoundError(subject, epoch=snapshot.epoch)
        return version

    def _cached(self, snapshot: GraphSnapshot, key: CacheKey, compute: Callable[[], T]) -> T:
        if self.cache is None:
            return compute()

        entry = self.cache.get(key, epoch=snapshot.epoch)
        if entry is not None:
            return entry.payload

        payload = compute()
        self.cache.put(key, payload, epoch=snapshot.epoch)
        return payload
