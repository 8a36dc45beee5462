"""
Query Engine

Dependencies / dependents / impact analysis / export over an explicit GraphSnapshot.

항상 caller가 넘긴 snapshot만 읽음 (mutable store 직접 접근 금지) so a query
observes exactly one point in time. Pure reads over immutable structures.

Performance:
    - dependencies / dependents: O(d log d)
    - impact_analysis: O(V+E) BFS over reverse edges
"""

from collections import deque

from ..domain.exceptions import NotFoundError
from ..domain.export_models import ExportEdge, ExportNode, GraphExport
from ..domain.models import (
    ContractVersion,
    DependencyRecord,
    DependencyTreeNode,
    DependentRecord,
    GraphStats,
    ImpactRecord,
)
from ..infrastructure.snapshot import GraphSnapshot


class QueryEngine:
    """
    Read-only graph queries.

    Example:
        engine = QueryEngine()
        snap = store.current()
        for record in engine.impact_analysis(snap, version):
            print(record.version.node_id, record.depth)
    """

    def __init__(self, tree_max_depth: int = 16):
        self.tree_max_depth = tree_max_depth

    # ------------------------------------------------------------------
    # Direct edges
    # ------------------------------------------------------------------

    def dependencies(self, snapshot: GraphSnapshot, version: ContractVersion) -> list[DependencyRecord]:
        """Direct forward edges, ordered by (kind, target contract id)"""
        node = self._require_version(snapshot, version)

        records = [
            DependencyRecord(
                from_version=node,
                to_contract_id=edge.to_contract_id,
                kind=edge.kind,
                constraint=edge.constraint,
                resolved=snapshot.is_resolved(edge.to_contract_id),
            )
            for edge in snapshot.edges_from(node)
        ]
        records.sort(key=lambda r: (r.kind.rank, r.to_contract_id))
        return records

    def dependents(self, snapshot: GraphSnapshot, subject: str | ContractVersion) -> list[DependentRecord]:
        """
        Direct reverse edges.

        Args:
            subject: contract id, or a version node (dependents of its contract)
        """
        if isinstance(subject, ContractVersion):
            contract_id = self._require_version(snapshot, subject).contract_id
        else:
            contract_id = subject
            if not snapshot.is_known_contract(contract_id):
                raise NotFoundError(contract_id, epoch=snapshot.epoch)

        records = [DependentRecord(edge.from_version, edge.kind) for edge in snapshot.edges_to(contract_id)]
        records.sort(key=lambda r: (*r.from_version.sort_key, r.kind.rank))
        return records

    # ------------------------------------------------------------------
    # Transitive
    # ------------------------------------------------------------------

    def impact_analysis(self, snapshot: GraphSnapshot, version: ContractVersion) -> list[ImpactRecord]:
        """
        영향 분석: full transitive reverse closure.

        BFS so each node appears once at its minimum hop count.
        Ordered by (depth, contract id, version label). Origin excluded.
        """
        origin = self._require_version(snapshot, version)

        seen: set[tuple[str, str]] = {origin.key}
        results: list[ImpactRecord] = []
        queue: deque[tuple[ContractVersion, int]] = deque([(origin, 0)])

        while queue:
            node, depth = queue.popleft()
            for edge in snapshot.edges_to(node.contract_id):
                dependent = edge.from_version
                if dependent.key in seen:
                    continue
                seen.add(dependent.key)
                results.append(ImpactRecord(dependent, depth + 1))
                queue.append((dependent, depth + 1))

        results.sort(key=lambda r: (r.depth, *r.version.sort_key))
        return results

    def dependency_tree(
        self,
        snapshot: GraphSnapshot,
        version: ContractVersion,
        max_depth: int | None = None,
    ) -> DependencyTreeNode:
        """
        Nested forward dependency tree rooted at ``version``.

        Resolved targets expand through their latest version; the walk stops at
        ``max_depth`` and marks the cut node as truncated.
        """
        root = self._require_version(snapshot, version)
        limit = max_depth if max_depth is not None else self.tree_max_depth
        if limit < 0:
            raise ValueError("max_depth must be >= 0")

        return DependencyTreeNode(
            contract_id=root.contract_id,
            name=snapshot.display_name(root.contract_id),
            kind=None,
            constraint="*",
            resolved=True,
            version_label=root.version_label,
            dependencies=self._subtree(snapshot, root, 1, limit),
            truncated=limit == 0 and bool(snapshot.edges_from(root)),
        )

    def _subtree(
        self, snapshot: GraphSnapshot, node: ContractVersion, depth: int, limit: int
    ) -> tuple[DependencyTreeNode, ...]:
        if depth > limit:
            return ()

        children: list[DependencyTreeNode] = []
        for record in self.dependencies(snapshot, node):
            target = snapshot.latest_version(record.to_contract_id)
            grandchildren: tuple[DependencyTreeNode, ...] = ()
            truncated = False
            if target is not None:
                if depth < limit:
                    grandchildren = self._subtree(snapshot, target, depth + 1, limit)
                else:
                    truncated = bool(snapshot.edges_from(target))

            children.append(
                DependencyTreeNode(
                    contract_id=record.to_contract_id,
                    name=snapshot.display_name(record.to_contract_id),
                    kind=record.kind,
                    constraint=record.constraint,
                    resolved=target is not None,
                    version_label=target.version_label if target else None,
                    dependencies=grandchildren,
                    truncated=truncated,
                )
            )
        return tuple(children)

    # ------------------------------------------------------------------
    # Whole graph
    # ------------------------------------------------------------------

    def export_graph(self, snapshot: GraphSnapshot) -> GraphExport:
        """Full materialized view; insertion order, stable across repeated exports"""
        nodes = [
            ExportNode(id=v.node_id, contract_id=v.contract_id, version_label=v.version_label)
            for v in snapshot.versions()
        ]
        edges = [
            ExportEdge(
                source=e.from_version.node_id,
                target=e.to_contract_id,
                kind=e.kind,
                resolved=snapshot.is_resolved(e.to_contract_id),
            )
            for e in snapshot.edges()
        ]
        return GraphExport(epoch=snapshot.epoch, nodes=nodes, edges=edges)

    def graph_stats(self, snapshot: GraphSnapshot) -> GraphStats:
        return GraphStats(
            epoch=snapshot.epoch,
            contracts=snapshot.contract_count,
            versions=snapshot.version_count,
            edges=snapshot.edge_count,
            unresolved_targets=len(snapshot.unresolved_targets()),
        )

    # ------------------------------------------------------------------

    @staticmethod
    def _require_version(snapshot: GraphSnapshot, version: ContractVersion) -> ContractVersion:
        node = snapshot.get_version(version.contract_id, version.version_label)
        if node is None:
            raise NotFoundError(version.node_id, epoch=snapshot.epoch)
        return node
