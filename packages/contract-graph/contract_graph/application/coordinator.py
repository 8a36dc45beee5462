"""
Publication Coordinator

One publish = one serialized unit of work:
    acquire publish slot -> extract -> commit (cycle check inside) -> invalidate cache -> release

Failures (malformed / duplicate / cycle) are returned in PublishResult and leave
no visible state change.
"""

import threading
from dataclasses import dataclass, field
from typing import Any

from ..common.observability import bind_context, get_logger
from ..domain.exceptions import (
    CycleDetectedError,
    DuplicateVersionError,
    MalformedInterfaceError,
)
from ..domain.models import NODE_ID_SEPARATOR, ContractVersion, DependencyEdge
from ..infrastructure.extractor import extract_from, interface_hash, parse_interface
from ..infrastructure.graph_store import GraphStore
from ..infrastructure.publication_log import PublicationLog
from ..infrastructure.result_cache import ResultCache

logger = get_logger(__name__)

PublishError = MalformedInterfaceError | DuplicateVersionError | CycleDetectedError


@dataclass(frozen=True)
class PublishResult:
    """
    Publish 결과

    Either ``epoch`` (success) or ``error`` is set, never both.
    """

    contract_id: str
    version_label: str
    epoch: int | None = None
    version: ContractVersion | None = None
    edges: tuple[DependencyEdge, ...] = field(default=())
    error: PublishError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> "PublishResult":
        if self.error is not None:
            raise self.error
        return self

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "contract_id": self.contract_id,
            "version_label": self.version_label,
            "ok": self.ok,
        }
        if self.ok:
            data["epoch"] = self.epoch
            data["edges"] = [{"to": e.to_contract_id, "kind": e.kind.value} for e in self.edges]
        else:
            data["error"] = self.error.to_dict()
        return data


class PublicationCoordinator:
    """
    Serializes writes (one publish at a time, system-wide).

    Example:
        coordinator = PublicationCoordinator(store, cache)
        result = coordinator.publish("CTOKEN", "1.0.0", {"contract_id": "CTOKEN"})
        if not result.ok:
            print(result.error)
    """

    def __init__(
        self,
        store: GraphStore,
        cache: ResultCache | None = None,
        publication_log: PublicationLog | None = None,
    ):
        self.store = store
        self.cache = cache
        self.publication_log = publication_log
        self._publish_slot = threading.Lock()
        if cache is not None:
            if cache.epoch > store.epoch:
                # cache epoch must track the store epoch
                cache.rebase(store.epoch)
            else:
                cache.sync_epoch(store.epoch)

    def publish(self, contract_id: str, version_label: str, interface_description: Any) -> PublishResult:
        """
        Publish one contract version.

        Returns:
            PublishResult with the new epoch, or the specific failure

        Raises:
            PublicationLogError: durable log write failed (graph unchanged)
        """
        with self._publish_slot, bind_context(contract_id=contract_id, version_label=version_label):
            try:
                version, edges, name = self._prepare(contract_id, version_label, interface_description)
                snapshot = self.store.commit_new_version(
                    version,
                    edges,
                    name=name,
                    before_publish=self.publication_log.append if self.publication_log else None,
                )
            except (MalformedInterfaceError, DuplicateVersionError, CycleDetectedError) as e:
                logger.warning("publish_rejected", error_code=e.code, error=e.message, epoch=self.store.epoch)
                return PublishResult(contract_id=contract_id, version_label=version_label, error=e)

            if self.cache is not None:
                self.cache.invalidate_all()
                # store may have been committed to directly
                self.cache.sync_epoch(snapshot.epoch)

            committed_edges = snapshot.edges_from(version)
            logger.info("publish_accepted", epoch=snapshot.epoch, edges=len(committed_edges))

        return PublishResult(
            contract_id=contract_id,
            version_label=version_label,
            epoch=snapshot.epoch,
            version=version,
            edges=committed_edges,
        )

    def _prepare(
        self, contract_id: str, version_label: str, interface_description: Any
    ) -> tuple[ContractVersion, list[DependencyEdge], str]:
        if not contract_id or not contract_id.strip():
            raise MalformedInterfaceError("contract_id must not be blank", field="contract_id")
        if not version_label or not version_label.strip():
            raise MalformedInterfaceError("version_label must not be blank", field="version_label")
        for field_name, value in (("contract_id", contract_id), ("version_label", version_label)):
            if NODE_ID_SEPARATOR in value:
                raise MalformedInterfaceError(f"{field_name} must not contain {NODE_ID_SEPARATOR!r}", field=field_name)

        description = parse_interface(interface_description)
        if description.contract_id != contract_id:
            raise MalformedInterfaceError(
                f"interface describes {description.contract_id!r}, not {contract_id!r}",
                field="contract_id",
            )

        version = ContractVersion(contract_id, version_label, interface_hash(description))
        edges = [DependencyEdge.from_reference(version, ref) for ref in extract_from(description)]
        return version, edges, description.display_name

