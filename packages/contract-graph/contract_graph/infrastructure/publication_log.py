"""
Publication Log - Append-only Persistence

One JSON line per committed version, keyed by epoch. Replaying the log in order
rebuilds the same snapshot (same epochs, same edge insertion order).

Record:
    {"epoch": 3, "contract_id": "CTOKEN", "version_label": "1.0.0",
     "interface_hash": "...", "name": "Token",
     "edges": [{"to": "CLIB", "kind": "import", "constraint": "^1.0"}]}
"""

import json
import os
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import Any, BinaryIO

from ..common.observability import get_logger
from ..domain.exceptions import ContractGraphError, PublicationLogError
from ..domain.models import NODE_ID_SEPARATOR, ContractVersion, DependencyEdge, ReferenceKind
from .graph_store import GraphStore
from .snapshot import GraphSnapshot

logger = get_logger(__name__)


class PublicationLog:
    """
    JSON Lines append log.

    Used as GraphStore's ``before_publish`` hook: a failed write discards the
    candidate, and a partially written record is truncated away, so the log
    matches the visible graph exactly.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def append(self, snapshot: GraphSnapshot, version: ContractVersion) -> None:
        """Write the record for ``version`` as committed in ``snapshot``."""
        record = {
            "epoch": snapshot.epoch,
            "contract_id": version.contract_id,
            "version_label": version.version_label,
            "interface_hash": version.interface_hash,
            "name": snapshot.display_name(version.contract_id),
            "edges": [
                {"to": edge.to_contract_id, "kind": edge.kind.value, "constraint": edge.constraint}
                for edge in snapshot.edges_from(version)
            ],
        }
        payload = (json.dumps(record, sort_keys=True, separators=(",", ":")) + "\n").encode("utf-8")

        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self._open_for_append() as f:
                    offset = f.seek(0, os.SEEK_END)
                    try:
                        self._write_fully(f, payload)
                    except OSError:
                        # partial record 제거
                        f.truncate(offset)
                        raise
            except OSError as e:
                raise PublicationLogError(f"Failed to append publication log: {e}", path=str(self.path)) from e

    def _open_for_append(self) -> BinaryIO:
        # unbuffered, so truncate() never re-flushes a half-written record
        return self.path.open("ab", buffering=0)

    @staticmethod
    def _write_fully(f: BinaryIO, payload: bytes) -> None:
        view = memoryview(payload)
        while view:
            written = f.write(view)
            view = view[written:]

    def read(self) -> Iterator[dict[str, Any]]:
        """Yield records in file order. Missing file -> nothing."""
        for _, record in self._numbered_records():
            yield record

    def _numbered_records(self) -> Iterator[tuple[int, dict[str, Any]]]:
        if not self.path.exists():
            return

        with self.path.open("r", encoding="utf-8") as f:
            for line_no, raw in enumerate(f, start=1):
                raw = raw.strip()
                if not raw:
                    continue
                try:
                    record = json.loads(raw)
                except json.JSONDecodeError as e:
                    raise PublicationLogError(f"Corrupt log line: {e.msg}", path=str(self.path), line=line_no) from e
                if not isinstance(record, dict):
                    raise PublicationLogError("Log record is not an object", path=str(self.path), line=line_no)
                yield line_no, record

    def replay_into(self, store: GraphStore) -> int:
        """
        Re-commit every record into ``store``.

        Returns:
            Number of versions replayed

        Raises:
            PublicationLogError: corrupt record, rejected commit, or epoch gap
        """
        count = 0
        for line_no, record in self._numbered_records():
            try:
                version = ContractVersion(
                    contract_id=record["contract_id"],
                    version_label=record["version_label"],
                    interface_hash=record.get("interface_hash", ""),
                )
                edges = [
                    DependencyEdge(
                        from_version=version,
                        to_contract_id=edge["to"],
                        kind=ReferenceKind(edge["kind"]),
                        constraint=edge.get("constraint", "*"),
                    )
                    for edge in record.get("edges", [])
                ]
                expected_epoch = int(record["epoch"])
                if NODE_ID_SEPARATOR in version.contract_id or NODE_ID_SEPARATOR in version.version_label:
                    raise ValueError(f"{version.node_id!r}: identifiers must not contain {NODE_ID_SEPARATOR!r}")
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise PublicationLogError(f"Invalid log record: {e}", path=str(self.path), line=line_no) from e

            if expected_epoch != store.epoch + 1:
                raise PublicationLogError(
                    f"Epoch gap on replay: log={expected_epoch}, expected={store.epoch + 1}",
                    path=str(self.path),
                    line=line_no,
                )

            try:
                store.commit_new_version(version, edges, name=record.get("name"))
            except ContractGraphError as e:
                raise PublicationLogError(
                    f"Replay rejected {version.node_id}: {e.message}", path=str(self.path), line=line_no
                ) from e
            count += 1

        logger.info("publication_log_replayed", path=str(self.path), versions=count, epoch=store.epoch)
        return count
