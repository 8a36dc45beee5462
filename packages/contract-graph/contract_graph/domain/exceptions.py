"""
Contract Graph Exceptions

Publish/query 경로에서 발생하는 도메인 예외.
None of these are fatal to the engine: every mutation is candidate -> validate -> swap,
so a raised error never leaves partially applied state behind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import ContractVersion


class ContractGraphError(Exception):
    """
    Base exception for all dependency graph errors.

    Attributes:
        message: Human-readable error message
        details: Additional context (dict)
    """

    code = "err_graph_internal"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        base = self.message
        if self.details:
            base += f" | details={self.details}"
        return base

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": dict(self.details)}


class MalformedInterfaceError(ContractGraphError):
    """Interface description lacks the structure needed to identify references."""

    code = "err_graph_malformed_interface"

    def __init__(self, reason: str, field: str | None = None):
        details: dict[str, Any] = {"reason": reason}
        if field is not None:
            details["field"] = field
        super().__init__(f"Malformed interface description: {reason}", details=details)
        self.reason = reason
        self.field = field


class DuplicateVersionError(ContractGraphError):
    """(contract_id, version_label) was already published. Publish is append-only."""

    code = "err_graph_duplicate_version"

    def __init__(self, contract_id: str, version_label: str):
        super().__init__(
            f"Version already published: {contract_id}@{version_label}",
            details={"contract_id": contract_id, "version_label": version_label},
        )
        self.contract_id = contract_id
        self.version_label = version_label


class CycleDetectedError(ContractGraphError):
    """
    Committing the edge set would close a cycle over version nodes.

    ``path`` starts and ends at the version being published, e.g.
    ``A@2 -> C@1 -> B@1 -> A@2``.
    """

    code = "err_graph_cycle_detected"

    def __init__(self, path: tuple[ContractVersion, ...]):
        rendered = " -> ".join(v.node_id for v in path)
        super().__init__(f"Dependency cycle detected: {rendered}", details={"path": [v.node_id for v in path]})
        self.path = path

    @property
    def contract_path(self) -> list[str]:
        """Cycle path as contract ids (버전 무시)"""
        return [v.contract_id for v in self.path]


class NotFoundError(ContractGraphError):
    """Query subject (contract or version) is absent from the snapshot."""

    code = "err_graph_not_found"

    def __init__(self, subject: str, epoch: int | None = None):
        details: dict[str, Any] = {"subject": subject}
        if epoch is not None:
            details["epoch"] = epoch
        super().__init__(f"Not found in graph: {subject}", details=details)
        self.subject = subject


class PublicationLogError(ContractGraphError):
    """Publication log could not be written or replayed."""

    code = "err_graph_publication_log"

    def __init__(self, message: str, path: str | None = None, line: int | None = None):
        details: dict[str, Any] = {}
        if path is not None:
            details["path"] = path
        if line is not None:
            details["line"] = line
        super().__init__(message, details=details)
        self.path = path
        self.line = line
