"""
Reference Extractor

Interface description -> declared references to other contracts.

Pure function: no shared state, safe to call concurrently and repeatedly.
"""

import hashlib
import json
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from ..domain.exceptions import MalformedInterfaceError
from ..domain.interface_models import InterfaceBinding, InterfaceDescription
from ..domain.models import ContractReference, ReferenceKind

# Walk order: imports -> clients -> interfaces
_BINDING_FIELDS: tuple[tuple[str, ReferenceKind], ...] = (
    ("imports", ReferenceKind.IMPORT),
    ("clients", ReferenceKind.CLIENT),
    ("interfaces", ReferenceKind.INTERFACE),
)


def parse_interface(interface_description: Any) -> InterfaceDescription:
    """
    Validate a raw interface description.

    Raises:
        MalformedInterfaceError: input lacks the identifier structure
    """
    if isinstance(interface_description, InterfaceDescription):
        return interface_description
    if not isinstance(interface_description, Mapping):
        raise MalformedInterfaceError(
            f"expected a mapping, got {type(interface_description).__name__}",
        )

    try:
        return InterfaceDescription.model_validate(dict(interface_description))
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or None
        raise MalformedInterfaceError(first["msg"], field=location) from e


def extract(interface_description: Any) -> tuple[ContractReference, ...]:
    """
    Extract declared references.

    One entry per distinct (target, kind), in declaration order.
    Self-references are dropped. Zero references -> ().

    Raises:
        MalformedInterfaceError: missing identifier fields
    """
    description = parse_interface(interface_description)
    return extract_from(description)


def extract_from(description: InterfaceDescription) -> tuple[ContractReference, ...]:
    """Extract from an already validated description."""
    seen: set[tuple[str, ReferenceKind]] = set()
    references: list[ContractReference] = []

    for field_name, kind in _BINDING_FIELDS:
        bindings: list[InterfaceBinding] = getattr(description, field_name)
        for binding in bindings:
            if binding.contract_id == description.contract_id:
                continue
            identity = (binding.contract_id, kind)
            if identity in seen:
                continue
            seen.add(identity)
            references.append(ContractReference(binding.contract_id, kind, binding.constraint))

    return tuple(references)


def interface_hash(description: InterfaceDescription) -> str:
    """SHA-256 of the canonical JSON encoding (sorted keys, compact)"""
    payload = json.dumps(description.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
