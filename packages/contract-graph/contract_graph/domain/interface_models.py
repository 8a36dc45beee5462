"""
Interface Description Models

Already-parsed contract interface document (ABI 파싱은 외부 collaborator 담당).
Validated at the extraction boundary so use sites never see arbitrary shapes.

Validation:
- contract_id: non-empty (after strip), no "@" (node id separator)
- bindings: list of objects with non-empty contract_id (bare strings accepted as shorthand)
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from .models import NODE_ID_SEPARATOR


def _require_identifier(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("contract_id must not be blank")
    if NODE_ID_SEPARATOR in v:
        raise ValueError(f"contract_id must not contain {NODE_ID_SEPARATOR!r}")
    return v


class InterfaceBinding(BaseModel):
    """One declared import / client / interface binding"""

    contract_id: str = Field(..., description="Referenced contract identifier (address or namespaced id)")
    constraint: str = Field(default="*", description="Version constraint declared by the dependent")
    name: str | None = Field(None, description="Binding display name")

    model_config = {"frozen": True, "extra": "ignore"}

    @model_validator(mode="before")
    @classmethod
    def accept_shorthand(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"contract_id": data}
        return data

    @field_validator("contract_id")
    @classmethod
    def validate_contract_id(cls, v: str) -> str:
        return _require_identifier(v)


class InterfaceDescription(BaseModel):
    """
    Contract interface description.

    Example:
        {
            "contract_id": "CTOKEN",
            "name": "Token",
            "imports": [{"contract_id": "CLIB", "constraint": "^1.0"}],
            "clients": [{"contract_id": "CORACLE"}],
            "interfaces": [{"contract_id": "CSEP41"}]
        }
    """

    contract_id: str = Field(..., description="The described contract's own identifier")
    name: str | None = Field(None, description="Display name")
    imports: list[InterfaceBinding] = Field(default_factory=list)
    clients: list[InterfaceBinding] = Field(default_factory=list)
    interfaces: list[InterfaceBinding] = Field(default_factory=list)

    model_config = {"frozen": True, "extra": "ignore"}

    @field_validator("contract_id")
    @classmethod
    def validate_contract_id(cls, v: str) -> str:
        return _require_identifier(v)

    @property
    def display_name(self) -> str:
        return self.name or self.contract_id
