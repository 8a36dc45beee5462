"""
Graph Export Models

Generic node/edge shape for visualization consumers.
특정 차트 라이브러리 스키마와 분리되어 있음 (adapter는 외부 레이어 책임).
"""

from pydantic import BaseModel, Field

from .models import ReferenceKind


class ExportNode(BaseModel):
    """Version node: {id, contractId, versionLabel}"""

    id: str = Field(..., description="Node id (contract_id@version_label)")
    contract_id: str = Field(..., alias="contractId")
    version_label: str = Field(..., alias="versionLabel")

    model_config = {"frozen": True, "populate_by_name": True}


class ExportEdge(BaseModel):
    """Dependency edge: {from, to, kind} (+ resolved)"""

    source: str = Field(..., alias="from", description="Dependent node id")
    target: str = Field(..., alias="to", description="Depended-upon contract id")
    kind: ReferenceKind
    resolved: bool = True

    model_config = {"frozen": True, "populate_by_name": True}


class GraphExport(BaseModel):
    """Full materialized view of one snapshot (insertion order)"""

    epoch: int = Field(..., ge=0)
    nodes: list[ExportNode] = Field(default_factory=list)
    edges: list[ExportEdge] = Field(default_factory=list)

    model_config = {"frozen": True}

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
