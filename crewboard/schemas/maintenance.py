"""
Consistency scan schemas.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel

from crewboard.services.reconcile_service import Finding


class FindingResponse(BaseModel):
    kind: str
    collection: str
    document: UUID
    field: str
    value: UUID
    repairable: bool

    @classmethod
    def from_finding(cls, finding: Finding) -> FindingResponse:
        return cls(
            kind=finding.kind.value,
            collection=finding.collection.value,
            document=finding.document,
            field=finding.field,
            value=finding.value,
            repairable=finding.repairable,
        )


class ReconcileResponse(BaseModel):
    findings: list[FindingResponse]
    repaired: int
