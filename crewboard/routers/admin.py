"""
Maintenance endpoints (admin only).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from crewboard.core.dependencies import get_repository, require_role
from crewboard.core.documents import Actor, Role
from crewboard.repositories import DocumentRepository
from crewboard.schemas.common import ApiResponse
from crewboard.schemas.maintenance import FindingResponse, ReconcileResponse
from crewboard.services.reconcile_service import Reconciler

router = APIRouter()


def get_reconciler(repository: DocumentRepository = Depends(get_repository)) -> Reconciler:
    return Reconciler(repository)


@router.post(
    "/reconcile",
    response_model=ApiResponse[ReconcileResponse],
    summary="Scan (and optionally repair) reference consistency",
)
async def reconcile(
    repair: bool = Query(False, description="Apply back-reference and creator fixes"),
    _: Actor = Depends(require_role(Role.admin)),
    reconciler: Reconciler = Depends(get_reconciler),
) -> ApiResponse[ReconcileResponse]:
    if repair:
        findings, repaired = await reconciler.repair()
    else:
        findings, repaired = await reconciler.scan(), 0
    return ApiResponse(
        data=ReconcileResponse(
            findings=[FindingResponse.from_finding(f) for f in findings],
            repaired=repaired,
        )
    )
