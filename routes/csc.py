"""
Customer service center (CSC) routes

Dashboard, review, edit, remarks and close-out for every request,
regardless of owner. All endpoints require the CSC role.
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional
from models.dashboard import CSCDashboard
from models.service_request import (
    ServiceRequest, ServiceRequestUpdate, ServiceRequestAdminView, CSCRemarksUpdate
)
from models.session import ActiveSession
from models.simple_request import SimpleRequest, SimpleRequestUpdate, CompleteRequest
from services.auth_deps import require_csc, get_simple_requests, get_service_requests
from services.request_repository import SimpleRequestRepository, ServiceRequestRepository
from services import workflow
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/csc", tags=["csc"])


def _completion_note(body: Optional[CompleteRequest] = None) -> Optional[str]:
    return body.note if body is not None else None


@router.get("/dashboard", response_model=CSCDashboard)
async def get_dashboard(
    session: ActiveSession = Depends(require_csc),
    simple_requests: SimpleRequestRepository = Depends(get_simple_requests),
    service_requests: ServiceRequestRepository = Depends(get_service_requests)
):
    """Pending and completed requests of both kinds, newest first"""
    service_buckets = await workflow.dashboard_buckets(service_requests)
    simple_buckets = await workflow.dashboard_buckets(simple_requests)
    return CSCDashboard(
        service_requests=service_buckets.summary(),
        simple_requests=simple_buckets.summary(),
    )


# ============================================================
# Simple requests
# ============================================================

@router.get("/requests/{request_id}", response_model=SimpleRequest)
async def get_request(
    request_id: str,
    session: ActiveSession = Depends(require_csc),
    repository: SimpleRequestRepository = Depends(get_simple_requests)
):
    record = await repository.get_by_id(request_id)
    return SimpleRequest(**workflow.redact(record, session.role))


@router.put("/requests/{request_id}", response_model=SimpleRequest)
async def edit_request(
    request_id: str,
    update_data: SimpleRequestUpdate,
    session: ActiveSession = Depends(require_csc),
    repository: SimpleRequestRepository = Depends(get_simple_requests)
):
    """Edit status, comments, personal and service details"""
    changes = update_data.model_dump(mode="json", exclude_unset=True)
    record = await workflow.apply_update(repository, request_id, session.role, changes)
    return SimpleRequest(**workflow.redact(record, session.role))


@router.post("/requests/{request_id}/complete", response_model=SimpleRequest)
async def complete_request(
    request_id: str,
    body: Optional[CompleteRequest] = None,
    session: ActiveSession = Depends(require_csc),
    repository: SimpleRequestRepository = Depends(get_simple_requests)
):
    record = await workflow.complete(repository, request_id, session.role, _completion_note(body))
    return SimpleRequest(**workflow.redact(record, session.role))


@router.delete("/requests/{request_id}")
async def delete_request(
    request_id: str,
    session: ActiveSession = Depends(require_csc),
    repository: SimpleRequestRepository = Depends(get_simple_requests)
):
    """Administrative escape hatch; deleting twice is fine"""
    await repository.delete(request_id)
    logger.info(f"Request {request_id} deleted by {session.principal.username}")
    return {"message": "Request deleted"}


# ============================================================
# Calibration service requests
# ============================================================

@router.get("/service-requests/{request_id}", response_model=ServiceRequestAdminView)
async def get_service_request(
    request_id: str,
    show_customer_details: bool = Query(False),
    session: ActiveSession = Depends(require_csc),
    repository: ServiceRequestRepository = Depends(get_service_requests)
):
    """Full record; the customer block is rendered only on request"""
    record = await repository.get_by_id(request_id)
    return workflow.admin_view(record, show_customer_details)


@router.patch("/service-requests/{request_id}", response_model=ServiceRequest)
async def edit_service_request(
    request_id: str,
    update_data: ServiceRequestUpdate,
    session: ActiveSession = Depends(require_csc),
    repository: ServiceRequestRepository = Depends(get_service_requests)
):
    changes = update_data.model_dump(mode="json", exclude_unset=True)
    record = await workflow.apply_update(repository, request_id, session.role, changes)
    return ServiceRequest(**workflow.redact(record, session.role))


@router.put("/service-requests/{request_id}/remarks", response_model=ServiceRequest)
async def save_csc_remarks(
    request_id: str,
    remarks: CSCRemarksUpdate,
    session: ActiveSession = Depends(require_csc),
    repository: ServiceRequestRepository = Depends(get_service_requests)
):
    """Save the CSC-only remarks and internal notes"""
    record = await workflow.apply_update(repository, request_id, session.role, remarks.model_dump())
    return ServiceRequest(**workflow.redact(record, session.role))


@router.post("/service-requests/{request_id}/complete", response_model=ServiceRequest)
async def complete_service_request(
    request_id: str,
    body: Optional[CompleteRequest] = None,
    session: ActiveSession = Depends(require_csc),
    repository: ServiceRequestRepository = Depends(get_service_requests)
):
    record = await workflow.complete(repository, request_id, session.role, _completion_note(body))
    return ServiceRequest(**workflow.redact(record, session.role))


@router.delete("/service-requests/{request_id}")
async def delete_service_request(
    request_id: str,
    session: ActiveSession = Depends(require_csc),
    repository: ServiceRequestRepository = Depends(get_service_requests)
):
    await repository.delete(request_id)
    logger.info(f"Service request {request_id} deleted by {session.principal.username}")
    return {"message": "Service request deleted"}
