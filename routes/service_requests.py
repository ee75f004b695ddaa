"""
Calibration service request routes, customer side

Any signed-in principal may file the intake form. Reads are limited to
the caller's own requests and always use the customer view, which never
carries the CSC remarks.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
from models.principal import Role
from models.service_request import ServiceRequestCreate
from models.session import ActiveSession
from services.auth_deps import get_current_session, get_service_requests
from services.request_repository import ServiceRequestRepository
from services import workflow
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/service-requests", tags=["service-requests"])


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_service_request(
    data: ServiceRequestCreate,
    session: ActiveSession = Depends(get_current_session),
    repository: ServiceRequestRepository = Depends(get_service_requests)
):
    """File a calibration service request"""
    # The CSC may pre-fill its own remarks; everyone else is held to the requester row
    role = session.role if session.role == Role.CSC else Role.REQUESTER
    payload = workflow.creation_payload(role, data.model_dump(mode="json", exclude_none=True))
    record = await repository.create(session.principal_id, payload)
    return workflow.owner_view(record)


@router.get("", response_model=List[dict])
async def list_my_service_requests(
    session: ActiveSession = Depends(get_current_session),
    repository: ServiceRequestRepository = Depends(get_service_requests)
):
    records = await repository.get_by_owner(session.principal_id)
    return workflow.owner_views(records)


@router.get("/{request_id}", response_model=dict)
async def get_my_service_request(
    request_id: str,
    session: ActiveSession = Depends(get_current_session),
    repository: ServiceRequestRepository = Depends(get_service_requests)
):
    record = await repository.get_by_id(request_id)
    if record["user_id"] != session.principal_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Service request not found"
        )
    return workflow.owner_view(record)
