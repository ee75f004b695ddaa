"""
Requester routes for simple service requests
"""

from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
from models.principal import Role
from models.session import ActiveSession
from models.simple_request import SimpleRequestCreate
from services.auth_deps import require_requester, get_simple_requests
from services.request_repository import SimpleRequestRepository
from services import workflow
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/requests", tags=["requests"])


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_request(
    data: SimpleRequestCreate,
    session: ActiveSession = Depends(require_requester),
    repository: SimpleRequestRepository = Depends(get_simple_requests)
):
    """Submit a new request; it always starts as 'submitted'"""
    payload = workflow.creation_payload(Role.REQUESTER, data.model_dump(mode="json", exclude_none=True))
    record = await repository.create(session.principal_id, payload)
    return workflow.owner_view(record)


@router.get("", response_model=List[dict])
async def list_my_requests(
    session: ActiveSession = Depends(require_requester),
    repository: SimpleRequestRepository = Depends(get_simple_requests)
):
    """Own requests, most recent first"""
    records = await repository.get_by_owner(session.principal_id)
    return workflow.owner_views(records)


@router.get("/{request_id}", response_model=dict)
async def get_my_request(
    request_id: str,
    session: ActiveSession = Depends(require_requester),
    repository: SimpleRequestRepository = Depends(get_simple_requests)
):
    record = await repository.get_by_id(request_id)
    if record["user_id"] != session.principal_id:
        # Someone else's request looks exactly like a missing one
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Request not found"
        )
    return workflow.owner_view(record)
