"""
Technician portal

Technicians have their own landing page but no access to request
records yet.
"""

from fastapi import APIRouter, Depends
from models.session import ActiveSession
from services.auth_deps import require_technician

router = APIRouter(prefix="/api/technician", tags=["technician"])


@router.get("/dashboard")
async def get_dashboard(session: ActiveSession = Depends(require_technician)):
    principal = session.principal
    name = " ".join(p for p in (principal.first_name, principal.last_name) if p) or principal.username
    return {
        "message": f"Welcome to the laboratory technician portal, {name}",
        "principal": principal,
        "request_access": False,
    }
