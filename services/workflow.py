"""
Workflow and visibility rules for service requests

Statuses are a fixed set and any status may follow any other; what this
module decides is classification (pending vs resolved) and who may read
or write which fields. Field access is one table, role x field group, so
the redaction rules can be checked in one place.
"""

import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from models.dashboard import StatusBuckets
from models.principal import Role
from models.request_common import RequestStatus
from models.service_request import CSC_ONLY_FIELDS, CUSTOMER_DETAIL_FIELDS, ServiceRequestAdminView
from config import get_settings
from services.errors import FieldAccessError, InvalidStatusError
from services.request_repository import RequestRepository

logger = logging.getLogger(__name__)

PENDING_STATUSES = frozenset({
    RequestStatus.SUBMITTED,
    RequestStatus.RE_SUBMITTED,
    RequestStatus.UNDER_PROCESS,
    RequestStatus.ACTION_NEEDED,
})
RESOLVED_STATUSES = frozenset({RequestStatus.COMPLETED})


class Bucket(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


class FieldGroup(str, Enum):
    SYSTEM = "system"  # id, owner, submission time
    CORE = "core"  # personal/service/organization/calibration data
    WORKFLOW = "workflow"  # status, comments
    CSC_ONLY = "csc_only"  # csc_remarks, csc_internal_notes


class Access(int, Enum):
    NONE = 0
    READ = 1
    CREATE = 2  # read, and write while creating the record
    WRITE = 3


FIELD_POLICY = {
    Role.REQUESTER: {
        FieldGroup.SYSTEM: Access.READ,
        FieldGroup.CORE: Access.CREATE,
        FieldGroup.WORKFLOW: Access.READ,
        FieldGroup.CSC_ONLY: Access.NONE,
    },
    Role.CSC: {
        FieldGroup.SYSTEM: Access.READ,
        FieldGroup.CORE: Access.WRITE,
        FieldGroup.WORKFLOW: Access.WRITE,
        FieldGroup.CSC_ONLY: Access.WRITE,
    },
    Role.TECHNICIAN: {
        FieldGroup.SYSTEM: Access.NONE,
        FieldGroup.CORE: Access.NONE,
        FieldGroup.WORKFLOW: Access.NONE,
        FieldGroup.CSC_ONLY: Access.NONE,
    },
}

SYSTEM_FIELDS = frozenset({"id", "_id", "user_id", "submission_time"})
WORKFLOW_FIELDS = frozenset({"status", "comments"})


def field_group(field: str) -> FieldGroup:
    if field in SYSTEM_FIELDS:
        return FieldGroup.SYSTEM
    if field in WORKFLOW_FIELDS:
        return FieldGroup.WORKFLOW
    if field in CSC_ONLY_FIELDS:
        return FieldGroup.CSC_ONLY
    return FieldGroup.CORE


def access_for(role: Role, field: str) -> Access:
    return FIELD_POLICY[Role(role)][field_group(field)]


def can_read(role: Role, field: str) -> bool:
    return access_for(role, field) >= Access.READ


def can_write(role: Role, field: str, creating: bool = False) -> bool:
    access = access_for(role, field)
    if access == Access.WRITE:
        return True
    return creating and access == Access.CREATE


def redact(record: Dict[str, Any], role: Role) -> Dict[str, Any]:
    """Copy of the record without the fields the role may not read"""
    return {k: v for k, v in record.items() if can_read(role, k)}


def ensure_writable(role: Role, fields: Iterable[str], creating: bool = False):
    denied = [f for f in fields if not can_write(role, f, creating=creating)]
    if denied:
        raise FieldAccessError(Role(role).value, denied)


def creation_payload(role: Role, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Payload as accepted at creation time. Empty CSC-only values are what
    every intake form sends and are dropped; non-empty ones are checked
    against the policy like any other field.
    """
    cleaned = {
        k: v for k, v in payload.items()
        if not (field_group(k) == FieldGroup.CSC_ONLY and not v)
    }
    ensure_writable(role, cleaned.keys(), creating=True)
    return cleaned


# ---------------------------------------------------------------------------
# Status classification
# ---------------------------------------------------------------------------

def parse_status(value: Any) -> RequestStatus:
    try:
        return RequestStatus(value)
    except ValueError:
        raise InvalidStatusError(value)


def can_transition(current: Any, target: Any) -> bool:
    """Every known status may move to every other one, completed included"""
    parse_status(current)
    parse_status(target)
    return True


def classify(status: Any) -> Bucket:
    if parse_status(status) in RESOLVED_STATUSES:
        return Bucket.RESOLVED
    return Bucket.PENDING


def partition(records: Iterable[Dict[str, Any]]) -> StatusBuckets:
    buckets = StatusBuckets()
    for record in records:
        if classify(record.get("status")) == Bucket.RESOLVED:
            buckets.resolved.append(record)
        else:
            buckets.pending.append(record)
    return buckets


async def dashboard_buckets(repository: RequestRepository) -> StatusBuckets:
    """Pending/resolved split computed fresh from get_all() on every call"""
    return partition(await repository.get_all())


# ---------------------------------------------------------------------------
# CSC actions
# ---------------------------------------------------------------------------

async def apply_update(
    repository: RequestRepository,
    record_id: str,
    role: Role,
    changes: Dict[str, Any],
) -> Dict[str, Any]:
    """Policy-checked partial update of a record"""
    ensure_writable(role, changes.keys())
    if "status" in changes:
        current = await repository.get_by_id(record_id)
        can_transition(current["status"], changes["status"])
        changes = dict(changes, status=parse_status(changes["status"]).value)

    record = await repository.update(record_id, changes)
    if "status" in changes:
        logger.info(f"{repository.label} {record_id} moved to '{record['status']}' by {Role(role).value}")
    return record


async def complete(
    repository: RequestRepository,
    record_id: str,
    role: Role = Role.CSC,
    note: Optional[str] = None,
) -> Dict[str, Any]:
    """Close a request: status completed, comments replaced by the note or the configured default"""
    return await apply_update(repository, record_id, role, {
        "status": RequestStatus.COMPLETED.value,
        "comments": note or get_settings().completion_note,
    })


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------

def owner_view(record: Dict[str, Any]) -> Dict[str, Any]:
    """What the record's owner sees: requester row of the policy table"""
    return redact(record, Role.REQUESTER)


def owner_views(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [owner_view(r) for r in records]


def admin_view(record: Dict[str, Any], show_customer_details: bool = False) -> ServiceRequestAdminView:
    """
    CSC rendering of a service request. The full record is always loaded;
    the toggle only decides whether the organization/contact block is
    rendered. This is presentation, not redaction.
    """
    full = redact(record, Role.CSC)
    request = {k: v for k, v in full.items() if k not in CUSTOMER_DETAIL_FIELDS}
    details = {k: full.get(k) for k in CUSTOMER_DETAIL_FIELDS} if show_customer_details else None
    return ServiceRequestAdminView(
        request=request,
        customer_details=details,
        customer_details_visible=show_customer_details,
    )
