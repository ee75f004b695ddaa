"""
Test Workflow / Visibility rules

Key Business Rules:
- Pending = submitted, re-submitted, under process, action needed
- Resolved = completed; the two buckets partition every record set
- CSC remarks are readable and writable by the CSC only
- Requesters write core fields at creation only; technicians see nothing
- Completing a request sets status and comment in one step
"""

import itertools

import pytest
from pydantic import ValidationError

from config import get_settings
from models.principal import Role
from models.request_common import RequestStatus
from models.service_request import CSC_ONLY_FIELDS, CUSTOMER_DETAIL_FIELDS, ServiceRequestCreate, ServiceRequestUpdate
from models.simple_request import SimpleRequestCreate, SimpleRequestUpdate
from services import workflow
from services.errors import FieldAccessError, InvalidStatusError
from services.request_repository import SimpleRequestRepository, ServiceRequestRepository

from conftest import simple_request_payload, service_request_payload


def _record(status="submitted", **extra):
    record = {
        "id": "r1",
        "user_id": "owner-1",
        "submission_time": "2025-03-01T09:00:00",
        "status": status,
        "comments": "",
        "organization_name": "Acme Instruments",
        "email_id": "lab@acme.com",
        "csc_remarks": "Customer pays late",
        "csc_internal_notes": "Check gauge history",
    }
    record.update(extra)
    return record


# ============================================================
# Status classification
# ============================================================

class TestClassification:

    @pytest.mark.parametrize("status", ["submitted", "re-submitted", "under process", "action needed"])
    def test_pending_statuses(self, status):
        assert workflow.classify(status) == workflow.Bucket.PENDING

    def test_completed_is_resolved(self):
        assert workflow.classify(RequestStatus.COMPLETED) == workflow.Bucket.RESOLVED

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            workflow.classify("archived")

    @pytest.mark.parametrize("current,target", list(itertools.permutations([s.value for s in RequestStatus], 2)))
    def test_any_status_may_follow_any_other(self, current, target):
        assert workflow.can_transition(current, target)

    @pytest.mark.parametrize("size", [0, 1, 5, 12])
    def test_partition_is_complete_and_disjoint(self, size):
        statuses = [s.value for s in RequestStatus]
        records = [_record(status=statuses[i % len(statuses)], id=f"r{i}") for i in range(size)]

        buckets = workflow.partition(records)

        pending = {r["id"] for r in buckets.pending}
        resolved = {r["id"] for r in buckets.resolved}
        assert pending | resolved == {r["id"] for r in records}
        assert pending & resolved == set()
        assert all(r["status"] == "completed" for r in buckets.resolved)
        assert buckets.pending_count + buckets.resolved_count == size


# ============================================================
# Field policy
# ============================================================

class TestFieldPolicy:

    @pytest.mark.parametrize("role", list(Role))
    def test_csc_fields_only_visible_to_csc(self, role):
        view = workflow.redact(_record(), role)

        for field in CSC_ONLY_FIELDS:
            assert (field in view) == (role == Role.CSC)

    def test_owner_view_never_carries_csc_fields(self):
        for status in RequestStatus:
            view = workflow.owner_view(_record(status=status.value))
            assert not set(CSC_ONLY_FIELDS) & set(view)
            assert view["status"] == status.value
            assert view["organization_name"] == "Acme Instruments"

    def test_technician_reads_nothing(self):
        assert workflow.redact(_record(), Role.TECHNICIAN) == {}

    def test_requester_writes_core_fields_at_creation_only(self):
        workflow.ensure_writable(Role.REQUESTER, ["organization_name", "personal_info"], creating=True)

        with pytest.raises(FieldAccessError):
            workflow.ensure_writable(Role.REQUESTER, ["organization_name"])

    @pytest.mark.parametrize("field", ["status", "comments", "csc_remarks", "csc_internal_notes"])
    def test_requester_never_writes_workflow_or_csc_fields(self, field):
        with pytest.raises(FieldAccessError) as exc_info:
            workflow.ensure_writable(Role.REQUESTER, [field], creating=True)
        assert exc_info.value.fields == [field]

    def test_nobody_writes_system_fields(self):
        for role in Role:
            with pytest.raises(FieldAccessError):
                workflow.ensure_writable(role, ["user_id"])

    def test_csc_writes_everything_else(self):
        workflow.ensure_writable(Role.CSC, ["status", "comments", "csc_remarks", "personal_info", "email_id"])

    def test_creation_payload_drops_blank_csc_fields(self):
        payload = workflow.creation_payload(
            Role.REQUESTER,
            {"organization_name": "Acme", "csc_remarks": "", "csc_internal_notes": None},
        )
        assert payload == {"organization_name": "Acme"}

    def test_creation_payload_rejects_filled_csc_fields_from_requester(self):
        with pytest.raises(FieldAccessError):
            workflow.creation_payload(Role.REQUESTER, {"organization_name": "Acme", "csc_remarks": "VIP"})

    def test_creation_payload_accepts_csc_fields_from_csc(self):
        payload = workflow.creation_payload(Role.CSC, {"organization_name": "Acme", "csc_remarks": "VIP"})
        assert payload["csc_remarks"] == "VIP"


# ============================================================
# Customer detail disclosure (CSC view)
# ============================================================

class TestAdminView:

    def test_customer_block_hidden_by_default(self):
        view = workflow.admin_view(_record())

        assert view.customer_details is None
        assert not view.customer_details_visible
        assert not set(CUSTOMER_DETAIL_FIELDS) & set(view.request)
        assert view.request["csc_remarks"] == "Customer pays late"

    def test_customer_block_revealed_on_request(self):
        view = workflow.admin_view(_record(), show_customer_details=True)

        assert view.customer_details_visible
        assert view.customer_details["organization_name"] == "Acme Instruments"
        assert view.customer_details["email_id"] == "lab@acme.com"
        assert set(view.customer_details) == set(CUSTOMER_DETAIL_FIELDS)


# ============================================================
# Validation happens before anything reaches the repository
# ============================================================

class TestIntakeValidation:

    def test_short_description_rejected(self):
        payload = simple_request_payload()
        payload["service_details"]["description"] = "short"

        with pytest.raises(ValidationError) as exc_info:
            SimpleRequestCreate(**payload)
        assert "at least 10 characters" in str(exc_info.value)

    def test_twelve_character_description_accepted(self):
        payload = simple_request_payload()
        payload["service_details"]["description"] = "x" * 12

        assert SimpleRequestCreate(**payload).service_details.description == "x" * 12

    @pytest.mark.parametrize("email", ["jane", "jane@company", "@", "jane company.com"])
    def test_malformed_email_rejected(self, email):
        payload = simple_request_payload()
        payload["personal_info"]["email"] = email

        with pytest.raises(ValidationError):
            SimpleRequestCreate(**payload)

    @pytest.mark.parametrize("field", ["full_name", "phone", "address"])
    def test_blank_personal_info_rejected(self, field):
        payload = simple_request_payload()
        payload["personal_info"][field] = "   "

        with pytest.raises(ValidationError):
            SimpleRequestCreate(**payload)

    def test_bad_urgency_rejected(self):
        payload = simple_request_payload()
        payload["service_details"]["urgency"] = "whenever"

        with pytest.raises(ValidationError):
            SimpleRequestCreate(**payload)

    @pytest.mark.parametrize("field", [
        "organization_name", "organization_address", "contact_person",
        "phone_no", "email_id", "calibration_request_date", "target_delivery_date",
    ])
    def test_service_request_required_fields(self, field):
        blank = service_request_payload(**{field: ""})
        with pytest.raises(ValidationError):
            ServiceRequestCreate(**blank)

        missing = service_request_payload()
        del missing[field]
        with pytest.raises(ValidationError):
            ServiceRequestCreate(**missing)

    def test_service_request_defaults(self):
        request = ServiceRequestCreate(**service_request_payload())

        assert request.calibration_service.value == "atSite"
        assert request.manual_provided is False
        assert request.date
        assert [w.value for w in request.witness_activity] == ["Calibration", "Dispatch"]

    def test_partial_update_validates_only_given_fields(self):
        update = SimpleRequestUpdate(status="action needed")
        assert update.model_dump(exclude_unset=True) == {"status": RequestStatus.ACTION_NEEDED}

        with pytest.raises(ValidationError):
            SimpleRequestUpdate(status="lost")

    @pytest.mark.parametrize("field", ["status", "comments", "personal_info", "service_details"])
    def test_simple_update_rejects_explicit_null(self, field):
        with pytest.raises(ValidationError) as exc_info:
            SimpleRequestUpdate(**{field: None})
        assert "may not be null" in str(exc_info.value)

    def test_simple_update_may_clear_additional_info(self):
        update = SimpleRequestUpdate(additional_info=None)
        assert update.model_dump(exclude_unset=True) == {"additional_info": None}

    @pytest.mark.parametrize("field", ["status", "organization_name", "email_id", "witness_activity", "manual_provided"])
    def test_service_update_rejects_explicit_null(self, field):
        with pytest.raises(ValidationError):
            ServiceRequestUpdate(**{field: None})

    def test_service_update_may_clear_csc_fields(self):
        update = ServiceRequestUpdate(csc_remarks=None, csc_internal_notes=None)
        assert update.model_dump(exclude_unset=True) == {"csc_remarks": None, "csc_internal_notes": None}


# ============================================================
# CSC actions against the repository
# ============================================================

class TestCSCActions:

    async def test_complete_moves_request_to_resolved_bucket(self, db):
        repository = SimpleRequestRepository(db)
        data = SimpleRequestCreate(**simple_request_payload())
        payload = workflow.creation_payload(Role.REQUESTER, data.model_dump(mode="json", exclude_none=True))
        created = await repository.create("owner-1", payload)
        assert created["status"] == "submitted"

        before = await workflow.dashboard_buckets(repository)
        assert [r["id"] for r in before.pending] == [created["id"]]
        assert before.resolved == []

        completed = await workflow.complete(repository, created["id"], Role.CSC)
        assert completed["status"] == "completed"
        assert completed["comments"] == get_settings().completion_note

        after = await workflow.dashboard_buckets(repository)
        assert after.pending == []
        assert [r["id"] for r in after.resolved] == [created["id"]]

    async def test_complete_with_custom_note_overwrites_comments(self, db):
        repository = ServiceRequestRepository(db)
        created = await repository.create("owner-1", service_request_payload())
        await repository.update(created["id"], {"comments": "waiting on probe"})

        completed = await workflow.complete(repository, created["id"], Role.CSC, note="Certificate issued")

        assert completed["comments"] == "Certificate issued"
        assert completed["organization_name"] == created["organization_name"]

    async def test_completed_request_can_be_reopened(self, db):
        repository = SimpleRequestRepository(db)
        created = await repository.create("owner-1", simple_request_payload())
        await workflow.complete(repository, created["id"])

        reopened = await workflow.apply_update(repository, created["id"], Role.CSC, {"status": "action needed"})

        assert reopened["status"] == "action needed"
        assert workflow.classify(reopened["status"]) == workflow.Bucket.PENDING

    async def test_only_csc_may_complete(self, db):
        repository = SimpleRequestRepository(db)
        created = await repository.create("owner-1", simple_request_payload())

        for role in (Role.REQUESTER, Role.TECHNICIAN):
            with pytest.raises(FieldAccessError):
                await workflow.complete(repository, created["id"], role)

        assert (await repository.get_by_id(created["id"]))["status"] == "submitted"

    async def test_update_cannot_change_owner(self, db):
        repository = SimpleRequestRepository(db)
        created = await repository.create("owner-1", simple_request_payload())

        with pytest.raises(FieldAccessError):
            await workflow.apply_update(repository, created["id"], Role.CSC, {"user_id": "owner-2"})

        assert (await repository.get_by_id(created["id"]))["user_id"] == "owner-1"

    async def test_null_status_rejected_before_write(self, db):
        repository = SimpleRequestRepository(db)
        created = await repository.create("owner-1", simple_request_payload())

        with pytest.raises(InvalidStatusError):
            await workflow.apply_update(repository, created["id"], Role.CSC, {"status": None, "comments": "x"})

        stored = await repository.get_by_id(created["id"])
        assert stored["status"] == "submitted"
        assert stored["comments"] == ""

    async def test_completion_note_defaults_to_configured_text(self, db):
        repository = SimpleRequestRepository(db)
        created = await repository.create("owner-1", simple_request_payload())

        completed = await workflow.complete(repository, created["id"], note="")

        assert completed["comments"] == get_settings().completion_note
