"""
Calibration service request (full intake form)

Mirrors the paper form used by the calibration lab: organization/contact
block, calibration scheduling, instrument condition and method, NABL
conformity, pass/fail criteria, contract review questions, witness
activities and commercial terms. The two csc_* fields belong to the
service center and are never shown to the customer.
"""

from pydantic import BaseModel, Field, field_validator
from typing import ClassVar, Optional, List
from datetime import datetime, date as date_type
from enum import Enum

from models.request_common import PartialUpdate, RequestStatus, require_text, check_email

class CalibrationService(str, Enum):
    AT_LABORATORY = "atLaboratory"
    AT_SITE = "atSite"

class InstrumentCondition(str, Enum):
    OK = "ok"
    NOT_OK = "notOk"

class CalibrationMethod(str, Enum):
    AS_PER_WORK_INSTRUCTION = "asPerWorkInstruction"
    AS_PER_SCOPE_OF_ACCREDITATION = "asPerScopeOfAccreditation"
    IN_APPROPRIATE = "inAppropriate"
    OUT_OF_DATE = "outOfDate"

class WitnessActivity(str, Enum):
    CALIBRATION = "Calibration"
    PREPARATION = "Preparation"
    PACKAGING = "Packaging"
    DISPATCH = "Dispatch"

# Organization/contact block, hidden by default on the CSC view
CUSTOMER_DETAIL_FIELDS = (
    "organization_name",
    "organization_address",
    "contact_person",
    "phone_no",
    "fax_no",
    "mobile_no",
    "email_id",
)

CSC_ONLY_FIELDS = ("csc_remarks", "csc_internal_notes")

REQUIRED_TEXT_FIELDS = {
    "organization_name": "Organization name",
    "organization_address": "Organization address",
    "contact_person": "Contact person",
    "phone_no": "Phone number",
    "calibration_request_date": "Calibration request date",
    "target_delivery_date": "Target delivery date",
}


class _IntakeChecks(BaseModel):
    """Required-field checks shared by the create and update payloads"""

    @field_validator(*REQUIRED_TEXT_FIELDS, check_fields=False)
    @classmethod
    def _required(cls, value, info):
        return require_text(value, REQUIRED_TEXT_FIELDS[info.field_name])

    @field_validator("email_id", check_fields=False)
    @classmethod
    def _email(cls, value):
        return check_email(value)


class ServiceRequestBase(BaseModel):
    # Service Request Details
    service_request_no: str = ""
    date: str = Field(default_factory=lambda: date_type.today().isoformat())
    work_order_no: str = ""

    # Customer/Organization Details
    organization_name: str
    organization_address: str
    contact_person: str
    phone_no: str
    fax_no: str = ""
    mobile_no: str = ""
    email_id: str

    # Calibration Details
    calibration_service: CalibrationService = CalibrationService.AT_LABORATORY
    calibration_request_date: str
    target_delivery_date: str
    frequency_of_calibration: str = ""

    instrument_condition: InstrumentCondition = InstrumentCondition.OK
    calibration_method: CalibrationMethod = CalibrationMethod.AS_PER_WORK_INSTRUCTION

    # NABL Parameters
    parameter_under_nabl: bool = False
    statement_of_conformity: bool = False

    # Pass/Fail Criteria (kept as entered)
    obs_reading: str = ""
    mu_value: str = ""
    usl_value: str = ""
    lsl_value: str = ""

    # Contract review
    difference_with_contact_tender: bool = False
    difference_resolved: bool = False
    contact_accepted: bool = False
    deviation_from_contract: bool = False
    deviation_details: str = ""
    contract_amended: bool = False
    contract_review_repeated: bool = False
    amended_contract_communicated: bool = False
    clarification_asked: bool = False
    witness_asked: bool = False
    witness_activity: List[WitnessActivity] = []

    # Terms and Conditions
    price_as_per_price_list: str = ""
    payment_terms: str = ""
    delivery_mode: str = ""
    agreed_delivery_date_instrument: str = ""
    agreed_delivery_date_certificate: str = ""
    manual_provided: bool = False
    instrument_list: str = ""

    # Signatures
    customer_signature: str = ""
    overall_remarks: str = ""


class ServiceRequestCreate(_IntakeChecks, ServiceRequestBase):
    # Accepted only from the CSC role, see services.workflow
    csc_remarks: Optional[str] = None
    csc_internal_notes: Optional[str] = None


class ServiceRequestUpdate(_IntakeChecks, PartialUpdate):
    """CSC edit surface; only the keys actually sent are merged"""
    NULLABLE_FIELDS: ClassVar[frozenset] = frozenset({"csc_remarks", "csc_internal_notes"})

    status: Optional[RequestStatus] = None
    comments: Optional[str] = None
    service_request_no: Optional[str] = None
    date: Optional[str] = None
    work_order_no: Optional[str] = None
    organization_name: Optional[str] = None
    organization_address: Optional[str] = None
    contact_person: Optional[str] = None
    phone_no: Optional[str] = None
    fax_no: Optional[str] = None
    mobile_no: Optional[str] = None
    email_id: Optional[str] = None
    calibration_service: Optional[CalibrationService] = None
    calibration_request_date: Optional[str] = None
    target_delivery_date: Optional[str] = None
    frequency_of_calibration: Optional[str] = None
    instrument_condition: Optional[InstrumentCondition] = None
    calibration_method: Optional[CalibrationMethod] = None
    parameter_under_nabl: Optional[bool] = None
    statement_of_conformity: Optional[bool] = None
    obs_reading: Optional[str] = None
    mu_value: Optional[str] = None
    usl_value: Optional[str] = None
    lsl_value: Optional[str] = None
    difference_with_contact_tender: Optional[bool] = None
    difference_resolved: Optional[bool] = None
    contact_accepted: Optional[bool] = None
    deviation_from_contract: Optional[bool] = None
    deviation_details: Optional[str] = None
    contract_amended: Optional[bool] = None
    contract_review_repeated: Optional[bool] = None
    amended_contract_communicated: Optional[bool] = None
    clarification_asked: Optional[bool] = None
    witness_asked: Optional[bool] = None
    witness_activity: Optional[List[WitnessActivity]] = None
    price_as_per_price_list: Optional[str] = None
    payment_terms: Optional[str] = None
    delivery_mode: Optional[str] = None
    agreed_delivery_date_instrument: Optional[str] = None
    agreed_delivery_date_certificate: Optional[str] = None
    manual_provided: Optional[bool] = None
    instrument_list: Optional[str] = None
    customer_signature: Optional[str] = None
    overall_remarks: Optional[str] = None
    csc_remarks: Optional[str] = None
    csc_internal_notes: Optional[str] = None


class CSCRemarksUpdate(BaseModel):
    csc_remarks: str = ""
    csc_internal_notes: str = ""


class ServiceRequest(ServiceRequestBase):
    id: str
    user_id: str
    submission_time: datetime
    status: RequestStatus = RequestStatus.SUBMITTED
    comments: str = ""
    csc_remarks: Optional[str] = None
    csc_internal_notes: Optional[str] = None


class ServiceRequestAdminView(BaseModel):
    """CSC rendering of a service request with the disclosure toggle applied"""
    request: dict
    customer_details: Optional[dict] = None
    customer_details_visible: bool = False
