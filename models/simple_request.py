from pydantic import BaseModel, field_validator
from typing import ClassVar, Optional, List
from datetime import datetime
from enum import Enum

from models.request_common import PartialUpdate, RequestStatus, require_text, check_email

MIN_DESCRIPTION_LENGTH = 10

class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class PersonalInfo(BaseModel):
    full_name: str
    email: str
    phone: str
    address: str
    date_of_birth: Optional[str] = None
    id_number: Optional[str] = None

    @field_validator("full_name", "phone", "address")
    @classmethod
    def _required(cls, value, info):
        return require_text(value, info.field_name.replace("_", " ").capitalize())

    @field_validator("email")
    @classmethod
    def _email(cls, value):
        return check_email(value)

class ServiceDetails(BaseModel):
    service_type: str
    description: str
    urgency: Urgency = Urgency.MEDIUM
    attachments: Optional[List[str]] = None

    @field_validator("service_type")
    @classmethod
    def _service_type(cls, value):
        return require_text(value, "Service type")

    @field_validator("description")
    @classmethod
    def _description(cls, value):
        require_text(value, "Service description")
        if len(value) < MIN_DESCRIPTION_LENGTH:
            raise ValueError(
                f"Service description must be at least {MIN_DESCRIPTION_LENGTH} characters long"
            )
        return value

class AdditionalInfo(BaseModel):
    notes: Optional[str] = None
    preferences: Optional[str] = None

class SimpleRequestCreate(BaseModel):
    personal_info: PersonalInfo
    service_details: ServiceDetails
    additional_info: Optional[AdditionalInfo] = None

class SimpleRequestUpdate(PartialUpdate):
    """CSC edit surface; only the keys actually sent are merged"""
    NULLABLE_FIELDS: ClassVar[frozenset] = frozenset({"additional_info"})

    status: Optional[RequestStatus] = None
    comments: Optional[str] = None
    personal_info: Optional[PersonalInfo] = None
    service_details: Optional[ServiceDetails] = None
    additional_info: Optional[AdditionalInfo] = None

class CompleteRequest(BaseModel):
    note: Optional[str] = None

class SimpleRequest(BaseModel):
    id: str
    user_id: str
    submission_time: datetime
    status: RequestStatus = RequestStatus.SUBMITTED
    comments: str = ""
    personal_info: PersonalInfo
    service_details: ServiceDetails
    additional_info: Optional[AdditionalInfo] = None
