"""
Shared pieces of the two request record kinds
"""

import re
from typing import ClassVar, Optional
from enum import Enum

from pydantic import BaseModel, model_validator

# Same loose shape check the intake forms have always applied
EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")

class RequestStatus(str, Enum):
    SUBMITTED = "submitted"
    RE_SUBMITTED = "re-submitted"
    UNDER_PROCESS = "under process"
    ACTION_NEEDED = "action needed"
    COMPLETED = "completed"

class RequestKind(str, Enum):
    SIMPLE = "simple"
    SERVICE = "service"


def require_text(value: Optional[str], label: str) -> Optional[str]:
    """Reject blank strings; None passes through for partial updates"""
    if value is None:
        return value
    if not value.strip():
        raise ValueError(f"{label} is required")
    return value


def check_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not value.strip():
        raise ValueError("Email is required")
    if not EMAIL_PATTERN.search(value):
        raise ValueError("Please enter a valid email address")
    return value


class PartialUpdate(BaseModel):
    """
    Base for CSC edit payloads. Only the keys a client sends are merged, so
    a key that is sent must carry a value; an explicit null is accepted only
    for the fields listed in NULLABLE_FIELDS.
    """
    NULLABLE_FIELDS: ClassVar[frozenset] = frozenset()

    @model_validator(mode="after")
    def _reject_explicit_nulls(self):
        nulls = sorted(
            name for name in self.model_fields_set
            if getattr(self, name) is None and name not in self.NULLABLE_FIELDS
        )
        if nulls:
            raise ValueError(f"Fields may not be null: {', '.join(nulls)}")
        return self
