from pydantic import BaseModel
from typing import List

class StatusSummary(BaseModel):
    """One request kind on the CSC dashboard, newest first in each list"""
    pending_count: int = 0
    resolved_count: int = 0
    pending: List[dict] = []
    resolved: List[dict] = []

class StatusBuckets(BaseModel):
    pending: List[dict] = []
    resolved: List[dict] = []

    @property
    def pending_count(self) -> int:
        return len(self.pending)

    @property
    def resolved_count(self) -> int:
        return len(self.resolved)

    def summary(self) -> StatusSummary:
        return StatusSummary(
            pending_count=self.pending_count,
            resolved_count=self.resolved_count,
            pending=self.pending,
            resolved=self.resolved,
        )

class CSCDashboard(BaseModel):
    service_requests: StatusSummary
    simple_requests: StatusSummary
