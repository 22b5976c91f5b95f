from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from daritana_scheduling.errors import ValidationError


class MilestoneStatus(Enum):
    UPCOMING = "upcoming"
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    COMPLETED = "completed"
    MISSED = "missed"


class ApprovalStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class MilestoneError(ValidationError):
    """Exception raised for errors in the Milestone class."""

    pass


class Milestone:
    """
    A significant checkpoint within a project phase, optionally tied to a
    client payment.
    """

    def __init__(
        self,
        id: str,
        name: str,
        date: datetime,
        description: str = "",
        status: str = "upcoming",
        deliverables: Optional[List[str]] = None,
        payment_linked: bool = False,
        payment_amount: Optional[float] = None,
        client_approval_required: bool = False,
        approval_status: Optional[str] = None,
        dependencies: Optional[List[str]] = None,
    ):
        if id is None or str(id).strip() == "":
            raise MilestoneError("Milestone ID cannot be None or empty")
        self.id = id

        if not name or not isinstance(name, str):
            raise MilestoneError("Milestone name must be a non-empty string")
        self.name = name

        if not isinstance(date, datetime):
            raise MilestoneError("Milestone date must be a datetime object")
        self.date = date

        self.description = description
        self.status = status
        self.deliverables = list(deliverables) if deliverables else []

        if payment_amount is not None and payment_amount < 0:
            raise MilestoneError("Payment amount cannot be negative")
        self.payment_linked = payment_linked
        self.payment_amount = payment_amount

        self.client_approval_required = client_approval_required
        self.approval_status = approval_status
        self.dependencies = list(dependencies) if dependencies else []

    @property
    def status(self) -> str:
        return self._status.value

    @status.setter
    def status(self, value: str):
        try:
            self._status = MilestoneStatus(value)
        except ValueError:
            valid_statuses = [s.value for s in MilestoneStatus]
            raise MilestoneError(
                f"Invalid status: {value}. Must be one of {valid_statuses}"
            )

    @property
    def approval_status(self) -> Optional[str]:
        return self._approval_status.value if self._approval_status else None

    @approval_status.setter
    def approval_status(self, value: Optional[str]):
        if value is None:
            self._approval_status = None
            return
        try:
            self._approval_status = ApprovalStatus(value)
        except ValueError:
            valid_statuses = [s.value for s in ApprovalStatus]
            raise MilestoneError(
                f"Invalid approval status: {value}. Must be one of {valid_statuses}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "date": self.date,
            "status": self.status,
            "deliverables": self.deliverables.copy(),
            "payment_linked": self.payment_linked,
            "payment_amount": self.payment_amount,
            "client_approval_required": self.client_approval_required,
            "approval_status": self.approval_status,
            "dependencies": self.dependencies.copy(),
        }

    def __repr__(self) -> str:
        return f"Milestone(id={self.id}, name={self.name}, date={self.date:%Y-%m-%d})"
