"""Data Transfer Objects (DTOs) for database models.

These DTOs solve the "detached object" problem by copying data from SQLAlchemy
objects while the session is still active. They are plain Python objects that
can be safely used after the session is closed.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any

from .metric import COUNTER_FIELDS


@dataclass
class AccountDTO:
    """DTO for User model. Never carries the password hash."""
    id: int
    name: str
    email: str
    role: str
    team: Optional[str] = None
    assigned_manager_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_orm(cls, user):
        """Create DTO from SQLAlchemy User object.

        Must be called while the session is still active!
        """
        if user is None:
            return None

        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role.value,
            team=user.team,
            assigned_manager_id=user.assigned_manager_id,
            created_at=user.created_at,
        )

    @property
    def is_assigned(self) -> bool:
        return self.assigned_manager_id is not None

    def to_dict(self, viewer_id: Optional[int] = None) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization.

        When ``viewer_id`` is given the result is annotated with whether the
        account is claimed at all and whether it is claimed by the viewer.
        """
        data = {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'team': self.team,
            'assigned_manager': self.assigned_manager_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if viewer_id is not None:
            data['assigned'] = self.is_assigned
            data['assigned_to_me'] = self.assigned_manager_id == viewer_id
        return data


@dataclass
class MetricDTO:
    """DTO for Metric model."""
    id: int
    team: str
    month: str
    year: str
    testcase_automated: int
    bugs_filed: int
    script_issue_fixed: int
    script_integrated: int
    uploaded_by: Optional[Dict[str, Any]] = field(default=None)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_orm(cls, metric):
        """Create DTO from SQLAlchemy Metric object.

        Must be called while the session is still active!
        """
        if metric is None:
            return None

        uploader = None
        if metric.uploaded_by is not None:
            uploader = {
                'id': metric.uploaded_by.id,
                'name': metric.uploaded_by.name,
                'email': metric.uploaded_by.email,
            }

        return cls(
            id=metric.id,
            team=metric.team,
            month=metric.month,
            year=metric.year,
            uploaded_by=uploader,
            created_at=metric.created_at,
            updated_at=metric.updated_at,
            **metric.counters(),
        )

    def counters(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in COUNTER_FIELDS}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'team': self.team,
            'month': self.month,
            'year': self.year,
            **self.counters(),
            'uploaded_by': self.uploaded_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
