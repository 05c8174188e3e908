"""User model for team-manager and whole-manager accounts."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import relationship, validates
from datetime import datetime, timezone
import enum
import logging

from .base import Base

logger = logging.getLogger(__name__)

TEAM_MAX_LENGTH = 50
NAME_MAX_LENGTH = 100


class UserRole(enum.Enum):
    """User role enumeration."""

    TEAM_MANAGER = "team_manager"
    WHOLE_MANAGER = "whole_manager"


def normalize_email(email):
    """Lower-case and strip an email address for storage and lookup."""
    if email is None:
        return None
    return email.strip().lower()


class User(Base):
    """Account that can sign in to the dashboard.

    A team manager always carries a team and may be claimed by exactly one
    whole manager through ``assigned_manager_id``. A whole manager never has
    a team and is never assigned to anyone.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "(role = 'team_manager' AND team IS NOT NULL AND length(team) > 0)"
            " OR (role = 'whole_manager' AND team IS NULL)",
            name="role_team",
        ),
        CheckConstraint(
            "role = 'team_manager' OR assigned_manager_id IS NULL",
            name="whole_manager_unassigned",
        ),
        Index("ix_users_role_assigned_manager", "role", "assigned_manager_id"),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(NAME_MAX_LENGTH), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(
            UserRole,
            name="user_role",
            values_callable=lambda roles: [r.value for r in roles],
            validate_strings=True,
        ),
        nullable=False,
    )
    team = Column(String(TEAM_MAX_LENGTH), nullable=True)
    assigned_manager_id = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    assigned_manager = relationship("User", remote_side=[id])

    @validates("email")
    def _normalize_email(self, key, value):
        return normalize_email(value)

    @validates("team")
    def _strip_team(self, key, value):
        if value is None:
            return None
        value = value.strip()
        return value or None

    def validate_role_team(self):
        """Raise ValueError unless role and team agree.

        Team managers need a non-empty team, whole managers must not have one.
        """
        if self.role == UserRole.TEAM_MANAGER:
            if not self.team:
                raise ValueError("Team is required for team manager")
            if len(self.team) > TEAM_MAX_LENGTH:
                raise ValueError(f"Team name cannot exceed {TEAM_MAX_LENGTH} characters")
        elif self.role == UserRole.WHOLE_MANAGER:
            if self.team is not None:
                raise ValueError("Team should not be provided for whole manager")
            if self.assigned_manager_id is not None:
                raise ValueError("Whole managers cannot be assigned to a manager")
        else:
            raise ValueError(f"Unknown role: {self.role!r}")

    def is_team_manager(self):
        return self.role == UserRole.TEAM_MANAGER

    def is_whole_manager(self):
        return self.role == UserRole.WHOLE_MANAGER

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
