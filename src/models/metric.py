"""Monthly regression-testing metric model."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import re

from .base import Base

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
YEAR_PATTERN = re.compile(r"^\d{4}$")

COUNTER_FIELDS = (
    "testcase_automated",
    "bugs_filed",
    "script_issue_fixed",
    "script_integrated",
)

# Counters are INTEGER columns (int4 on PostgreSQL)
COUNTER_MAX = 2**31 - 1


def year_of(month):
    """Return the YYYY component of a YYYY-MM month string."""
    return month.split("-", 1)[0]


class Metric(Base):
    """Counters uploaded by a team manager for one team and one month.

    At most one row exists per (team, month); the unique constraint is what
    rejects a second upload, so concurrent uploads cannot both land.
    """

    __tablename__ = "metrics"
    __table_args__ = (
        UniqueConstraint("team", "month", name="uq_metrics_team_month"),
        CheckConstraint("testcase_automated >= 0", name="testcase_automated_non_negative"),
        CheckConstraint("bugs_filed >= 0", name="bugs_filed_non_negative"),
        CheckConstraint("script_issue_fixed >= 0", name="script_issue_fixed_non_negative"),
        CheckConstraint("script_integrated >= 0", name="script_integrated_non_negative"),
        CheckConstraint("substr(month, 1, 4) = year", name="year_matches_month"),
        Index("ix_metrics_team_created_at", "team", "created_at"),
        Index("ix_metrics_month", "month"),
    )

    id = Column(Integer, primary_key=True)
    team = Column(String(50), nullable=False)
    month = Column(String(7), nullable=False)  # YYYY-MM
    year = Column(String(4), nullable=False)  # YYYY, derived from month
    testcase_automated = Column(Integer, nullable=False)
    bugs_filed = Column(Integer, nullable=False)
    script_issue_fixed = Column(Integer, nullable=False)
    script_integrated = Column(Integer, nullable=False)
    # SET NULL keeps a deleted team manager's history on the dashboard
    uploaded_by_id = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    uploaded_by = relationship("User")

    def counters(self):
        return {name: getattr(self, name) for name in COUNTER_FIELDS}

    def __repr__(self):
        return f"<Metric(team='{self.team}', month='{self.month}')>"
