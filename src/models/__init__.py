"""Models package for the regression metrics dashboard."""

# Import base first
from .base import Base

from .user import User, UserRole, normalize_email
from .metric import Metric, COUNTER_FIELDS
from .identity import Identity, TeamManagerIdentity, WholeManagerIdentity, identity_from_user
from .dtos import AccountDTO, MetricDTO

__all__ = [
    "Base",
    "User",
    "UserRole",
    "normalize_email",
    "Metric",
    "COUNTER_FIELDS",
    "Identity",
    "TeamManagerIdentity",
    "WholeManagerIdentity",
    "identity_from_user",
    "AccountDTO",
    "MetricDTO",
]
