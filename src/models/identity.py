"""Verified caller identities.

An identity is built once, from a token whose user still exists, and is then
passed around as one of two frozen variants. Each variant carries only the
fields that make sense for its role, so a whole manager can never be mistaken
for something with a team.
"""
from dataclasses import dataclass
from typing import Union

from .user import User, UserRole


@dataclass(frozen=True)
class TeamManagerIdentity:
    """A signed-in team manager, scoped to exactly one team."""
    user_id: int
    email: str
    team: str

    role = UserRole.TEAM_MANAGER


@dataclass(frozen=True)
class WholeManagerIdentity:
    """A signed-in whole manager, scoped to the team managers it has claimed."""
    user_id: int
    email: str

    role = UserRole.WHOLE_MANAGER


Identity = Union[TeamManagerIdentity, WholeManagerIdentity]


def identity_from_user(user: User) -> Identity:
    """Build the identity variant matching a persisted user.

    Must be called while the user's session is still active.
    """
    if user.role == UserRole.TEAM_MANAGER:
        if not user.team:
            raise ValueError(f"Team manager {user.id} has no team")
        return TeamManagerIdentity(user_id=user.id, email=user.email, team=user.team)
    if user.role == UserRole.WHOLE_MANAGER:
        return WholeManagerIdentity(user_id=user.id, email=user.email)
    raise ValueError(f"Unknown role for user {user.id}: {user.role!r}")
