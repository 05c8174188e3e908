"""Role policy: which metrics and accounts an identity may see or change.

Every scope is derived from the identity on each call. Values supplied by the
caller (such as a ``team`` query parameter) can only narrow that scope, never
widen it.
"""
import logging
from dataclasses import dataclass
from typing import FrozenSet, Optional

from src.models import AccountDTO, Identity, TeamManagerIdentity, WholeManagerIdentity
from src.services.errors import Forbidden

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeamFilter:
    """Set of teams whose metric rows may be returned. Empty means no rows."""
    teams: FrozenSet[str]

    @classmethod
    def of(cls, *teams):
        return cls(frozenset(teams))

    def is_empty(self) -> bool:
        return not self.teams

    def __contains__(self, team) -> bool:
        return team in self.teams


@dataclass(frozen=True)
class UserListFilter:
    """Team managers that are unclaimed or claimed by ``manager_id``."""
    manager_id: int


class RolePolicy:
    """Authorization decisions for the two roles.

    Team managers read and write their own team only. Whole managers read
    the teams of the team managers they have claimed and administer those
    accounts.
    """

    def __init__(self, user_directory):
        self.user_directory = user_directory

    def scope_for_metric_read(self, identity: Identity, team_hint: Optional[str] = None) -> TeamFilter:
        """Teams whose metrics ``identity`` may read.

        ``team_hint`` narrows the result to one team only when that team is
        already in scope; otherwise it is ignored.
        """
        if isinstance(identity, TeamManagerIdentity):
            return TeamFilter.of(identity.team)

        if isinstance(identity, WholeManagerIdentity):
            managed = TeamFilter(frozenset(self.user_directory.managed_teams(identity.user_id)))
            if team_hint and team_hint in managed:
                return TeamFilter.of(team_hint)
            if team_hint:
                logger.debug(f"Ignoring team filter {team_hint!r} outside scope of manager {identity.user_id}")
            return managed

        raise Forbidden("Unknown role")

    def authorize_metric_write(self, identity: Identity, team: str) -> bool:
        return isinstance(identity, TeamManagerIdentity) and team == identity.team

    def require_metric_write(self, identity: Identity, team: Optional[str] = None) -> str:
        """Return the team ``identity`` writes for, or raise Forbidden.

        ``team`` defaults to the identity's own team.
        """
        if not isinstance(identity, TeamManagerIdentity):
            logger.warning(f"User {identity.user_id} ({identity.role.value}) attempted a metrics upload")
            raise Forbidden("Only team managers can upload metrics")

        team = identity.team if team is None else team
        if not self.authorize_metric_write(identity, team):
            logger.warning(f"Team manager {identity.user_id} attempted to write metrics for team {team!r}")
            raise Forbidden("Team managers can only upload metrics for their own team")
        return team

    def authorize_user_management(self, identity: Identity) -> bool:
        return isinstance(identity, WholeManagerIdentity)

    def require_user_management(self, identity: Identity) -> WholeManagerIdentity:
        if not self.authorize_user_management(identity):
            logger.warning(f"User {identity.user_id} ({identity.role.value}) denied user management")
            raise Forbidden("Access denied. Only whole managers can manage team managers.")
        return identity

    def scope_for_user_list(self, identity: Identity) -> UserListFilter:
        """Accounts a whole manager can see: its own team managers plus unclaimed ones."""
        manager = self.require_user_management(identity)
        return UserListFilter(manager_id=manager.user_id)

    def authorize_assign(self, identity: Identity, target_id: int) -> AccountDTO:
        """Claim ``target_id`` for the calling whole manager.

        NotFound when the target is not a team manager, Conflict when it is
        already claimed. The claim itself is a single conditional update.
        """
        manager = self.require_user_management(identity)
        return self.user_directory.assign(target_id, manager.user_id)

    def authorize_delete(self, identity: Identity, target_id: int) -> None:
        """Delete ``target_id`` if the caller is its assigned manager, else NotFound."""
        manager = self.require_user_management(identity)
        self.user_directory.delete(target_id, manager.user_id)
