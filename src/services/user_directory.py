"""Persistence of team-manager and whole-manager accounts."""
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError

from src.models import AccountDTO, Identity, User, UserRole, identity_from_user, normalize_email
from src.services.errors import Conflict, Forbidden, InvalidInput, NotFound

logger = logging.getLogger(__name__)


class UserDirectory:
    """Account storage with the claim and deletion rules built into the SQL.

    ``assign`` and ``delete`` are single conditional statements; their row
    count decides the outcome, so two managers racing for the same account
    cannot both win.
    """

    def __init__(self, database):
        self.database = database

    def create_team_manager(self, name, email, password_hash, team,
                            assigned_manager_id=None) -> AccountDTO:
        """Create a team manager, unclaimed or claimed by ``assigned_manager_id``."""
        user = User(
            name=name,
            email=email,
            password_hash=password_hash,
            role=UserRole.TEAM_MANAGER,
            team=team,
            assigned_manager_id=assigned_manager_id,
        )
        return self._create(user)

    def create_whole_manager(self, name, email, password_hash) -> AccountDTO:
        user = User(
            name=name,
            email=email,
            password_hash=password_hash,
            role=UserRole.WHOLE_MANAGER,
            team=None,
        )
        return self._create(user)

    def _create(self, user) -> AccountDTO:
        try:
            user.validate_role_team()
        except ValueError as e:
            raise InvalidInput(str(e))

        try:
            with self.database.session_scope() as session:
                if user.assigned_manager_id is not None:
                    manager = session.get(User, user.assigned_manager_id)
                    if manager is None or manager.role != UserRole.WHOLE_MANAGER:
                        raise InvalidInput("Assigned manager must be a whole manager")

                session.add(user)
                session.flush()
                account = AccountDTO.from_orm(user)
        except IntegrityError as e:
            if "email" in str(e.orig).lower():
                logger.warning(f"Registration rejected, email already registered: {user.email}")
                raise Conflict("User with this email already exists")
            logger.error(f"Integrity error creating user {user.email}: {e.orig}")
            raise InvalidInput("Account violates a data constraint")

        logger.info(f"Created {account.role} account {account.id} ({account.email})")
        return account

    def find_by_id(self, user_id) -> Optional[AccountDTO]:
        with self.database.session_scope() as session:
            return AccountDTO.from_orm(session.get(User, user_id))

    def find_identity(self, user_id) -> Optional[Identity]:
        """Identity variant for an existing user, or None."""
        with self.database.session_scope() as session:
            user = session.get(User, user_id)
            if user is None:
                return None
            return identity_from_user(user)

    def find_by_email(self, email) -> Optional[AccountDTO]:
        with self.database.session_scope() as session:
            user = session.execute(
                select(User).where(User.email == normalize_email(email))
            ).scalar_one_or_none()
            return AccountDTO.from_orm(user)

    def find_credentials(self, email) -> Optional[Tuple[AccountDTO, str]]:
        """Return the account and its password hash, or None if the email is unknown."""
        with self.database.session_scope() as session:
            user = session.execute(
                select(User).where(User.email == normalize_email(email))
            ).scalar_one_or_none()
            if user is None:
                return None
            return AccountDTO.from_orm(user), user.password_hash

    def list_in_scope(self, user_filter) -> List[AccountDTO]:
        """Team managers that are unclaimed or claimed by ``user_filter.manager_id``."""
        with self.database.session_scope() as session:
            users = session.execute(
                select(User)
                .where(
                    User.role == UserRole.TEAM_MANAGER,
                    or_(
                        User.assigned_manager_id.is_(None),
                        User.assigned_manager_id == user_filter.manager_id,
                    ),
                )
                .order_by(User.created_at.desc(), User.id.desc())
            ).scalars().all()
            return [AccountDTO.from_orm(u) for u in users]

    def managed_teams(self, manager_id) -> List[str]:
        """Teams of the team managers claimed by ``manager_id``."""
        with self.database.session_scope() as session:
            teams = session.execute(
                select(User.team)
                .where(
                    User.role == UserRole.TEAM_MANAGER,
                    User.assigned_manager_id == manager_id,
                )
                .distinct()
            ).scalars().all()
            return sorted(teams)

    def list_whole_managers(self) -> List[dict]:
        with self.database.session_scope() as session:
            rows = session.execute(
                select(User.id, User.name)
                .where(User.role == UserRole.WHOLE_MANAGER)
                .order_by(User.name)
            ).all()
            return [{'id': row.id, 'name': row.name} for row in rows]

    def assign(self, target_id, manager_id) -> AccountDTO:
        """Claim an unclaimed team manager for ``manager_id``.

        Raises NotFound if the target is missing or not a team manager and
        Conflict if someone (including ``manager_id``) already claimed it.
        """
        with self.database.session_scope() as session:
            manager = session.get(User, manager_id)
            if manager is None or manager.role != UserRole.WHOLE_MANAGER:
                raise Forbidden("Only whole managers can claim team managers")

            result = session.execute(
                update(User)
                .where(
                    User.id == target_id,
                    User.role == UserRole.TEAM_MANAGER,
                    User.assigned_manager_id.is_(None),
                )
                .values(
                    assigned_manager_id=manager_id,
                    updated_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )

            if result.rowcount == 1:
                session.flush()
                user = session.get(User, target_id, populate_existing=True)
                logger.info(f"Team manager {target_id} assigned to whole manager {manager_id}")
                return AccountDTO.from_orm(user)

            target = session.get(User, target_id)
            if target is None or target.role != UserRole.TEAM_MANAGER:
                raise NotFound("Team manager not found")

        logger.warning(f"Whole manager {manager_id} tried to claim already assigned team manager {target_id}")
        raise Conflict("Team manager is already assigned to a whole manager")

    def delete(self, target_id, manager_id) -> None:
        """Delete a team manager claimed by ``manager_id``.

        Anything else (missing, unclaimed, claimed by another manager, not a
        team manager) is reported as NotFound.
        """
        with self.database.session_scope() as session:
            result = session.execute(
                delete(User)
                .where(
                    User.id == target_id,
                    User.role == UserRole.TEAM_MANAGER,
                    User.assigned_manager_id == manager_id,
                )
                .execution_options(synchronize_session=False)
            )
            deleted = result.rowcount

        if deleted != 1:
            logger.warning(f"Whole manager {manager_id} cannot delete user {target_id}: not found or not assigned")
            raise NotFound("Team manager not found or not assigned to you")

        logger.info(f"Team manager {target_id} deleted by whole manager {manager_id}")
