"""Authentication and authorization service."""
import jwt
from datetime import datetime, timedelta, timezone
from functools import wraps
from flask import request, jsonify, current_app, g
from werkzeug.security import check_password_hash, generate_password_hash
from src.models import AccountDTO, UserRole
from src.services.errors import InvalidInput, MetricsDashboardError, Unauthenticated
import logging

logger = logging.getLogger(__name__)

JWT_ALGORITHM = 'HS256'


class AuthService:
    """Service for handling authentication and authorization."""

    def __init__(self, user_directory, auth_config):
        self.user_directory = user_directory
        self.jwt_secret = auth_config.jwt_secret
        self.jwt_expiry_hours = auth_config.jwt_expiry_hours
        self.password_min_length = auth_config.password_min_length

        logger.info(f"AuthService initialized - token expiry: {self.jwt_expiry_hours}h")

    def hash_password(self, password):
        """Hash a password, enforcing the configured minimum length."""
        if not password or len(password) < self.password_min_length:
            raise InvalidInput(f"Password must be at least {self.password_min_length} characters")
        return generate_password_hash(password)

    def register_team_manager(self, name, email, password, team, assigned_manager_id=None) -> AccountDTO:
        """Create a team manager account.

        Self-registration leaves ``assigned_manager_id`` empty; a whole manager
        creating the account passes its own id.
        """
        return self.user_directory.create_team_manager(
            name=name,
            email=email,
            password_hash=self.hash_password(password),
            team=team,
            assigned_manager_id=assigned_manager_id,
        )

    def create_whole_manager(self, name, email, password) -> AccountDTO:
        return self.user_directory.create_whole_manager(
            name=name,
            email=email,
            password_hash=self.hash_password(password),
        )

    def authenticate(self, email, password) -> AccountDTO:
        """Check email/password, raising Unauthenticated on any mismatch."""
        credentials = self.user_directory.find_credentials(email)
        if credentials is None:
            logger.info(f"Login failed: unknown email {email}")
            raise Unauthenticated("Invalid email or password")

        account, password_hash = credentials
        if not check_password_hash(password_hash, password):
            logger.info(f"Login failed: wrong password for user {account.id}")
            raise Unauthenticated("Invalid email or password")

        return account

    def generate_jwt_token(self, account: AccountDTO):
        """Generate JWT token carrying the account's role, team and email."""
        now = datetime.now(timezone.utc)
        payload = {
            'user_id': account.id,
            'role': account.role,
            'team': account.team,
            'email': account.email,
            'exp': now + timedelta(hours=self.jwt_expiry_hours),
            'iat': now,
        }
        return jwt.encode(payload, self.jwt_secret, algorithm=JWT_ALGORITHM)

    def verify_jwt_token(self, token):
        """Verify JWT token and return its claims."""
        try:
            return jwt.decode(token, self.jwt_secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise Unauthenticated("Token expired.")
        except jwt.InvalidTokenError:
            raise Unauthenticated("Invalid token.")

    def get_current_identity(self, token):
        """Resolve a token to the identity of a user that still exists.

        Role and team come from the stored user, not from the token claims, so
        a stale token cannot carry a team the account no longer has.
        """
        payload = self.verify_jwt_token(token)
        user_id = payload.get('user_id')
        if user_id is None:
            raise Unauthenticated("Invalid token.")

        identity = self.user_directory.find_identity(user_id)
        if identity is None:
            raise Unauthenticated("Invalid token. User not found.")
        return identity


def _extract_token():
    """Token from the Authorization header, falling back to the auth cookie."""
    auth_header = request.headers.get('Authorization')
    if auth_header:
        parts = auth_header.split(' ')
        if len(parts) != 2 or parts[0] != 'Bearer' or not parts[1]:
            raise Unauthenticated("Invalid authorization header format")
        return parts[1]

    return request.cookies.get('auth_token')


def auth_required(f):
    """Decorator to require authentication for routes.

    The resolved identity is stored on ``g.identity`` and passed as the first
    positional argument.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            token = _extract_token()
            if not token:
                return jsonify({'error': 'Access denied. No token provided.', 'code': Unauthenticated.code}), 401

            identity = current_app.auth_service.get_current_identity(token)
        except MetricsDashboardError as e:
            return jsonify(e.to_dict()), e.status_code

        g.identity = identity
        return f(identity, *args, **kwargs)

    return decorated_function


def role_required(role):
    """Decorator to require a specific role for routes."""
    if isinstance(role, str):
        role = UserRole(role)

    def decorator(f):
        @wraps(f)
        @auth_required
        def decorated_function(identity, *args, **kwargs):
            if identity.role != role:
                logger.warning(f"User {identity.user_id} with role {identity.role.value} denied {request.path}")
                return jsonify({
                    'error': 'Access denied. Insufficient permissions.',
                    'code': 'forbidden',
                    'required': [role.value],
                    'current': identity.role.value,
                }), 403

            return f(identity, *args, **kwargs)

        return decorated_function
    return decorator


def whole_manager_required(f):
    """Decorator to require the whole_manager role for routes."""
    return role_required(UserRole.WHOLE_MANAGER)(f)


def team_manager_required(f):
    """Decorator to require the team_manager role for routes."""
    return role_required(UserRole.TEAM_MANAGER)(f)
