"""Authentication and account administration API routes."""
from flask import Blueprint, request, jsonify, make_response
from src.services.auth import auth_required, whole_manager_required
from src.services.errors import Forbidden, Unauthenticated
from src.models.validators import AdminRegisterRequest, LoginRequest, RegisterRequest
from src.routes.request_validation import validate_json
from src.utils.log_sanitizer import sanitize_for_logging
import logging

logger = logging.getLogger(__name__)

COOKIE_MAX_AGE = 604800  # 7 days, matches the default token expiry


def create_auth_blueprint(auth_service, user_directory, policy, limiter=None, is_production=False):
    """Create authentication blueprint bound to the app's services and rate limiter."""
    auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

    # Helper to conditionally apply rate limiting
    def rate_limit(limit_string):
        def decorator(f):
            if limiter:
                return limiter.limit(limit_string)(f)
            return f
        return decorator

    @auth_bp.route('/register', methods=['POST'])
    @rate_limit("10 per minute")
    @validate_json(RegisterRequest)
    def register():
        """Public self-registration. Creates an unclaimed team manager."""
        data = request.validated_data
        logger.info(f"Registration request: {sanitize_for_logging(data.model_dump())}")

        account = auth_service.register_team_manager(
            name=data.name,
            email=data.email,
            password=data.password,
            team=data.team,
        )
        return jsonify({
            'message': 'User registered successfully',
            'user': account.to_dict(),
        }), 201

    @auth_bp.route('/admin/register', methods=['POST'])
    @rate_limit("30 per minute")
    @auth_required
    @validate_json(AdminRegisterRequest)
    def admin_register(identity):
        """Whole manager creates a team manager already assigned to itself."""
        manager = policy.require_user_management(identity)
        data = request.validated_data
        logger.info(f"Admin registration by {manager.user_id}: {sanitize_for_logging(data.model_dump())}")

        if data.role != 'team_manager':
            raise Forbidden("Whole managers can only create team managers")

        account = auth_service.register_team_manager(
            name=data.name,
            email=data.email,
            password=data.password,
            team=data.team,
            assigned_manager_id=manager.user_id,
        )
        return jsonify({
            'message': 'Team manager created successfully',
            'user': account.to_dict(),
        }), 201

    @auth_bp.route('/login', methods=['POST'])
    @rate_limit("10 per minute")
    @validate_json(LoginRequest)
    def login():
        """Email/password login returning a JWT and setting the auth cookie."""
        data = request.validated_data
        account = auth_service.authenticate(data.email, data.password)
        token = auth_service.generate_jwt_token(account)

        logger.info(f"Login successful for user {account.id}")
        response = make_response(jsonify({
            'message': 'Login successful',
            'token': token,
            'user': account.to_dict(),
        }))
        response.set_cookie(
            'auth_token',
            token,
            httponly=True,
            secure=is_production,  # Secure cookies in production only
            samesite='Strict' if is_production else 'Lax',
            max_age=COOKIE_MAX_AGE,
        )
        return response

    @auth_bp.route('/logout', methods=['POST'])
    def logout():
        """Handle logout."""
        response = make_response(jsonify({'message': 'Logged out successfully'}))
        response.set_cookie('auth_token', '', expires=0, httponly=True, secure=is_production,
                            samesite='Strict' if is_production else 'Lax')
        return response

    @auth_bp.route('/me', methods=['GET'])
    @auth_required
    def get_current_user(identity):
        """Get current user information."""
        account = user_directory.find_by_id(identity.user_id)
        if account is None:
            # Deleted after the token was checked
            raise Unauthenticated("Invalid token. User not found.")
        return jsonify({'user': account.to_dict()})

    @auth_bp.route('/users', methods=['GET'])
    @rate_limit("60 per minute")
    @whole_manager_required
    def list_users(identity):
        """Team managers assigned to the caller plus unclaimed ones."""
        user_filter = policy.scope_for_user_list(identity)
        accounts = user_directory.list_in_scope(user_filter)
        return jsonify({
            'users': [a.to_dict(viewer_id=identity.user_id) for a in accounts],
            'count': len(accounts),
        })

    @auth_bp.route('/users/<int:user_id>/assign', methods=['PUT'])
    @rate_limit("30 per minute")
    @whole_manager_required
    def assign_user(identity, user_id):
        """Claim an unclaimed team manager for the caller."""
        account = policy.authorize_assign(identity, user_id)
        return jsonify({
            'message': 'Team manager assigned successfully.',
            'user': account.to_dict(viewer_id=identity.user_id),
        })

    @auth_bp.route('/users/<int:user_id>', methods=['DELETE'])
    @rate_limit("30 per minute")
    @whole_manager_required
    def delete_user(identity, user_id):
        """Delete a team manager assigned to the caller."""
        policy.authorize_delete(identity, user_id)
        return jsonify({'message': 'Team manager deleted successfully.'})

    @auth_bp.route('/whole-managers', methods=['GET'])
    def list_whole_managers():
        """Whole managers' ids and names, shown on the signup page."""
        return jsonify(user_directory.list_whole_managers())

    return auth_bp
