"""Metric upload and reporting API routes."""
from flask import Blueprint, request, jsonify
from src.models import TeamManagerIdentity, WholeManagerIdentity
from src.models.validators import MetricQueryParams, MetricUploadRequest
from src.routes.request_validation import validate_json, validate_query
from src.services.auth import auth_required, team_manager_required
import logging

logger = logging.getLogger(__name__)


def create_metrics_blueprint(metric_store, policy, limiter=None):
    """Create metrics blueprint bound to the metric store and role policy."""
    metrics_bp = Blueprint('metrics', __name__, url_prefix='/api/metrics')

    def rate_limit(limit_string):
        def decorator(f):
            if limiter:
                return limiter.limit(limit_string)(f)
            return f
        return decorator

    @metrics_bp.route('', methods=['POST'])
    @rate_limit("30 per minute")
    @team_manager_required
    @validate_json(MetricUploadRequest)
    def upload_metrics(identity):
        """Upload one month of metrics for the caller's team."""
        data = request.validated_data
        team = policy.require_metric_write(identity, data.team)

        metric = metric_store.insert(
            team=team,
            month=data.month,
            year=data.year,
            counters={
                'testcase_automated': data.testcase_automated,
                'bugs_filed': data.bugs_filed,
                'script_issue_fixed': data.script_issue_fixed,
                'script_integrated': data.script_integrated,
            },
            uploader_id=identity.user_id,
        )
        return jsonify({
            'message': 'Metrics uploaded successfully',
            'metric': metric.to_dict(),
        }), 201

    @metrics_bp.route('', methods=['GET'])
    @auth_required
    @validate_query(MetricQueryParams)
    def get_metrics(identity):
        """Metrics visible to the caller, newest upload first.

        Query params:
            team: narrow to one team, ignored unless it is within scope
            month: YYYY-MM
            limit: page size (1-100, default 50)
            page: page number (default 1)
        """
        params = request.validated_params
        scope = policy.scope_for_metric_read(identity, params.team)

        metrics = metric_store.query_by_scope(
            scope, month=params.month, limit=params.limit, offset=params.offset
        )
        total = metric_store.count_by_scope(scope, month=params.month)

        if isinstance(identity, WholeManagerIdentity):
            teams = metric_store.distinct_teams()
        else:
            teams = [identity.team]

        return jsonify({
            'metrics': [m.to_dict() for m in metrics],
            'teams': teams,
            'total': total,
            'page': params.page,
            'limit': params.limit,
        })

    @metrics_bp.route('/summary', methods=['GET'])
    @auth_required
    def get_summary(identity):
        """Per-team totals and averages within the caller's scope."""
        scope = policy.scope_for_metric_read(identity)
        return jsonify({
            'summary': metric_store.summary_by_scope(scope),
            'user_role': identity.role.value,
            'user_team': identity.team if isinstance(identity, TeamManagerIdentity) else None,
        })

    return metrics_bp
