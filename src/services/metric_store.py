"""Persistence and scoped queries for monthly metric records."""
import logging
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from src.models import COUNTER_FIELDS, Metric, MetricDTO
from src.models.metric import COUNTER_MAX, MONTH_PATTERN, YEAR_PATTERN, year_of
from src.services.errors import Conflict, InvalidInput

logger = logging.getLogger(__name__)

DUPLICATE_MARKERS = ("uq_metrics_team_month", "metrics.team, metrics.month")


def validate_metric_fields(month, year, counters):
    """Check month/year format and counter ranges, returning the resolved year.

    Raises InvalidInput on the first violation.
    """
    if not isinstance(month, str) or not MONTH_PATTERN.match(month):
        raise InvalidInput("Month must be in YYYY-MM format")

    derived_year = year_of(month)
    if year is not None:
        if not isinstance(year, str) or not YEAR_PATTERN.match(year):
            raise InvalidInput("Year must be in YYYY format")
        if year != derived_year:
            raise InvalidInput("Year must match the year of month")

    missing = [name for name in COUNTER_FIELDS if name not in counters]
    if missing:
        raise InvalidInput(f"Missing counters: {', '.join(missing)}")

    for name in COUNTER_FIELDS:
        value = counters[name]
        # bool is an int subclass; True is not a count
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidInput(f"{name} must be an integer")
        if value < 0:
            raise InvalidInput(f"{name} cannot be negative")
        if value > COUNTER_MAX:
            raise InvalidInput(f"{name} cannot exceed {COUNTER_MAX}")

    return derived_year


class MetricStore:
    """One metric record per (team, month), enforced by the database."""

    def __init__(self, database):
        self.database = database

    def insert(self, team, month, counters: Dict[str, int], uploader_id,
               year: Optional[str] = None) -> MetricDTO:
        """Persist a new record.

        There is no existence check beforehand: the unique constraint rejects
        a duplicate (team, month) and that becomes Conflict.
        """
        if not team or not isinstance(team, str):
            raise InvalidInput("Team is required")
        resolved_year = validate_metric_fields(month, year, counters)

        metric = Metric(
            team=team,
            month=month,
            year=resolved_year,
            uploaded_by_id=uploader_id,
            **{name: counters[name] for name in COUNTER_FIELDS},
        )

        try:
            with self.database.session_scope() as session:
                session.add(metric)
                session.flush()
                created = session.execute(
                    select(Metric)
                    .options(joinedload(Metric.uploaded_by))
                    .where(Metric.id == metric.id)
                    .execution_options(populate_existing=True)
                ).scalar_one()
                dto = MetricDTO.from_orm(created)
        except IntegrityError as e:
            message = str(e.orig)
            if any(marker in message for marker in DUPLICATE_MARKERS):
                logger.warning(f"Duplicate metrics upload rejected for {team} {month}")
                raise Conflict(f"Metrics for {team} team in {month} already exist")
            logger.error(f"Integrity error storing metrics for {team} {month}: {message}")
            raise InvalidInput("Metric violates a data constraint")

        logger.info(f"Stored metrics {dto.id} for {team} {month} (uploaded by {uploader_id})")
        return dto

    def _scoped(self, statement, team_filter, month=None):
        statement = statement.where(Metric.team.in_(sorted(team_filter.teams)))
        if month:
            statement = statement.where(Metric.month == month)
        return statement

    def query_by_scope(self, team_filter, month=None, limit=50, offset=0) -> List[MetricDTO]:
        """Records for the teams in ``team_filter``, most recent upload first."""
        if team_filter.is_empty():
            return []

        with self.database.session_scope() as session:
            statement = self._scoped(
                select(Metric).options(joinedload(Metric.uploaded_by)),
                team_filter,
                month,
            )
            metrics = session.execute(
                statement
                .order_by(Metric.created_at.desc(), Metric.id.desc())
                .limit(limit)
                .offset(offset)
            ).scalars().all()
            return [MetricDTO.from_orm(m) for m in metrics]

    def count_by_scope(self, team_filter, month=None) -> int:
        if team_filter.is_empty():
            return 0

        with self.database.session_scope() as session:
            statement = self._scoped(select(func.count(Metric.id)), team_filter, month)
            return session.execute(statement).scalar_one()

    def distinct_teams(self) -> List[str]:
        """Every team with at least one record.

        For discovery views only; it says nothing about who may read them.
        """
        with self.database.session_scope() as session:
            teams = session.execute(select(Metric.team).distinct()).scalars().all()
            return sorted(teams)

    def summary_by_scope(self, team_filter) -> List[dict]:
        """Per-team totals and averages for the teams in ``team_filter``."""
        if team_filter.is_empty():
            return []

        with self.database.session_scope() as session:
            statement = self._scoped(
                select(
                    Metric.team,
                    func.sum(Metric.testcase_automated).label("total_testcase_automated"),
                    func.sum(Metric.bugs_filed).label("total_bugs_filed"),
                    func.sum(Metric.script_issue_fixed).label("total_script_issue_fixed"),
                    func.sum(Metric.script_integrated).label("total_script_integrated"),
                    func.count(Metric.id).label("month_count"),
                    func.avg(Metric.testcase_automated).label("avg_testcase_automated"),
                    func.avg(Metric.bugs_filed).label("avg_bugs_filed"),
                ),
                team_filter,
            )
            rows = session.execute(
                statement.group_by(Metric.team).order_by(Metric.team)
            ).all()

        return [
            {
                'team': row.team,
                'total_testcase_automated': int(row.total_testcase_automated or 0),
                'total_bugs_filed': int(row.total_bugs_filed or 0),
                'total_script_issue_fixed': int(row.total_script_issue_fixed or 0),
                'total_script_integrated': int(row.total_script_integrated or 0),
                'month_count': row.month_count,
                'avg_testcase_automated': float(row.avg_testcase_automated or 0),
                'avg_bugs_filed': float(row.avg_bugs_filed or 0),
            }
            for row in rows
        ]
