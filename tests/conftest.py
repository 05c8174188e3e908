"""Pytest configuration and shared fixtures."""

import itertools
import os

import pytest

# Set test environment variables before importing app
os.environ["TESTING"] = "true"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-32-bytes-long-for-testing-only!"

from config.settings import (
    AppConfig,
    AuthConfig,
    DatabaseConfig,
    RateLimitConfig,
    Settings,
    WebConfig,
)
from src.services.auth import AuthService
from src.services.metric_store import MetricStore
from src.services.policy import RolePolicy
from src.services.user_directory import UserDirectory
from src.utils.database import Database
from src.web_interface import create_app

TEST_JWT_SECRET = "test-jwt-secret-key-32-bytes-long-for-testing-only!"
TEST_PASSWORD = "password123"

SAMPLE_COUNTERS = {
    "testcase_automated": 10,
    "bugs_filed": 2,
    "script_issue_fixed": 1,
    "script_integrated": 3,
}


@pytest.fixture
def sample_counters():
    return dict(SAMPLE_COUNTERS)


def build_settings(database_url="sqlite:///:memory:"):
    """Settings that never read the environment."""
    return Settings(
        auth=AuthConfig(jwt_secret=TEST_JWT_SECRET, jwt_expiry_hours=1, password_min_length=6),
        database=DatabaseConfig(url=database_url),
        web=WebConfig(cors_origins=["http://localhost:3000"]),
        rate_limit=RateLimitConfig(enabled=False),
        app=AppConfig(log_level="DEBUG"),
    )


@pytest.fixture
def settings():
    return build_settings()


@pytest.fixture
def database(settings):
    """In-memory database with the schema created."""
    db = Database(settings.database)
    db.init_schema()
    yield db
    db.dispose()


@pytest.fixture
def user_directory(database):
    return UserDirectory(database)


@pytest.fixture
def metric_store(database):
    return MetricStore(database)


@pytest.fixture
def policy(user_directory):
    return RolePolicy(user_directory)


@pytest.fixture
def auth_service(user_directory, settings):
    return AuthService(user_directory, settings.auth)


@pytest.fixture
def app(settings, database):
    """Create Flask app for testing."""
    flask_app = create_app(settings, database=database)
    flask_app.config["TESTING"] = True
    yield flask_app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


_sequence = itertools.count(1)


@pytest.fixture
def make_whole_manager(auth_service):
    """Factory creating whole-manager accounts with unique emails."""
    def _make(name=None, email=None, password=TEST_PASSWORD):
        n = next(_sequence)
        return auth_service.create_whole_manager(
            name=name or f"Whole Manager {n}",
            email=email or f"whole{n}@company.com",
            password=password,
        )
    return _make


@pytest.fixture
def make_team_manager(auth_service):
    """Factory creating team-manager accounts, unclaimed unless a manager is given."""
    def _make(team="QA", manager=None, name=None, email=None, password=TEST_PASSWORD):
        n = next(_sequence)
        return auth_service.register_team_manager(
            name=name or f"{team} Manager {n}",
            email=email or f"{team.lower()}{n}@company.com",
            password=password,
            team=team,
            assigned_manager_id=manager.id if manager is not None else None,
        )
    return _make


@pytest.fixture
def identity_of(user_directory):
    """Resolve an account to its verified identity."""
    def _identity(account):
        return user_directory.find_identity(account.id)
    return _identity


@pytest.fixture
def auth_headers_for(auth_service):
    """Create authorization headers with a valid JWT for an account."""
    def _headers(account):
        token = auth_service.generate_jwt_token(account)
        return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
    return _headers
