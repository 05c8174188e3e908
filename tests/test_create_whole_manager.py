"""Tests for the whole-manager bootstrap script."""

import importlib.util
from pathlib import Path
from unittest.mock import patch

import pytest

from src.services.user_directory import UserDirectory
from src.utils.database import Database

SCRIPT_PATH = Path(__file__).resolve().parent.parent / "scripts" / "create_whole_manager.py"


@pytest.fixture
def script():
    spec = importlib.util.spec_from_file_location("create_whole_manager", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def file_settings(settings, tmp_path):
    settings.database.url = f"sqlite:///{tmp_path / 'metrics.db'}"
    return settings


def _whole_managers(settings):
    database = Database(settings.database)
    try:
        return UserDirectory(database).list_whole_managers()
    finally:
        database.dispose()


def test_creates_whole_manager(script, file_settings):
    with patch.object(script, "Settings", return_value=file_settings):
        exit_code = script.main(["--name", "Delivery Lead", "--email", "Lead@Company.com",
                                 "--password", "password123"])

    assert exit_code == 0
    managers = _whole_managers(file_settings)
    assert [m["name"] for m in managers] == ["Delivery Lead"]


def test_prompts_for_password(script, file_settings):
    with patch.object(script, "Settings", return_value=file_settings), \
            patch.object(script.getpass, "getpass", return_value="password123") as mock_getpass:
        exit_code = script.main(["--name", "Delivery Lead", "--email", "lead@company.com"])

    assert exit_code == 0
    mock_getpass.assert_called_once()


def test_duplicate_email_fails(script, file_settings):
    args = ["--name", "Delivery Lead", "--email", "lead@company.com", "--password", "password123"]
    with patch.object(script, "Settings", return_value=file_settings):
        assert script.main(args) == 0
        assert script.main(args) == 1

    assert len(_whole_managers(file_settings)) == 1


def test_short_password_fails(script, file_settings):
    with patch.object(script, "Settings", return_value=file_settings):
        exit_code = script.main(["--name", "Delivery Lead", "--email", "lead@company.com",
                                 "--password", "abc"])
    assert exit_code == 1


@pytest.mark.parametrize("email", ["not-an-email", "lead@company", "lead @company.com"])
def test_invalid_email_fails(script, file_settings, email):
    with patch.object(script, "Settings", return_value=file_settings), \
            patch.object(script, "create_whole_manager") as mock_create:
        exit_code = script.main(["--name", "Delivery Lead", "--email", email,
                                 "--password", "password123"])

    assert exit_code == 1
    mock_create.assert_not_called()


def test_blank_name_fails(script, file_settings):
    with patch.object(script, "Settings", return_value=file_settings), \
            patch.object(script, "create_whole_manager") as mock_create:
        exit_code = script.main(["--name", "  ", "--email", "lead@company.com",
                                 "--password", "password123"])

    assert exit_code == 1
    mock_create.assert_not_called()
