"""
Shared pytest fixtures and configuration for the Shareable test suite.

This module provides:
- Hypothesis configuration for property-based testing
- Data directory fixtures (files, inbox, items) on tmp_path
- Domain service fixtures wired to those directories
- A Flask app with test users and helpers for Basic auth
"""

import os
from typing import Dict

import pytest
from hypothesis import HealthCheck, Phase, settings
from werkzeug.security import generate_password_hash

from shareable.app_factory import AppConfig, create_app
from shareable.config.settings import ShareableConfig
from shareable.domain.context import RequestContext
from shareable.domain.inbox import StagingArea
from shareable.domain.items import ItemManager
from shareable.domain.users import User
from shareable.infrastructure import LocalFileStorageRepository
from tests.fixtures.helpers import FILE_URL, NOW, PASSWORD, basic_auth, write_file

# Register Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))

# =============================================================================
# Data Directory Fixtures
# =============================================================================

@pytest.fixture
def data_dirs(tmp_path) -> Dict[str, str]:
    """Create empty files, inbox and items directories."""
    dirs = {}
    for name in ("files", "inbox", "items"):
        path = tmp_path / name
        path.mkdir()
        dirs[name] = str(path)

    upload_tmp = tmp_path / "inbox" / ".incoming"
    upload_tmp.mkdir()
    dirs["upload_tmp"] = str(upload_tmp)
    return dirs


@pytest.fixture
def file_store(data_dirs) -> LocalFileStorageRepository:
    return LocalFileStorageRepository(data_dirs["files"], FILE_URL)


@pytest.fixture
def item_manager(data_dirs, file_store) -> ItemManager:
    return ItemManager(data_dirs["items"], file_store)


@pytest.fixture
def staging_area(data_dirs, file_store, item_manager) -> StagingArea:
    return StagingArea(
        data_dirs["inbox"],
        file_store,
        item_manager,
        data_dirs["upload_tmp"],
    )


@pytest.fixture
def make_item(data_dirs, item_manager):
    """
    Factory creating an item and its file in the file store.

    Usage:
        item = make_item("a.txt", expires=NOW + DAY)
    """
    def _make(filename: str = "a.txt", with_file: bool = True, **props):
        if with_file:
            write_file(os.path.join(data_dirs["files"], filename))
        props.setdefault("created", NOW)
        return item_manager.create({"filename": filename, **props}, "admin", now=NOW)

    return _make


# =============================================================================
# User Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def password_hash() -> str:
    """Hash of PASSWORD (cheap pbkdf2 parameters to keep tests fast)."""
    return generate_password_hash(PASSWORD, method="pbkdf2:sha256:1000")


@pytest.fixture
def admin_user(password_hash) -> User:
    return User("admin", password=password_hash, permissions=True)


@pytest.fixture
def make_context(admin_user):
    """Factory for request contexts acting as the admin user."""
    def _make(now: int = NOW, user: User = None, **params):
        return RequestContext(user=user or admin_user, params=params, now=now)

    return _make


# =============================================================================
# Flask App Fixtures
# =============================================================================

@pytest.fixture
def users_config(password_hash) -> Dict[str, Dict]:
    return {
        "admin": {"password": password_hash, "permissions": True},
        "uploader": {"password": password_hash, "permissions": ["upload"]},
        "publisher": {"password": password_hash, "permissions": ["publish"]},
        "viewer": {"password": password_hash, "permissions": ["meta"]},
    }


@pytest.fixture
def shareable_config(data_dirs, users_config) -> ShareableConfig:
    return ShareableConfig(
        files_path=data_dirs["files"],
        inbox_path=data_dirs["inbox"],
        items_path=data_dirs["items"],
        upload_tmp_path=data_dirs["upload_tmp"],
        file_url=FILE_URL,
        users=users_config,
        items_per_page=2,
    )


@pytest.fixture
def app(shareable_config):
    """Flask app without Celery."""
    app_config = AppConfig()
    app_config.celery_enabled = False

    app = create_app(shareable_config, app_config)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return basic_auth("admin", PASSWORD)


# =============================================================================
# Pytest Configuration Hooks
# =============================================================================

SUITES = {
    "unit": "fast, tmp_path only",
    "integration": "Flask test client against a real data directory",
    "e2e": "complete publish and download workflows",
    "property": "Hypothesis properties",
}


def pytest_configure(config):
    for name, description in SUITES.items():
        config.addinivalue_line("markers", f"{name}: {description}")


def pytest_collection_modifyitems(config, items):
    """Mark each test with the suite its directory belongs to."""
    for item in items:
        parts = item.path.parts
        for name in SUITES:
            if name in parts:
                item.add_marker(getattr(pytest.mark, name))
                break
