"""
Unit tests for the permission decorator.
"""

import pytest
from flask import Flask, g

from shareable.api.auth import require_permission
from shareable.application.dependency_container import DependencyContainer
from shareable.config.settings import ShareableConfig
from shareable.domain.users import Users
from tests.fixtures.helpers import basic_auth


@pytest.fixture
def client(shareable_config, users_config):
    app = Flask(__name__)
    app.container = DependencyContainer()
    app.container.register_singleton(ShareableConfig, shareable_config)
    app.container.register_singleton(Users, Users(users_config))

    @app.route("/upload", methods=["GET", "POST"])
    @require_permission("upload")
    def upload():
        ctx = g.request_context
        return {"user": ctx.user.username, "name": ctx.param("name")}

    return app.test_client()


class TestRequirePermission:

    def test_missing_credentials_are_challenged(self, client):
        response = client.get("/upload")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == 'Basic realm="Shareable"'
        assert response.get_json()["error"] == "authentication_required"

    def test_wrong_password_is_challenged(self, client):
        response = client.get("/upload", headers=basic_auth("uploader", "wrong"))

        assert response.status_code == 401

    def test_missing_permission_is_challenged(self, client):
        response = client.get("/upload", headers=basic_auth("viewer"))

        assert response.status_code == 401

    def test_granted_permission(self, client):
        response = client.get("/upload", headers=basic_auth("uploader"))

        assert response.status_code == 200
        assert response.get_json()["user"] == "uploader"

    def test_wildcard_permission(self, client):
        response = client.get("/upload", headers=basic_auth("admin"))

        assert response.status_code == 200

    def test_request_values_become_params(self, client):
        response = client.post(
            "/upload",
            data={"name": "report.pdf"},
            headers=basic_auth("uploader"),
        )

        assert response.get_json()["name"] == "report.pdf"

    def test_empty_param_is_none(self, client):
        response = client.get("/upload?name=", headers=basic_auth("uploader"))

        assert response.get_json()["name"] is None
