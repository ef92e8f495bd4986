"""
Application Factory

Builds the Flask app from a ShareableConfig: checks the data directories,
wires the item and inbox services into the container and mounts the
public routes and the v1 API. Tests pass their own configuration.
"""

import logging
import os
from typing import Optional

from flask import Flask
from flask_cors import CORS

from .application.dependency_container import DependencyContainer
from .config.celery_config import make_celery
from .config.settings import ShareableConfig
from .domain.file_storage import IFileStorageRepository
from .domain.inbox import StagingArea
from .domain.items import ItemManager
from .domain.users import Users
from .infrastructure import LocalFileStorageRepository

logger = logging.getLogger(__name__)


class AppConfig:
    """Process-level application settings."""

    def __init__(self):
        self.celery_enabled = os.getenv("CELERY_ENABLED", "true").lower() == "true"


def create_app(
    config: Optional[ShareableConfig] = None,
    app_config: Optional[AppConfig] = None,
) -> Flask:
    """
    Build the Shareable Flask app.

    Args:
        config: Shareable configuration, read from the environment if None
        app_config: Application configuration, uses default if None

    Returns:
        Configured Flask application

    Raises:
        ConfigurationError: If the data directories are unusable
    """
    if config is None:
        config = ShareableConfig.from_env()
    if app_config is None:
        app_config = AppConfig()

    config.validate()

    app = Flask(__name__)
    app.config["DEBUG"] = config.debug

    # the admin frontend may live on another origin
    CORS(
        app,
        resources={
            r"/api/*": {
                "origins": "*",
                "methods": ["GET", "POST", "DELETE", "OPTIONS"],
                "allow_headers": ["Content-Type", "Authorization"],
                "expose_headers": ["Content-Type", "Location"],
                "max_age": 3600,
            }
        },
    )

    _initialize_infrastructure(app, config, app_config)
    _initialize_services(app, config)
    _register_blueprints(app)

    return app


def _initialize_infrastructure(app: Flask, config: ShareableConfig, app_config: AppConfig) -> None:
    """
    Initialize Celery for the periodic cleanup.

    The API works without Celery, so a failure only disables the schedule.
    """
    app.celery = None
    if not app_config.celery_enabled:
        logger.info("Celery disabled - run the cleanup manually")
        return

    try:
        app.celery = make_celery(app, config.cleanup_interval)
        logger.info("Celery initialized successfully")
    except Exception as e:
        logger.warning(f"Could not initialize Celery: {e}")


def _initialize_services(app: Flask, config: ShareableConfig) -> None:
    """
    Initialize application services and attach them to the app using
    DependencyContainer.

    All services are registered here as singletons and resolved via
    container.resolve() in the API and the tasks.
    """
    container = DependencyContainer()
    tz = config.tzinfo

    file_store = LocalFileStorageRepository(config.files_path, config.file_url)
    item_manager = ItemManager(config.items_path, file_store, tz=tz)
    staging_area = StagingArea(
        config.inbox_path,
        file_store,
        item_manager,
        config.upload_tmp_path,
        use_subdirs=config.subdirs,
        tz=tz,
    )

    container.register_singleton(ShareableConfig, config)
    container.register_singleton(Users, Users(config.users))
    container.register_singleton(IFileStorageRepository, file_store)
    container.register_singleton(ItemManager, item_manager)
    container.register_singleton(StagingArea, staging_area)

    # Attach container to Flask app context
    app.container = container

    logger.info(
        f"Services initialized (files: {config.files_path}, inbox: {config.inbox_path}, "
        f"items: {config.items_path}, subdirs: {config.subdirs})"
    )


def _register_blueprints(app: Flask) -> None:
    """Register the API and the public blueprints."""
    from .api.public import public_bp
    from .api.v1 import API_VERSION, api_v1_bp

    app.register_blueprint(api_v1_bp)
    app.register_blueprint(public_bp)

    logger.info(
        f"API {API_VERSION} registered at /api/{API_VERSION} "
        f"with Swagger UI at /api/{API_VERSION}/docs"
    )
