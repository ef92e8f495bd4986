"""
main.py

Flask server for Shareable: publish files from an inbox behind short,
time-limited download links.

Dependencies:
  - Python packages: Flask, flask-restx, flask-cors, celery
  - Infrastructure: Redis server (Celery broker for the periodic cleanup)

Notes:
  - API v1 endpoints available at /api/v1/ with Swagger docs at /api/v1/docs
  - Download links are served at /<item id>
  - Run the cleanup with: celery -A shareable.celery_app worker -B
"""

import logging
import os

from shareable.app_factory import create_app

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()

if __name__ == "__main__":
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", 8000))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    app.run(host=host, port=port, debug=debug)
