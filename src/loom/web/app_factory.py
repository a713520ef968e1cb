"""
Hosting web application for loom applications.

``create_app`` returns a bare Flask app with framework error handling and a
liveness probe. Resources and routes add their own URL rules to it during
full start.
"""

import logging

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException

from loom.config.application_config import LoomConfig
from loom.error.application_error import ApplicationError
from loom.web.resource import error_response

logger = logging.getLogger(__name__)


def create_app(config: LoomConfig) -> Flask:
    """
    Build the hosting Flask application.

    Args:
        config: Application configuration; ``app_name`` and ``version`` are
            reported by the liveness probe and in error bodies

    Returns:
        Flask application without any resource mounted yet
    """
    app = Flask(config.app_name)
    app.config["LOOM_STAGE"] = config.stage

    @app.errorhandler(ApplicationError)
    def handle_application_error(error: ApplicationError):
        return error_response(error)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        return jsonify({"error": error.name, "service": config.app_name}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.path}: {error}")
        return jsonify({"error": "Internal server error", "service": config.app_name}), 500

    @app.after_request
    def trace_request(response: Response) -> Response:
        logger.debug(f"{request.method} {request.path} -> {response.status_code}")
        return response

    @app.get("/health/live")
    def liveness():
        return jsonify({"status": "alive", "service": config.app_name, "version": config.version})

    logger.info(f"Web application created for {config.app_name} ({config.stage})")
    return app
