import json
import logging

from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from pymongo import MongoClient
import redis
from werkzeug.exceptions import HTTPException

from movies_api import __version__
from movies_api.api_admin.admin import admin_api
from movies_api.api_characters.characters import characters_api
from movies_api.api_movies.movies import movies_api
from movies_api.api_people.people import people_api
from movies_api.core.cache import ResponseCache
from movies_api.core.errors import ApiError
from movies_api.settings import Settings, load_settings


def create_app(settings: Settings | None = None, mongo_client: MongoClient | None = None, redis_client: redis.Redis | None = None):
    """
    Build the Flask application.

    Args:
        settings (Settings | None): Settings to use, read from the environment when None.
        mongo_client (MongoClient | None): MongoDB client, created from ``settings.mongo_uri`` when None.
        redis_client (Redis | None): Redis client for the response cache, created from the settings when None
            and caching is enabled.

    Returns:
        Flask: Configured application.
    """
    settings = settings or load_settings()

    app = Flask(__name__)
    app.json.sort_keys = False
    CORS(app)

    app.logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)

    if mongo_client is None:
        mongo_client = MongoClient(settings.mongo_uri)
    if redis_client is None and settings.cache_enabled:
        redis_client = redis.Redis(host=settings.redis_host, port=settings.redis_port, db=settings.redis_db)
    if not settings.cache_enabled:
        redis_client = None

    app.extensions["movies_api"] = {
        "settings": settings,
        "db": mongo_client[settings.mongo_db],
        "cache": ResponseCache(redis_client, settings.cache_ttl_seconds),
    }

    app.register_blueprint(people_api)
    app.register_blueprint(movies_api)
    app.register_blueprint(characters_api)
    app.register_blueprint(admin_api)

    @app.route("/api", methods=["GET"])
    def api_index():
        return jsonify({"title": "Movies REST API", "version": __version__})

    register_error_handlers(app)
    return app


def register_error_handlers(app: Flask):
    """
    Map raised errors onto HTTP responses.

    ``ApiError`` subclasses carry their own status. Anything else is logged
    and answered with a 500 unless it already carries an HTTP status.
    """

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError):
        if error.status >= 500:
            app.logger.error("%s %s failed: %s", request.method, request.path, error.message)
        else:
            app.logger.warning("%s %s -> %d %s", request.method, request.path, error.status, error.message)

        if error.text_body:
            return Response(error.message, status=error.status, mimetype="text/plain")
        return jsonify(error.to_response()), error.status

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        if not request.path.startswith("/api"):
            return error
        response = error.get_response()
        response.set_data(json.dumps({"message": error.description}))
        response.mimetype = "application/json"
        return response

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        status = getattr(error, "status", None)
        if not isinstance(status, int) or status < 400:
            status = 500
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        message = "Internal server error" if status >= 500 else str(error)
        return jsonify({"message": message}), status
