from flask import jsonify
from werkzeug.exceptions import HTTPException

from bookify.db import db


def register_error_handlers(app):
    """Render every error raised by a view as ``{"message", "status"}`` JSON."""

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        response = jsonify({"message": error.description, "status": error.code})
        response.status_code = error.code
        return response

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        app.logger.exception(f"Unhandled error: {error}")
        db.session.rollback()
        return jsonify({"message": "Internal server error", "status": 500}), 500
