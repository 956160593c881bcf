import logging

from flask import Flask, jsonify, send_from_directory
from flask_cors import CORS

from bookify.cli import register_cli
from bookify.config import Config
from bookify.db import init_db
from bookify.errors import register_error_handlers
from bookify.routes.admin_routes import admin_routes
from bookify.routes.book_routes import book_routes
from bookify.routes.request_book_routes import request_book_routes
from bookify.routes.user_routes import user_routes

LOG_FORMAT = "[bookify] %(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(app):
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    root = logging.getLogger()
    if not any(getattr(h, '_bookify', False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._bookify = True
        root.addHandler(handler)
    root.setLevel(level)
    app.logger.setLevel(level)


def create_app(config_object=Config):
    app = Flask(__name__)

    # Configure your app, e.g., database URI
    app.config.from_object(config_object)
    configure_logging(app)

    # Initialize the database
    init_db(app)

    # Register routes
    app.register_blueprint(user_routes, url_prefix='/api/users')
    app.register_blueprint(book_routes, url_prefix='/api/books')
    app.register_blueprint(admin_routes, url_prefix='/api/admin')
    app.register_blueprint(request_book_routes, url_prefix='/api')

    @app.route('/', methods=['GET'])
    def index():
        return jsonify({"message": "Welcome to Bookify APIs"})

    # Files stored by the local media backend
    @app.route('/uploads/<path:filename>', methods=['GET'])
    def uploaded_file(filename):
        return send_from_directory(app.config['UPLOAD_FOLDER'], filename)

    register_error_handlers(app)
    register_cli(app)
    CORS(app, origins=app.config['FRONTEND_DOMAIN'])
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True, port=7001)
