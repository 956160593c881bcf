from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

# Initialize SQLAlchemy
db = SQLAlchemy()

def init_db(app):
    db.init_app(app)
    with app.app_context():
        # Import models so their tables are registered on the metadata
        from bookify.models import user, book, book_request, reading_history  # noqa: F401
        db.create_all()


def utcnow():
    """Naive UTC timestamp, the form SQLite and MySQL DATETIME columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
