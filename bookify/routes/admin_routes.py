from flask import Blueprint, jsonify, abort, current_app

from bookify.db import db
from bookify.models.book import Book
from bookify.models.book_request import BookRequest
from bookify.models.user import User
from bookify.utils.auth import authenticate, admin_required

admin_routes = Blueprint('admin_routes', __name__)

RECENT_LIMIT = 5
TOP_VIEWED_LIMIT = 5


def _users_newest_first():
    return User.query.order_by(User.created_at.desc(), User.id.desc())


# Dashboard stats
@admin_routes.route('/stats', methods=['GET'])
@authenticate
@admin_required
def get_admin_stats():
    stats = {
        "totalUsers": User.query.count(),
        "totalAdmins": User.query.filter_by(role='admin').count(),
        "totalBooks": Book.query.count(),
        "totalBookRequests": BookRequest.query.count(),
    }
    recent_users = _users_newest_first().limit(RECENT_LIMIT).all()
    recent_books = Book.newest_first().limit(RECENT_LIMIT).all()
    recent_requests = BookRequest.newest_first().limit(RECENT_LIMIT).all()

    return jsonify({
        "stats": stats,
        "recentUsers": [user.to_dict() for user in recent_users],
        "recentBooks": [book.to_summary() for book in recent_books],
        "recentBookRequests": [item.to_dict() for item in recent_requests],
    }), 200


@admin_routes.route('/users', methods=['GET'])
@authenticate
@admin_required
def get_all_users():
    return jsonify([user.to_dict() for user in _users_newest_first().all()]), 200


@admin_routes.route('/users/<int:user_id>', methods=['DELETE'])
@authenticate
@admin_required
def delete_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        abort(404, description="User not found")

    if user.is_admin:
        abort(403, description="Admin user cannot be deleted")

    try:
        db.session.delete(user)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting user {user_id}: {str(e)}")
        abort(500, description="Failed to delete user")

    return jsonify({"message": "User deleted successfully"}), 200


@admin_routes.route('/book-requests', methods=['GET'])
@authenticate
@admin_required
def get_all_book_requests():
    requests = BookRequest.newest_first().all()
    return jsonify([item.to_dict() for item in requests]), 200


# Analytics: most viewed books
@admin_routes.route('/top-viewed-books', methods=['GET'])
@authenticate
@admin_required
def get_top_viewed_books():
    books = (
        Book.query
        .order_by(Book.views_count.desc(), Book.id.asc())
        .limit(TOP_VIEWED_LIMIT)
        .all()
    )
    return jsonify([book.to_summary() for book in books]), 200
