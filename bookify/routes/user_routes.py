from flask import Blueprint, jsonify, abort, current_app
from sqlalchemy.exc import IntegrityError

from bookify.db import db
from bookify.models.book import Book
from bookify.models.reading_history import ReadingHistory
from bookify.models.user import User
from bookify.routes.params import json_body, parse_book_id, text_field
from bookify.utils.auth import (
    authenticate, current_user_or_404, hash_password, issue_token, verify_password,
)

user_routes = Blueprint('user_routes', __name__)


def _session_payload(user):
    return {
        "accessToken": issue_token(user.id, user.role),
        "user": user.to_dict(),
    }


# Register User Route
@user_routes.route('/register', methods=['POST'])
def register_user():
    data = json_body()
    name = text_field(data, 'name')
    email = text_field(data, 'email').lower()
    password = text_field(data, 'password', strip=False)

    if not name or not email or not password:
        abort(400, description="All fields are required")

    if User.query.filter_by(email=email).first():
        abort(400, description="User already exists")

    user = User(name=name, email=email, password=hash_password(password), role='user')
    try:
        db.session.add(user)
        db.session.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration with the same email
        db.session.rollback()
        abort(400, description="User already exists")
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error while creating user: {str(e)}")
        abort(500, description="Error while creating user")

    return jsonify(_session_payload(user)), 201


# Login User Route
@user_routes.route('/login', methods=['POST'])
def login_user():
    data = json_body()
    email = text_field(data, 'email').lower()
    password = text_field(data, 'password', strip=False)

    if not email or not password:
        abort(400, description="All fields are required")

    user = User.query.filter_by(email=email).first()
    if not user:
        abort(404, description="User not found")

    if not verify_password(user.password, password):
        abort(400, description="Invalid credentials")

    return jsonify(_session_payload(user)), 200


@user_routes.route('/me', methods=['GET'])
@authenticate
def get_profile():
    user = current_user_or_404()
    profile = user.to_dict()
    profile['emailNotifications'] = user.email_notifications
    return jsonify(profile), 200


# Wishlist
@user_routes.route('/wishlist/<book_id>', methods=['POST'])
@authenticate
def add_to_wishlist(book_id):
    book_id = parse_book_id(book_id)
    user = current_user_or_404()

    book = db.session.get(Book, book_id)
    if not book:
        abort(404, description="Book not found")

    if any(item.id == book.id for item in user.wishlist):
        abort(400, description="Already in wishlist")

    user.wishlist.append(book)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        abort(400, description="Already in wishlist")

    return jsonify({"message": "Added to wishlist"}), 200


@user_routes.route('/wishlist/<book_id>', methods=['DELETE'])
@authenticate
def remove_from_wishlist(book_id):
    book_id = parse_book_id(book_id)
    user = current_user_or_404()

    user.wishlist = [book for book in user.wishlist if book.id != book_id]
    db.session.commit()

    return jsonify({"message": "Removed from wishlist"}), 200


@user_routes.route('/wishlist', methods=['GET'])
@authenticate
def get_wishlist():
    user = current_user_or_404()
    return jsonify([book.to_dict() for book in user.wishlist]), 200


# Reading history, most recently read first
@user_routes.route('/history', methods=['GET'])
@authenticate
def get_reading_history():
    user = current_user_or_404()
    entries = (
        ReadingHistory.query
        .filter_by(user_id=user.id)
        .order_by(ReadingHistory.last_read_at.desc(), ReadingHistory.id.desc())
        .all()
    )
    result = []
    for entry in entries:
        item = entry.to_dict()
        item['book'] = entry.book.to_dict(with_reviews=False)
        result.append(item)
    return jsonify(result), 200
