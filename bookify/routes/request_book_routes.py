from flask import Blueprint, jsonify, abort, current_app

from bookify.db import db
from bookify.models.book_request import BookRequest
from bookify.routes.params import json_body
from bookify.services.email_service import send_book_request_email

request_book_routes = Blueprint('request_book_routes', __name__)

REQUIRED_FIELDS = ('bookName', 'authorName', 'category', 'userEmail')


# Public: anyone may ask for a book, no account needed
@request_book_routes.route('/request-book', methods=['POST'])
def request_book():
    data = json_body()
    values = {field: str(data.get(field) or '').strip() for field in REQUIRED_FIELDS}

    if not all(values.values()):
        abort(400, description="All required fields must be filled")

    message = str(data.get('message') or '').strip() or None
    book_request = BookRequest(
        book_name=values['bookName'],
        author_name=values['authorName'],
        category=values['category'],
        user_email=values['userEmail'].lower(),
        message=message,
        status='pending',
    )

    try:
        db.session.add(book_request)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Request Book Error: {str(e)}")
        abort(500, description="Failed to send request")

    # The request is stored; a failed email must not undo that
    email_sent = True
    try:
        send_book_request_email(book_request.to_dict())
    except Exception as e:
        email_sent = False
        current_app.logger.error(f"Book request email failed: {str(e)}")

    return jsonify({
        "success": True,
        "message": "Request saved successfully",
        "emailSent": email_sent,
        "request": book_request.to_dict(),
    }), 201
