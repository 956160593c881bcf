from flask import Blueprint, request, jsonify, abort, current_app, g
from sqlalchemy.exc import IntegrityError

from bookify.db import db
from bookify.models.book import Book, Review, BOOK_TYPES
from bookify.models.reading_history import ReadingHistory
from bookify.models.user import User, ViewedBook
from bookify.routes.params import (
    json_body, parse_book_id, parse_bool, parse_price, parse_tags, parse_int_in_range, text_field,
)
from bookify.services.email_service import send_new_book_notification
from bookify.services.media_storage import (
    MediaStorageError, discard, file_size, get_media_storage, upload_book_files,
)
from bookify.utils.auth import authenticate, current_user_or_404, optional_authentication
from bookify.utils.recommendation_model import BookRecommendationModel

book_routes = Blueprint('book_routes', __name__)

# Initialize the recommendation model
recommendation_model = BookRecommendationModel()

SIMILAR_LIMIT = 6
RECOMMENDATION_LIMIT = 10


def _get_book_or_404(raw_id):
    book = db.session.get(Book, parse_book_id(raw_id))
    if not book:
        abort(404, description="Book not found")
    return book


def _check_upload_size(file_storage):
    limit = current_app.config['MAX_UPLOAD_SIZE']
    if file_size(file_storage) > limit:
        abort(413, description=f"{file_storage.filename} exceeds the {limit // (1024 * 1024)}MB upload limit")


def _notify_readers(book):
    """Email subscribed readers about a new book; never fails the caller."""
    try:
        users = User.query.filter_by(role='user', email_notifications=True).with_entities(User.email).all()
        emails = [email for (email,) in users]
        if emails:
            send_new_book_notification(book.to_dict(with_reviews=False), emails)
    except Exception as e:
        current_app.logger.error(f"Email notification failed: {str(e)}")


@book_routes.route('', methods=['POST'])
@authenticate
def create_book():
    uploader = current_user_or_404()
    form = request.form
    title = (form.get('title') or '').strip()
    genre = (form.get('genre') or '').strip()
    description = (form.get('description') or '').strip()
    author_name = (form.get('authorName') or '').strip()
    book_type = (form.get('bookType') or 'pdf').strip().lower()

    if not title or not genre or not description or not author_name:
        abort(400, description="Title, genre, description and author name are required")

    if book_type not in BOOK_TYPES:
        abort(400, description="Book type must be pdf or audio")

    cover = request.files.get('coverImage')
    if not cover or not cover.filename:
        abort(400, description="Cover image is required")

    content_field = 'audioFile' if book_type == 'audio' else 'file'
    content = request.files.get(content_field)
    if not content or not content.filename:
        abort(400, description="Audio file is required" if book_type == 'audio' else "PDF file is required")

    _check_upload_size(cover)
    _check_upload_size(content)

    try:
        price = float(form.get('price') or 0)
    except ValueError:
        price = 0
    if not 0 <= price < float('inf'):
        price = 0

    try:
        cover_upload, content_upload = upload_book_files(cover, content, book_type)
    except MediaStorageError as e:
        current_app.logger.error(f"Error uploading book files: {str(e)}")
        abort(500, description="Error creating book")

    book = Book(
        title=title,
        genre=genre,
        description=description,
        uploader_id=uploader.id,
        author_name=author_name,
        cover_image=cover_upload['url'],
        book_type=book_type,
        file=content_upload['url'] if book_type == 'pdf' else None,
        audio_file=content_upload['url'] if book_type == 'audio' else None,
        duration=(form.get('duration') or '').strip() or None,
        tags=parse_tags(form.get('tags')),
        is_paid=parse_bool(form.get('isPaid', 'false')),
        price=price,
        views_count=0,
        average_rating=0,
        ratings_count=0,
    )

    try:
        db.session.add(book)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating book: {str(e)}")
        storage = get_media_storage()
        discard(storage, cover_upload)
        discard(storage, content_upload)
        abort(500, description="Error creating book")

    _notify_readers(book)

    return jsonify(book.to_dict()), 201


@book_routes.route('', methods=['GET'])
def list_books():
    books = Book.newest_first().all()
    return jsonify([book.to_dict() for book in books]), 200


@book_routes.route('/recommendations/me', methods=['GET'])
@authenticate
def get_recommended_books():
    user = db.session.get(User, g.user_id)

    if not user or not user.viewed_books:
        latest = Book.newest_first().limit(RECOMMENDATION_LIMIT).all()
        return jsonify([book.to_dict() for book in latest]), 200

    # Most recent view first
    viewed = [view.book for view in reversed(user.viewed_books)]
    viewed_ids = [book.id for book in viewed]
    genres = {book.genre for book in viewed}

    candidates = (
        Book.newest_first()
        .filter(Book.genre.in_(genres), ~Book.id.in_(viewed_ids))
        .all()
    )
    recommended = recommendation_model.recommend(viewed, candidates, limit=RECOMMENDATION_LIMIT)
    return jsonify([book.to_dict() for book in recommended]), 200


@book_routes.route('/<book_id>', methods=['GET'])
@optional_authentication
def get_single_book(book_id):
    book = _get_book_or_404(book_id)

    book.views_count = (book.views_count or 0) + 1
    if g.user_id is not None:
        user = db.session.get(User, g.user_id)
        if user and not user.has_viewed(book.id):
            db.session.add(ViewedBook(user_id=user.id, book_id=book.id))
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent request already recorded this view
        db.session.rollback()

    return jsonify(book.to_dict()), 200


@book_routes.route('/<book_id>', methods=['PATCH'])
@authenticate
def update_book(book_id):
    book = _get_book_or_404(book_id)

    if not book.is_owned_by(g.user_id):
        abort(403, description="Not allowed")

    data = json_body() if request.is_json else request.form

    for field, attr in (('title', 'title'), ('genre', 'genre'),
                        ('description', 'description'), ('authorName', 'author_name')):
        if field in data:
            value = text_field(data, field)
            if not value:
                abort(400, description=f"{field} cannot be empty")
            setattr(book, attr, value)

    if 'duration' in data:
        book.duration = text_field(data, 'duration') or None
    if 'price' in data:
        book.price = parse_price(data.get('price'), default=0)
    if 'isPaid' in data:
        book.is_paid = parse_bool(data.get('isPaid'))
    if 'tags' in data:
        book.tags = parse_tags(data.get('tags'))

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating book: {str(e)}")
        abort(500, description="Error updating book")

    return jsonify(book.to_dict()), 200


@book_routes.route('/<book_id>', methods=['DELETE'])
@authenticate
def delete_book(book_id):
    book = _get_book_or_404(book_id)

    if not book.is_owned_by(g.user_id):
        abort(403, description="Not allowed")

    db.session.delete(book)
    db.session.commit()
    return '', 204


@book_routes.route('/<book_id>/reviews', methods=['POST'])
@authenticate
def add_review(book_id):
    data = json_body()
    rating = parse_int_in_range(data.get('rating'), 1, 5)
    if rating is None:
        abort(400, description="Rating must be between 1 and 5")

    book = _get_book_or_404(book_id)
    current_user_or_404()

    if book.has_review_from(g.user_id):
        abort(400, description="Already reviewed")

    comment = data.get('comment')
    review = Review(user_id=g.user_id, rating=rating, comment=comment.strip() if isinstance(comment, str) else None)
    book.reviews.append(review)
    book.refresh_rating()

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        abort(400, description="Already reviewed")
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error adding review: {str(e)}")
        abort(500, description="Error adding review")

    return jsonify({
        "averageRating": book.average_rating,
        "ratingsCount": book.ratings_count,
    }), 201


@book_routes.route('/<book_id>/reviews', methods=['GET'])
def list_reviews(book_id):
    book = _get_book_or_404(book_id)
    reviews = sorted(book.reviews, key=lambda r: (r.created_at, r.id), reverse=True)
    return jsonify([review.to_dict() for review in reviews]), 200


@book_routes.route('/<book_id>/similar', methods=['GET'])
def get_similar_books(book_id):
    book = _get_book_or_404(book_id)

    candidates = (
        Book.newest_first()
        .filter(Book.genre == book.genre, Book.id != book.id)
        .all()
    )
    similar = recommendation_model.similar_books(book, candidates, limit=SIMILAR_LIMIT)
    return jsonify([item.to_dict() for item in similar]), 200


@book_routes.route('/<book_id>/progress', methods=['POST'])
@authenticate
def record_progress(book_id):
    data = json_body()
    progress = parse_int_in_range(data.get('progress'), 0, 100)
    if progress is None:
        abort(400, description="Progress must be between 0 and 100")

    book = _get_book_or_404(book_id)
    user = current_user_or_404()

    entry = ReadingHistory.record(user.id, book.id, progress)
    try:
        db.session.commit()
    except IntegrityError:
        # First visit raced with another request: update the row it created
        db.session.rollback()
        entry = ReadingHistory.record(user.id, book.id, progress)
        db.session.commit()

    return jsonify(entry.to_dict()), 200
