from bookify.db import db, utcnow

BOOK_TYPES = ('pdf', 'audio')


class Book(db.Model):
    __tablename__ = 'books'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text, nullable=False)
    # Uploading account; the displayed author is author_name
    uploader_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True)
    author_name = db.Column(db.String(255), nullable=False)
    cover_image = db.Column(db.String(1024), nullable=False)
    book_type = db.Column(db.Enum(*BOOK_TYPES, name='book_type'), nullable=False, default='pdf')
    file = db.Column(db.String(1024))
    audio_file = db.Column(db.String(1024))
    duration = db.Column(db.String(50))
    genre = db.Column(db.String(100), nullable=False, index=True)
    tags = db.Column(db.JSON, nullable=False, default=list)
    views_count = db.Column(db.Integer, nullable=False, default=0)
    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    price = db.Column(db.Float, nullable=False, default=0)
    average_rating = db.Column(db.Float, nullable=False, default=0)
    ratings_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    uploader = db.relationship('User', back_populates='books')
    reviews = db.relationship(
        'Review', back_populates='book', cascade='all, delete-orphan',
        order_by='Review.created_at',
    )
    views = db.relationship('ViewedBook', back_populates='book', cascade='all, delete-orphan')
    reading_history = db.relationship('ReadingHistory', back_populates='book', cascade='all, delete-orphan')
    wishlisted_by = db.relationship('User', secondary='wishlist_items', back_populates='wishlist')

    @classmethod
    def newest_first(cls):
        return cls.query.order_by(cls.created_at.desc(), cls.id.desc())

    @property
    def content_url(self):
        return self.audio_file if self.book_type == 'audio' else self.file

    def is_owned_by(self, user_id):
        return self.uploader_id is not None and self.uploader_id == user_id

    def has_review_from(self, user_id):
        return any(review.user_id == user_id for review in self.reviews)

    def refresh_rating(self):
        """Recompute the rating aggregate from every stored review."""
        ratings = [review.rating for review in self.reviews]
        self.ratings_count = len(ratings)
        self.average_rating = sum(ratings) / len(ratings) if ratings else 0

    def to_dict(self, with_reviews=True):
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'author': self.uploader_id,
            'authorName': self.author_name,
            'coverImage': self.cover_image,
            'bookType': self.book_type,
            'file': self.file,
            'audioFile': self.audio_file,
            'duration': self.duration,
            'genre': self.genre,
            'tags': list(self.tags or []),
            'viewsCount': self.views_count,
            'isPaid': self.is_paid,
            'price': self.price,
            'averageRating': self.average_rating,
            'ratingsCount': self.ratings_count,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
        if with_reviews:
            data['reviews'] = [review.to_dict() for review in self.reviews]
        return data

    def to_summary(self):
        return {
            'id': self.id,
            'title': self.title,
            'genre': self.genre,
            'authorName': self.author_name,
            'viewsCount': self.views_count,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Book(id={self.id}, title={self.title}, type={self.book_type})>"


class Review(db.Model):
    __tablename__ = 'reviews'
    __table_args__ = (
        db.UniqueConstraint('book_id', 'user_id', name='uq_review_book_user'),
    )

    id = db.Column(db.Integer, primary_key=True)
    book_id = db.Column(db.Integer, db.ForeignKey('books.id', ondelete='CASCADE'), nullable=False)
    # Null once the reviewer's account is deleted; the rating still counts
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    book = db.relationship('Book', back_populates='reviews')
    user = db.relationship('User', back_populates='reviews')

    def to_dict(self):
        return {
            'user': self.user_id,
            'rating': self.rating,
            'comment': self.comment,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
