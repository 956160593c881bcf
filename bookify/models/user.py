from bookify.db import db, utcnow

ROLES = ('user', 'admin')

wishlist_items = db.Table(
    'wishlist_items',
    db.Column('user_id', db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    db.Column('book_id', db.Integer, db.ForeignKey('books.id', ondelete='CASCADE'), primary_key=True),
    db.Column('added_at', db.DateTime, default=utcnow),
)

# Reserved for payment integration, nothing writes to it yet
purchased_items = db.Table(
    'purchased_items',
    db.Column('user_id', db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    db.Column('book_id', db.Integer, db.ForeignKey('books.id', ondelete='CASCADE'), primary_key=True),
)


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password = db.Column(db.String(255), nullable=False)
    role = db.Column(db.Enum(*ROLES, name='user_role'), nullable=False, default='user')
    email_notifications = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    wishlist = db.relationship(
        'Book', secondary=wishlist_items, back_populates='wishlisted_by',
        order_by=wishlist_items.c.added_at,
    )
    viewed_books = db.relationship(
        'ViewedBook', back_populates='user', cascade='all, delete-orphan',
        order_by='ViewedBook.viewed_at',
    )
    purchased_books = db.relationship('Book', secondary=purchased_items)
    reading_history = db.relationship(
        'ReadingHistory', back_populates='user', cascade='all, delete-orphan',
    )
    reviews = db.relationship('Review', back_populates='user')
    books = db.relationship('Book', back_populates='uploader')

    @property
    def is_admin(self):
        return self.role == 'admin'

    def has_viewed(self, book_id):
        return any(view.book_id == book_id for view in self.viewed_books)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class ViewedBook(db.Model):
    """One row per (user, book) the first time the user opens the book."""

    __tablename__ = 'viewed_books'

    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    book_id = db.Column(db.Integer, db.ForeignKey('books.id', ondelete='CASCADE'), primary_key=True)
    viewed_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship('User', back_populates='viewed_books')
    book = db.relationship('Book', back_populates='views')

    def __repr__(self):
        return f"<ViewedBook(user_id={self.user_id}, book_id={self.book_id})>"
