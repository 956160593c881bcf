from bookify.db import db, utcnow

# approved/rejected are reserved for an admin triage flow
REQUEST_STATUSES = ('pending', 'approved', 'rejected')


class BookRequest(db.Model):
    __tablename__ = 'book_requests'

    id = db.Column(db.Integer, primary_key=True)
    book_name = db.Column(db.String(500), nullable=False)
    author_name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(100), nullable=False)
    user_email = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text)
    status = db.Column(db.Enum(*REQUEST_STATUSES, name='book_request_status'), nullable=False, default='pending')
    admin_note = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @classmethod
    def newest_first(cls):
        return cls.query.order_by(cls.created_at.desc(), cls.id.desc())

    def to_dict(self):
        return {
            'id': self.id,
            'bookName': self.book_name,
            'authorName': self.author_name,
            'category': self.category,
            'userEmail': self.user_email,
            'message': self.message,
            'status': self.status,
            'adminNote': self.admin_note,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<BookRequest(id={self.id}, book_name={self.book_name}, status={self.status})>"
