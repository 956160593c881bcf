from bookify.db import db, utcnow


class ReadingHistory(db.Model):
    __tablename__ = 'reading_history'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'book_id', name='uq_reading_history_user_book'),
        db.CheckConstraint('progress >= 0 AND progress <= 100', name='ck_reading_history_progress'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    book_id = db.Column(db.Integer, db.ForeignKey('books.id', ondelete='CASCADE'), nullable=False)
    progress = db.Column(db.Integer, nullable=False, default=0)
    visit_count = db.Column(db.Integer, nullable=False, default=1)
    last_read_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship('User', back_populates='reading_history')
    book = db.relationship('Book', back_populates='reading_history')

    @classmethod
    def record(cls, user_id, book_id, progress):
        """Create the (user, book) row or bump its visit count and progress."""
        entry = cls.query.filter_by(user_id=user_id, book_id=book_id).first()
        if entry is None:
            entry = cls(user_id=user_id, book_id=book_id, progress=progress, visit_count=1)
            db.session.add(entry)
        else:
            entry.progress = progress
            entry.visit_count += 1
            entry.last_read_at = utcnow()
        return entry

    def to_dict(self):
        return {
            'id': self.id,
            'user': self.user_id,
            'book': self.book_id,
            'progress': self.progress,
            'visitCount': self.visit_count,
            'lastReadAt': self.last_read_at.isoformat() if self.last_read_at else None,
        }
