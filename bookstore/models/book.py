from datetime import datetime
from bookstore.extensions import db

class Book(db.Model):
    __tablename__ = "books"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, index=True)
    author = db.Column(db.String(200), nullable=False, index=True)
    isbn = db.Column(db.String(32), unique=True, nullable=True, index=True)

    total_copies = db.Column(db.Integer, nullable=False, default=1)
    available_copies = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def reserve_copy(self) -> bool:
        if self.available_copies is None or self.available_copies < 1:
            return False
        self.available_copies -= 1
        return True

    def release_copy(self):
        self.available_copies = min(self.total_copies, (self.available_copies or 0) + 1)
