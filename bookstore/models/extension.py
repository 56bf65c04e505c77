from datetime import datetime
from bookstore.extensions import db
from bookstore.utils.status import ExtensionStatus


class BorrowExtension(db.Model):
    __tablename__ = "borrow_extensions"

    id = db.Column(db.Integer, primary_key=True)
    borrow_id = db.Column(db.Integer, db.ForeignKey("borrow_requests.id"), nullable=False, index=True)

    extension_days = db.Column(db.Integer, nullable=False)
    original_due_date = db.Column(db.DateTime, nullable=False)
    new_due_date = db.Column(db.DateTime, nullable=False)

    status = db.Column(db.String(10), nullable=False, default=ExtensionStatus.PENDING.value, index=True)
    rejection_reason = db.Column(db.Text, nullable=True)
    decided_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    decided_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    borrow = db.relationship("BorrowRequest", backref=db.backref("extensions", order_by="BorrowExtension.id"))
