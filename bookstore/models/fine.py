from datetime import datetime
from bookstore.extensions import db
from bookstore.utils.status import FineStatus


class Fine(db.Model):
    __tablename__ = "fines"

    id = db.Column(db.Integer, primary_key=True)

    borrow_id = db.Column(db.Integer, db.ForeignKey("borrow_requests.id"), unique=True, nullable=False, index=True)
    return_request_id = db.Column(db.Integer, db.ForeignKey("return_requests.id"), nullable=True)

    days_overdue = db.Column(db.Integer, nullable=False, default=0)
    daily_rate = db.Column(db.Numeric(10, 2), nullable=False, default=1)
    amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    reason = db.Column(db.String(255), nullable=True)

    status = db.Column(db.String(10), nullable=False, default=FineStatus.UNPAID.value, index=True)
    payment_method = db.Column(db.String(10), nullable=True)  # cash/card
    transaction_reference = db.Column(db.String(64), nullable=True)
    paid_date = db.Column(db.DateTime, nullable=True)
    paid_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    waive_reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    borrow = db.relationship("BorrowRequest", backref=db.backref("fine", uselist=False))
    return_request = db.relationship("ReturnRequest", backref=db.backref("fine", uselist=False))
    paid_by = db.relationship("User")

    @property
    def is_settled(self) -> bool:
        return self.status in (FineStatus.PAID.value, FineStatus.WAIVED.value)

    @property
    def paid_by_name(self):
        return self.paid_by.display_name if self.paid_by else None
