from datetime import datetime, timedelta
from bookstore.extensions import db
from bookstore.services import lifecycle
from bookstore.utils.status import BorrowStatus


class BorrowRequest(db.Model):
    __tablename__ = "borrow_requests"

    id = db.Column(db.Integer, primary_key=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False, index=True)
    delivery_person_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    approved_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    status = db.Column(db.String(25), nullable=False, default=BorrowStatus.PENDING.value, index=True)
    borrow_period_days = db.Column(db.Integer, nullable=False)
    delivery_address = db.Column(db.Text, nullable=True)

    request_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    approval_date = db.Column(db.DateTime, nullable=True)
    due_date = db.Column(db.DateTime, nullable=False, index=True)
    delivery_date = db.Column(db.DateTime, nullable=True)
    return_date = db.Column(db.DateTime, nullable=True)
    final_return_date = db.Column(db.DateTime, nullable=True)

    rejection_reason = db.Column(db.Text, nullable=True)
    fine_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = db.relationship("User", foreign_keys=[customer_id], backref="borrow_requests")
    delivery_person = db.relationship("User", foreign_keys=[delivery_person_id])
    approved_by = db.relationship("User", foreign_keys=[approved_by_id])
    book = db.relationship("Book", backref="borrow_requests")

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.request_date is None:
            self.request_date = datetime.utcnow()
        if self.due_date is None and self.borrow_period_days is not None:
            self.due_date = self.request_date + timedelta(days=self.borrow_period_days)

    # display copies, not authoritative
    @property
    def customer_name(self):
        return self.customer.display_name if self.customer else None

    @property
    def book_title(self):
        return self.book.title if self.book else None

    def can_approve_or_reject(self) -> bool:
        return lifecycle.can_approve_or_reject(self)

    def is_delivery_active(self) -> bool:
        return lifecycle.is_delivery_active(self)

    def should_show_return_actions(self) -> bool:
        return lifecycle.should_show_return_actions(self)

    def should_show_assigned_delivery_manager(self) -> bool:
        return lifecycle.should_show_assigned_delivery_manager(self)

    def is_overdue(self, now=None) -> bool:
        return lifecycle.is_overdue(self, now)
