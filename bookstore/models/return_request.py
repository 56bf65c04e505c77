from datetime import datetime
from bookstore.extensions import db
from bookstore.utils.status import ReturnStatus


class ReturnRequest(db.Model):
    __tablename__ = "return_requests"

    id = db.Column(db.Integer, primary_key=True)

    borrow_id = db.Column(db.Integer, db.ForeignKey("borrow_requests.id"), unique=True, nullable=False, index=True)
    delivery_manager_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    status = db.Column(db.String(25), nullable=False, default=ReturnStatus.PENDING_PICKUP.value, index=True)
    fine_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    decline_reason = db.Column(db.Text, nullable=True)

    picked_up_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    borrow = db.relationship("BorrowRequest", backref=db.backref("return_request", uselist=False))
    delivery_manager = db.relationship("User")
