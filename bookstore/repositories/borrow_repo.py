from datetime import datetime
from sqlalchemy import or_, cast, String
from bookstore.models.book import Book
from bookstore.models.borrow import BorrowRequest
from bookstore.models.user import User
from bookstore.utils.status import BorrowStatus
from bookstore.extensions import db

class BorrowRepo:
    @staticmethod
    def get(borrow_id: int):
        return BorrowRequest.query.get(borrow_id)

    @staticmethod
    def get_for_update(borrow_id: int):
        return BorrowRequest.query.filter_by(id=borrow_id).with_for_update().first()

    @staticmethod
    def search(status=None, search=None, customer_id=None, delivery_person_id=None, now=None):
        q = BorrowRequest.query

        if customer_id is not None:
            q = q.filter(BorrowRequest.customer_id == customer_id)
        if delivery_person_id is not None:
            q = q.filter(BorrowRequest.delivery_person_id == delivery_person_id)

        if status == "overdue":
            q = q.filter(
                BorrowRequest.status == BorrowStatus.ACTIVE.value,
                BorrowRequest.due_date < (now or datetime.utcnow()),
            )
        elif status is not None:
            q = q.filter(BorrowRequest.status == status)

        if search:
            like = f"%{search}%"
            q = (
                q.join(Book, Book.id == BorrowRequest.book_id)
                .join(User, User.id == BorrowRequest.customer_id)
                .filter(or_(
                    Book.title.ilike(like),
                    Book.isbn.ilike(like),
                    User.username.ilike(like),
                    User.full_name.ilike(like),
                    User.email.ilike(like),
                    cast(BorrowRequest.id, String).ilike(like),
                ))
            )

        return q.order_by(BorrowRequest.request_date.desc(), BorrowRequest.id.desc()).all()

    @staticmethod
    def create(borrow: BorrowRequest):
        db.session.add(borrow)
        db.session.commit()
        return borrow

    @staticmethod
    def commit():
        db.session.commit()

    @staticmethod
    def rollback():
        db.session.rollback()

    @staticmethod
    def find_overdue(now: datetime):
        return BorrowRequest.query.filter(
            BorrowRequest.status == BorrowStatus.ACTIVE.value,
            BorrowRequest.due_date < now
        ).all()

    @staticmethod
    def find_due_between(start: datetime, end: datetime):
        return BorrowRequest.query.filter(
            BorrowRequest.status == BorrowStatus.ACTIVE.value,
            BorrowRequest.due_date >= start,
            BorrowRequest.due_date <= end
        ).all()
