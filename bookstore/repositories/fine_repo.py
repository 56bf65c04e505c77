from bookstore.models.borrow import BorrowRequest
from bookstore.models.fine import Fine
from bookstore.extensions import db

class FineRepo:
    @staticmethod
    def get(fine_id: int):
        return Fine.query.get(fine_id)

    @staticmethod
    def get_by_borrow(borrow_id: int):
        return Fine.query.filter_by(borrow_id=borrow_id).first()

    @staticmethod
    def list_by_customer(customer_id: int, status=None):
        q = Fine.query.join(BorrowRequest, Fine.borrow_id == BorrowRequest.id).filter(
            BorrowRequest.customer_id == customer_id
        )
        if status is not None:
            q = q.filter(Fine.status == status)
        return q.order_by(Fine.id.desc()).all()

    @staticmethod
    def list_all(status=None):
        q = Fine.query
        if status is not None:
            q = q.filter(Fine.status == status)
        return q.order_by(Fine.updated_at.desc(), Fine.id.desc()).all()

    @staticmethod
    def add(fine: Fine):
        db.session.add(fine)
        return fine

    @staticmethod
    def commit():
        db.session.commit()
