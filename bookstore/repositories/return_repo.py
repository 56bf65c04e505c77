from bookstore.models.return_request import ReturnRequest
from bookstore.extensions import db

class ReturnRepo:
    @staticmethod
    def get(return_id: int):
        return ReturnRequest.query.get(return_id)

    @staticmethod
    def get_by_borrow(borrow_id: int):
        return ReturnRequest.query.filter_by(borrow_id=borrow_id).first()

    @staticmethod
    def list(status=None, delivery_manager_id=None):
        q = ReturnRequest.query
        if status is not None:
            q = q.filter(ReturnRequest.status == status)
        if delivery_manager_id is not None:
            q = q.filter(ReturnRequest.delivery_manager_id == delivery_manager_id)
        return q.order_by(ReturnRequest.id.desc()).all()

    @staticmethod
    def add(entry: ReturnRequest):
        db.session.add(entry)
        return entry
