from bookstore.models.extension import BorrowExtension
from bookstore.extensions import db

class ExtensionRepo:
    @staticmethod
    def get(extension_id: int):
        return BorrowExtension.query.get(extension_id)

    @staticmethod
    def list(status=None):
        q = BorrowExtension.query
        if status is not None:
            q = q.filter(BorrowExtension.status == status)
        return q.order_by(BorrowExtension.id.desc()).all()

    @staticmethod
    def create(extension: BorrowExtension):
        db.session.add(extension)
        db.session.commit()
        return extension
