from bookstore.models.discount import Discount
from bookstore.extensions import db

class DiscountRepo:
    @staticmethod
    def list_all():
        return Discount.query.order_by(Discount.id.desc()).all()

    @staticmethod
    def get_by_code(code: str):
        return Discount.query.filter_by(code=code).first()

    @staticmethod
    def create(discount: Discount):
        db.session.add(discount)
        db.session.commit()
        return discount

    @staticmethod
    def commit():
        db.session.commit()
