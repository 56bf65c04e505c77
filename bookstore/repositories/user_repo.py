from bookstore.models.user import User
from bookstore.utils.status import Role
from bookstore.extensions import db

class UserRepo:
    @staticmethod
    def get_by_username(username: str):
        return User.query.filter_by(username=username).first()

    @staticmethod
    def get_by_email(email: str):
        return User.query.filter_by(email=email).first()

    @staticmethod
    def get_by_id(user_id: int):
        return User.query.get(user_id)

    @staticmethod
    def list_delivery_managers():
        return User.query.filter_by(
            role=Role.DELIVERY_MANAGER.value, is_active=True
        ).order_by(User.full_name, User.username).all()

    @staticmethod
    def create(user: User):
        db.session.add(user)
        db.session.commit()
        return user

    @staticmethod
    def commit():
        db.session.commit()
