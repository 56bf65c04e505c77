from datetime import datetime

from bookstore.errors import NotFoundError, ValidationError
from bookstore.repositories.user_repo import UserRepo
from bookstore.utils.status import DeliveryStatus, normalize_status


class DeliveryService:
    @staticmethod
    def _me(actor):
        user = UserRepo.get_by_id(actor.user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def set_status(actor, status: str):
        key = normalize_status(status)
        if key not in {s.value for s in DeliveryStatus}:
            raise ValidationError("status must be online, busy or offline")

        user = DeliveryService._me(actor)
        user.delivery_status = key
        UserRepo.commit()
        return user

    @staticmethod
    def update_location(actor, latitude, longitude):
        try:
            lat = float(latitude)
            lng = float(longitude)
        except (TypeError, ValueError):
            raise ValidationError("latitude and longitude must be numbers")
        if not -90 <= lat <= 90 or not -180 <= lng <= 180:
            raise ValidationError("latitude/longitude out of range")

        user = DeliveryService._me(actor)
        user.latitude = lat
        user.longitude = lng
        user.location_updated_at = datetime.utcnow()
        UserRepo.commit()
        return user
