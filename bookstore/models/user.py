from datetime import datetime
from bookstore.extensions import db
from bookstore.utils.status import DeliveryStatus, Role


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(200), nullable=True)

    role = db.Column(db.String(20), nullable=False, default=Role.CUSTOMER.value)  # customer/admin/delivery_manager
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # delivery managers only
    delivery_status = db.Column(db.String(10), nullable=True)  # online/busy/offline
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    location_updated_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @property
    def display_name(self):
        return self.full_name or self.username

    @property
    def is_available(self) -> bool:
        return self.is_active and self.delivery_status == DeliveryStatus.ONLINE.value
