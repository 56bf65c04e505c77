from datetime import datetime

from bookstore.extensions import db
from bookstore.services.notification_service import NotificationService


def run_late_check_job(app, now: datetime = None) -> dict:
    """
    Scheduler entry point. Reminders only: overdue stays a derived view of
    due_date and fines are persisted when a return completes.
    """
    with app.app_context():
        try:
            return NotificationService.run_late_check(now)
        except Exception:
            db.session.rollback()
            raise
