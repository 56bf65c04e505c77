from datetime import datetime, timedelta
from flask import current_app
from bookstore.repositories.borrow_repo import BorrowRepo
from bookstore.repositories.notification_repo import NotificationRepo
from bookstore.services.fine_calculator import calculate_fine
from bookstore.services.mail_service import MailService

class NotificationService:
    @staticmethod
    def run_late_check(now: datetime = None) -> dict:
        """
        Mails customers about overdue and soon-due borrowings, once per borrowing
        and notification type. Overdue is derived from due_date, so neither the
        borrow status nor any fine is written here.
        """
        now = now or datetime.utcnow()
        cfg = current_app.config
        counts = {"overdue": 0, "due_soon": 0, "skipped": 0, "failed": 0}

        for b in BorrowRepo.find_overdue(now):
            if NotificationRepo.already_sent(b.id, "overdue"):
                counts["skipped"] += 1
                continue
            quote = calculate_fine(b.due_date, now, cfg["FINE_DAILY_RATE"], cfg.get("FINE_MAXIMUM"))
            if MailService.send_overdue_mail(b, quote):
                counts["overdue"] += 1
            else:
                counts["failed"] += 1

        window_end = now + timedelta(hours=cfg["DUE_SOON_HOURS"])
        for b in BorrowRepo.find_due_between(now, window_end):
            if NotificationRepo.already_sent(b.id, "due_soon"):
                counts["skipped"] += 1
                continue
            if MailService.send_due_soon_mail(b):
                counts["due_soon"] += 1
            else:
                counts["failed"] += 1

        BorrowRepo.commit()
        current_app.logger.info(f"[late_check] {counts}")
        return counts
