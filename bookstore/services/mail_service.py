from __future__ import annotations

from datetime import datetime
from flask import current_app
from flask_mail import Message
from smtplib import SMTPException

from bookstore.extensions import mail
from bookstore.models.notification_log import NotificationLog
from bookstore.repositories.notification_repo import NotificationRepo


class MailService:
    @staticmethod
    def send_email(to_email: str, subject: str, body: str) -> tuple[bool, str | None]:
        """
        return: (success, error_text)
        """
        try:
            msg = Message(subject=subject, recipients=[to_email], body=body)
            mail.send(msg)
            return True, None
        except (SMTPException, OSError) as e:
            current_app.logger.warning(f"[mail] could not send to {to_email}: {e}")
            return False, str(e)

    @staticmethod
    def _labels(borrow):
        customer = borrow.customer
        to_email = customer.email if customer else None
        name = customer.display_name if customer else "Reader"
        return to_email, name, borrow.book_title, borrow.due_date

    @staticmethod
    def _deliver(borrow, notif_type: str, subject: str, body: str) -> bool:
        # caller commits once for the whole batch
        to_email = MailService._labels(borrow)[0]
        if not to_email:
            NotificationRepo.log(NotificationLog(
                borrow_id=borrow.id, type=notif_type, email=None,
                message="Customer has no email address", success=False,
                error_message="missing_email", sent_at=datetime.utcnow(),
            ))
            return False

        ok, err = MailService.send_email(to_email, subject, body)
        NotificationRepo.log(NotificationLog(
            borrow_id=borrow.id, type=notif_type, email=to_email,
            message=subject if ok else "Mail could not be sent",
            success=ok, error_message=err, sent_at=datetime.utcnow(),
        ))
        return ok

    @staticmethod
    def send_overdue_mail(borrow, quote) -> bool:
        _, name, title, due_date = MailService._labels(borrow)
        body = (
            f"Hello {name},\n\n"
            f"The due date for '{title}' has passed.\n"
            f"Due date: {due_date:%Y-%m-%d %H:%M}\n"
            f"Days overdue: {quote.overdue_days}\n"
            f"Fine so far: {quote.amount}\n\n"
            f"Please request a return as soon as possible.\n"
        )
        return MailService._deliver(borrow, "overdue", "Library: overdue book", body)

    @staticmethod
    def send_due_soon_mail(borrow) -> bool:
        _, name, title, due_date = MailService._labels(borrow)
        body = (
            f"Hello {name},\n\n"
            f"'{title}' is due soon.\n"
            f"Due date: {due_date:%Y-%m-%d %H:%M}\n\n"
            f"Request a return or an extension before then.\n"
        )
        return MailService._deliver(borrow, "due_soon", "Library: due date approaching", body)
