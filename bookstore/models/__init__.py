from bookstore.models.user import User
from bookstore.models.book import Book
from bookstore.models.borrow import BorrowRequest
from bookstore.models.return_request import ReturnRequest
from bookstore.models.fine import Fine
from bookstore.models.extension import BorrowExtension
from bookstore.models.discount import Discount
from bookstore.models.notification_log import NotificationLog

__all__ = [
    "User",
    "Book",
    "BorrowRequest",
    "ReturnRequest",
    "Fine",
    "BorrowExtension",
    "Discount",
    "NotificationLog",
]
