"""HTTP client side of the lending service: session, API client and screen state."""
from bookstore.client.api_client import LendingApiClient
from bookstore.client.debounce import Debouncer
from bookstore.client.provider import BorrowingProvider
from bookstore.client.records import BorrowRecord
from bookstore.client.session import ClientSession

__all__ = [
    "BorrowRecord",
    "BorrowingProvider",
    "ClientSession",
    "Debouncer",
    "LendingApiClient",
]
