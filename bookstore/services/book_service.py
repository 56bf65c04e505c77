from bookstore.errors import NotFoundError, ValidationError
from bookstore.models.book import Book
from bookstore.repositories.book_repo import BookRepo

class BookService:
    @staticmethod
    def list_books():
        return BookRepo.list_all()

    @staticmethod
    def get_book(book_id: int):
        book = BookRepo.get(book_id)
        if not book:
            raise NotFoundError("Book not found")
        return book

    @staticmethod
    def create_book(data: dict):
        total = int(data.get("total_copies", 1))
        if total < 1:
            raise ValidationError("total_copies must be at least 1")

        book = Book(
            title=data["title"],
            author=data["author"],
            isbn=data.get("isbn"),
            total_copies=total,
            available_copies=int(data.get("available_copies", total)),
        )
        if book.available_copies > book.total_copies:
            book.available_copies = book.total_copies
        return BookRepo.create(book)
