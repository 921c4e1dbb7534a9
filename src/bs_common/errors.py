"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Account/Cart
  3xxx: Catalog
  4xxx: Transactions (checkout / return)
  5xxx: Appointments/Comments
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "User already exists with this email", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid email or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class ForbiddenError(AppError):
    def __init__(self, detail: str = "Access denied") -> None:
        super().__init__(1006, detail, 403)


class UserNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1007, f"User not found: {user_id}", 404)


# --- 2xxx: Account/Cart ---

class AccountNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Account not found for user {user_id}", 404)


class CartItemExistsError(AppError):
    def __init__(self, book_id: str, item_type: str) -> None:
        super().__init__(2003, f"Item already in cart: {book_id} ({item_type})", 409)


class EmptyCartError(AppError):
    def __init__(self) -> None:
        super().__init__(2004, "Nothing to check out: cart is empty", 400)


class AccountConflictError(AppError):
    """The account document changed between read and replace (stale version)."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            2005, f"Account {user_id} was modified concurrently, please retry", 409
        )


# --- 3xxx: Catalog ---

class BookNotFoundError(AppError):
    def __init__(self, book_id: str) -> None:
        super().__init__(3001, f"Book with ID {book_id} not found", 404)


class BookUnavailableError(AppError):
    def __init__(self, title: str) -> None:
        super().__init__(3002, f'Book "{title}" is not available for borrowing', 400)


class BookInUseError(AppError):
    def __init__(self, book_id: str) -> None:
        super().__init__(3003, f"Book {book_id} has active borrows and cannot be deleted", 409)


class StockConflictError(AppError):
    """Atomic decrement matched no row: another checkout took the last copy."""

    def __init__(self, book_id: str) -> None:
        super().__init__(3004, f"Last copy of book {book_id} was taken concurrently", 409)


# --- 4xxx: Transactions ---

class TransactionNotFoundError(AppError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(4001, f"Transaction not found: {transaction_id}", 404)


class InvalidTransactionStatusError(AppError):
    def __init__(self, status: str) -> None:
        super().__init__(4002, f"Invalid status value: {status}", 400)


class IdempotencyKeyReusedError(AppError):
    def __init__(self, key: str) -> None:
        super().__init__(
            4003, f"Idempotency key {key} was already used for a different checkout", 409
        )


class BorrowNotFoundError(AppError):
    def __init__(self, book_id: str) -> None:
        super().__init__(4004, f"Active borrowed book not found: {book_id}", 404)


class BookAlreadyReturnedError(AppError):
    def __init__(self, book_id: str) -> None:
        super().__init__(4005, f"Book {book_id} has already been returned", 404)


# --- 5xxx: Appointments/Comments ---

class AppointmentNotFoundError(AppError):
    def __init__(self, appointment_id: str) -> None:
        super().__init__(5001, f"Appointment not found: {appointment_id}", 404)


class AppointmentLockedError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5002, detail, 400)


class CommentNotFoundError(AppError):
    def __init__(self, comment_id: str) -> None:
        super().__init__(5003, f"Comment not found: {comment_id}", 404)


class DuplicateCommentError(AppError):
    def __init__(self) -> None:
        super().__init__(5004, "You have already commented on this book", 400)


class InvalidAppointmentDateError(AppError):
    def __init__(self) -> None:
        super().__init__(5005, "Appointment date must be in the future", 400)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Too many requests from this IP, please try again later.", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class StoreFailureError(AppError):
    def __init__(self, detail: str = "Storage backend failure") -> None:
        super().__init__(9003, detail, 503)


class RequestValidationFailedError(AppError):
    """Malformed body, query or path parameter; the message names the first offending field."""

    def __init__(self, detail: str = "Validation failed") -> None:
        super().__init__(9004, detail, 400)


class RouteNotFoundError(AppError):
    def __init__(self, detail: str = "Route not found") -> None:
        super().__init__(9005, detail, 404)


class MethodNotAllowedError(AppError):
    def __init__(self, detail: str = "Method not allowed") -> None:
        super().__init__(9006, detail, 405)
