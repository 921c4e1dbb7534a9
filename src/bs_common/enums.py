"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class ItemType(str, Enum):
    """How a book is acquired at checkout: bought outright or rented."""
    BUY = "buy"
    BORROW = "borrow"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class OwnedBookStatus(str, Enum):
    PURCHASED = "purchased"
    DOWNLOADED = "downloaded"


class BorrowStatus(str, Enum):
    """active -> returned (terminal, via return-book only); active -> overdue (time based)."""
    ACTIVE = "active"
    RETURNED = "returned"
    OVERDUE = "overdue"


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    SUCCESSFUL = "successful"
