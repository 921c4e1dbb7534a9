"""ORM mapping of the identity half of the users table (migration 002).

Only the columns the gateway needs for register/login/authorization are
mapped. The embedded account documents (cart, brought_books, borrowed_books,
transaction_history, comments, appointments) and the optimistic `version`
belong to bs_account's raw-SQL repository; their server defaults fill them
when the gateway inserts a new user.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.bs_common.database import Base
from src.bs_common.enums import UserRole


class UserModel(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    first_name: Mapped[str] = mapped_column(String(50))
    last_name: Mapped[str] = mapped_column(String(50))
    phone_number: Mapped[str] = mapped_column(String(32))
    role: Mapped[str] = mapped_column(String(16), default=UserRole.USER.value)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def full_name(self) -> str:
        """Shown as the author of the user's comments."""
        return f"{self.first_name} {self.last_name}"
