"""Pure pricing helpers shared by checkout and cart views."""

from collections.abc import Iterable, Mapping
from typing import Protocol

from src.bs_common.enums import ItemType
from src.bs_ledger.domain.models import TransactionItem


class Priceable(Protocol):
    price_cents: int
    rent_cents: int


class PricedBook(Priceable, Protocol):
    id: str
    title: str
    author: str
    image: str


class CartLine(Protocol):
    book_id: str
    type: str


def price_for(book: Priceable, item_type: str) -> int:
    """buy -> book price, borrow -> rent."""
    if item_type == ItemType.BUY:
        return book.price_cents
    if item_type == ItemType.BORROW:
        return book.rent_cents
    raise ValueError(f"Unknown item type: {item_type}")


def price_item(book: PricedBook, item_type: str) -> TransactionItem:
    return TransactionItem(
        book_id=book.id,
        title=book.title,
        author=book.author,
        type=ItemType(item_type).value,
        price_cents=price_for(book, item_type),
        image=book.image,
    )


def total_price(items: Iterable[TransactionItem]) -> int:
    return sum(item.price_cents for item in items)


def calculate_cart_total(cart: Iterable[CartLine], books: Mapping[str, Priceable]) -> int:
    """Total of a cart at current catalog prices; lines whose book vanished count 0."""
    total = 0
    for line in cart:
        book = books.get(line.book_id)
        if book is not None:
            total += price_for(book, line.type)
    return total
