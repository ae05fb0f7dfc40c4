"""
OrderDetail Model

One line of an order. Only the data shape exists; no API operation reads
or writes it yet.
"""

from sqlalchemy import JSON, ForeignKey, Integer, Numeric, String, event
from sqlalchemy.orm import Mapped, mapped_column

from bookstore.database import Base


class OrderDetail(Base):
    """
    Table: order_details

    total_price is always quantity × unit_price; it is recomputed on every
    insert and update.
    """

    __tablename__ = "order_details"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    book_id: Mapped[int] = mapped_column(ForeignKey("books.id"), index=True, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    total_price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)

    # {"title", "author", "isbn", "coverImage"} frozen at purchase time
    book_snapshot: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    def recompute_total(self) -> None:
        self.total_price = round(self.quantity * self.unit_price, 2)

    def __repr__(self) -> str:
        return f"<OrderDetail(order_id='{self.order_id}', book_id={self.book_id}, quantity={self.quantity})>"


@event.listens_for(OrderDetail, "before_insert")
@event.listens_for(OrderDetail, "before_update")
def _order_detail_total(mapper, connection, target: OrderDetail) -> None:
    if target.quantity is None or target.quantity < 1:
        raise ValueError("quantity must be at least 1")
    target.recompute_total()
