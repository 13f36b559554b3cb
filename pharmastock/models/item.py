from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from pharmastock.database.base import Base


class Item(Base):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(String)
    form = Column(String(20), nullable=False, default="TABLET")
    # MM-YYYY; NULL means no expiry is tracked for this batch.
    expiry_date = Column(String(7))
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    stock_level = relationship("StockLevel", back_populates="item", uselist=False)

    __table_args__ = (
        UniqueConstraint("name", "form", "expiry_date", name="uq_items_name_form_expiry"),
        Index("idx_items_name", "name"),
    )


__all__ = ["Item"]
