from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship

from pharmastock.database.base import Base


class StockLevel(Base):
    __tablename__ = "stock_levels"

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, unique=True)

    current_quantity = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False)

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    item = relationship("Item", back_populates="stock_level")

    __table_args__ = (
        CheckConstraint("current_quantity >= 0", name="ck_stock_levels_non_negative"),
    )
    # UPDATEs carry "WHERE version = <read version>"; a concurrent commit
    # makes the row count come back 0 and the flush raises StaleDataError.
    __mapper_args__ = {"version_id_col": version}


__all__ = ["StockLevel"]
