from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from pharmastock.database.base import Base


class AdjustmentLog(Base):
    __tablename__ = "adjustment_logs"

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False)
    actor_id = Column(String, nullable=False)

    delta = Column(Integer, nullable=False)
    reason = Column(String(20), nullable=False)
    note = Column(String)

    previous_quantity = Column(Integer)
    new_quantity = Column(Integer)

    patient_name = Column(String)
    patient_id = Column(String)
    prescription_number = Column(String)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    item = relationship("Item")

    __table_args__ = (
        Index("idx_adjustment_logs_item_created", "item_id", "created_at"),
        Index("idx_adjustment_logs_reason_created", "reason", "created_at"),
    )


__all__ = ["AdjustmentLog"]
