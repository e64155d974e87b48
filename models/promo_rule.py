from datetime import datetime
from sqlalchemy import String, DateTime, Numeric, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base


class PromoRule(Base):
    __tablename__ = "promo_rules"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100))
    threshold_total_spent: Mapped[float] = mapped_column(Numeric(12, 2), index=True)
    delivery_discount_amount: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    percent_discount: Mapped[float] = mapped_column(Numeric(5, 2), default=0)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
