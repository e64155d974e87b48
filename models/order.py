import enum
from datetime import datetime
from sqlalchemy import String, DateTime, ForeignKey, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base, enum_column_type


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    CREDIT_30 = "credit_30"
    CREDIT_60 = "credit_60"


class DeliveryZoneCode(str, enum.Enum):
    LOCAL = "local"
    NATIONAL = "national"


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    order_number: Mapped[str | None] = mapped_column(String(20), unique=True, nullable=True, index=True)
    buyer_user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True)
    organization_id: Mapped[int | None] = mapped_column(
        ForeignKey("organizations.id", ondelete="SET NULL"), nullable=True, index=True
    )
    status: Mapped[OrderStatus] = mapped_column(
        enum_column_type(OrderStatus), default=OrderStatus.PENDING, index=True
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        enum_column_type(PaymentStatus), default=PaymentStatus.PENDING
    )
    subtotal: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    delivery_fee: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    total_amount: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    delivery_zone: Mapped[DeliveryZoneCode] = mapped_column(enum_column_type(DeliveryZoneCode))
    delivery_address: Mapped[str] = mapped_column(String(255))
    delivery_city: Mapped[str] = mapped_column(String(100))
    delivery_postal_code: Mapped[str] = mapped_column(String(20))
    delivery_time_slot: Mapped[str | None] = mapped_column(String(20), nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    validated_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    validated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    buyer = relationship("User", foreign_keys=[buyer_user_id])
    validator = relationship("User", foreign_keys=[validated_by])
    organization = relationship("Organization")
    items = relationship("OrderItem", cascade="all, delete-orphan", back_populates="order", order_by="OrderItem.id")
    tracking = relationship("DeliveryTracking", uselist=False, cascade="all, delete-orphan", back_populates="order")
