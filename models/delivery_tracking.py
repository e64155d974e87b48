import enum
from datetime import datetime
from sqlalchemy import String, DateTime, ForeignKey, Float, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base, enum_column_type


class TrackingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"


# Display labels, in delivery order
TRACKING_LABELS: dict[TrackingStatus, str] = {
    TrackingStatus.PENDING: "En attente",
    TrackingStatus.CONFIRMED: "Confirmé",
    TrackingStatus.PREPARING: "En préparation",
    TrackingStatus.OUT_FOR_DELIVERY: "En livraison",
    TrackingStatus.DELIVERED: "Livré",
}


class DeliveryTracking(Base):
    __tablename__ = "delivery_tracking"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), unique=True, index=True)
    status: Mapped[TrackingStatus] = mapped_column(
        enum_column_type(TrackingStatus), default=TrackingStatus.PENDING, index=True
    )
    carrier: Mapped[str] = mapped_column(String(50))
    tracking_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    driver_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    current_location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    gps_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    gps_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    estimated_delivery: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    order = relationship("Order", back_populates="tracking")
    driver = relationship("User")

    @property
    def status_label(self) -> str:
        return TRACKING_LABELS[TrackingStatus(self.status)]
