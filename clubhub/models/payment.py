from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Numeric, Index
from datetime import datetime

from clubhub.core.database import Base
from clubhub.core.types import GUID, generate_uuid


class Payment(Base):
    """Membership payment - append-only, one row per transaction"""
    __tablename__ = "payments"

    __table_args__ = (
        Index('ix_payments_user', 'user_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    # Member's level when the payment was made
    level = Column(Integer, nullable=False, default=1)
    payment_method = Column(String(50), nullable=False)
    payment_type = Column(String(50), nullable=True)
    reference_number = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="completed")
    paid_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Payment {self.reference_number} {self.amount} ({self.status})>"
