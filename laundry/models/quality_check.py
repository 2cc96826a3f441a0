"""Quality check model."""
import enum
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from laundry.database import Base, IdType


class CheckType(str, enum.Enum):
    PRE_WASH = 'pre-wash'
    POST_WASH = 'post-wash'
    PRE_DRY = 'pre-dry'
    POST_DRY = 'post-dry'
    FINAL = 'final'


class CheckStatus(str, enum.Enum):
    PENDING = 'pending'
    PASSED = 'passed'
    FAILED = 'failed'
    REVIEW = 'review'


class QualityCheck(Base):
    """
    Quality inspection logged against an order.

    Order number and customer name are copied in, so the log stays readable
    after the order is deleted.
    """

    __tablename__ = 'quality_checks'

    id = Column(IdType, primary_key=True, autoincrement=True)
    order_id = Column(IdType, ForeignKey('orders.id', ondelete='SET NULL'), nullable=True, index=True)
    order_number = Column(String(32), nullable=False)
    customer_name = Column(String(200), nullable=False)
    check_type = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default=CheckStatus.PENDING.value)
    score = Column(Integer, nullable=False, default=0)
    issues = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    inspector = Column(String(200), nullable=True)
    checked_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    order = relationship('Order')

    def to_dict(self):
        return {
            'id': self.id,
            'order_id': self.order_id,
            'order_number': self.order_number,
            'customer_name': self.customer_name,
            'check_type': self.check_type,
            'status': self.status,
            'score': self.score,
            'issues': self.issues or [],
            'notes': self.notes,
            'inspector': self.inspector,
            'checked_at': self.checked_at.isoformat() if self.checked_at else None,
        }

    def __repr__(self):
        return f"<QualityCheck(id={self.id}, order='{self.order_number}', type='{self.check_type}', score={self.score})>"
