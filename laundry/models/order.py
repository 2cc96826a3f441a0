"""Order model."""
import enum
from sqlalchemy import Column, String, Text, Integer, Numeric, DateTime, Boolean, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from laundry.database import Base, IdType


class OrderStatus(str, enum.Enum):
    """Order status. Any status may follow any other (no transition graph)."""
    RECEIVED = 'received'
    PROCESSING = 'processing'
    READY = 'ready'
    COMPLETED = 'completed'
    DELAYED = 'delayed'


class OrderPriority(str, enum.Enum):
    LOW = 'low'
    NORMAL = 'normal'
    URGENT = 'urgent'


class PricingType(str, enum.Enum):
    """Pricing basis: per discrete item or per kilogram of laundry."""
    ITEM = 'item'
    KG = 'kg'


class DiscountType(str, enum.Enum):
    PERCENTAGE = 'percentage'
    FIXED = 'fixed'


def _iso(value):
    return value.isoformat() if value else None


class Order(Base):
    """
    Order (one laundry job).

    Customer name and phone are snapshots taken when the order is saved, so
    they survive later edits to the customer record. In item mode the priced
    items live in ``line_items``; in kg mode ``items_detail`` keeps a plain
    list of ``{name, notes, tags}`` descriptors with no prices.
    """

    __tablename__ = 'orders'

    id = Column(IdType, primary_key=True, autoincrement=True)
    order_number = Column(String(32), nullable=True, unique=True, index=True)

    customer_id = Column(IdType, ForeignKey('customers.id', ondelete='SET NULL'), nullable=True)
    customer_name = Column(String(200), nullable=False)
    customer_phone = Column(String(50), nullable=True)

    pricing_type = Column(String(10), nullable=False, default=PricingType.ITEM.value)
    items = Column(Text, nullable=False, default='')
    items_detail = Column(JSON, nullable=True)
    service_type_id = Column(IdType, ForeignKey('service_types.id'), nullable=True)
    total_weight = Column(Numeric(10, 2), nullable=True)

    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    discount_type = Column(String(20), nullable=False, default=DiscountType.PERCENTAGE.value)
    amount = Column(Numeric(12, 2), nullable=False)
    amount_is_manual = Column(Boolean, nullable=False, default=False)

    status = Column(String(20), nullable=False, default=OrderStatus.RECEIVED.value, index=True)
    priority = Column(String(20), nullable=False, default=OrderPriority.NORMAL.value)
    quality_score = Column(Integer, nullable=False, default=0)
    date_received = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    due_date = Column(DateTime(timezone=True), nullable=False)
    completed_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    customer = relationship('Customer', back_populates='orders')
    service_type = relationship('ServiceType')
    line_items = relationship(
        'LineItem',
        back_populates='order',
        cascade='all, delete-orphan',
        passive_deletes=True,
        order_by='LineItem.id'
    )

    @property
    def is_item_priced(self):
        return self.pricing_type == PricingType.ITEM.value

    @property
    def payment_summary(self):
        """Aggregate payment state of the line items (computed, not stored)."""
        from laundry.services.payment_service import summarize_payments
        return summarize_payments(self.line_items, self.pricing_type)

    def to_dict(self, include_items=False):
        data = {
            'id': self.id,
            'order_number': self.order_number,
            'customer_id': self.customer_id,
            'customer_name': self.customer_name,
            'customer_phone': self.customer_phone,
            'pricing_type': self.pricing_type,
            'items': self.items,
            'items_detail': self.items_detail,
            'service_type_id': self.service_type_id,
            'total_weight': str(self.total_weight) if self.total_weight is not None else None,
            'subtotal': str(self.subtotal),
            'discount': str(self.discount),
            'discount_type': self.discount_type,
            'amount': str(self.amount),
            'amount_is_manual': self.amount_is_manual,
            'status': self.status,
            'priority': self.priority,
            'quality_score': self.quality_score,
            'date_received': _iso(self.date_received),
            'due_date': _iso(self.due_date),
            'completed_date': _iso(self.completed_date),
        }
        if include_items:
            data['line_items'] = [line.to_dict() for line in self.line_items]
            summary = self.payment_summary
            data['payment_summary'] = {
                key: str(value) if key.endswith('_amount') else value
                for key, value in summary.items()
            }
        return data

    def __repr__(self):
        return f"<Order(id={self.id}, number='{self.order_number}', status='{self.status}', amount={self.amount})>"
