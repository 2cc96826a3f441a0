"""LineItem model for item-priced orders."""
from sqlalchemy import Column, String, Text, Integer, Numeric, DateTime, Boolean, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from laundry.database import Base, IdType


class LineItem(Base):
    """
    Line item of an item-priced order.

    Stores a snapshot of the catalog name and price at the time the item was
    added, so later catalog changes never alter existing orders. Each line
    carries its own payment flag.
    """

    __tablename__ = 'order_items'

    id = Column(IdType, primary_key=True, autoincrement=True)
    order_id = Column(IdType, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    laundry_item_id = Column(IdType, ForeignKey('laundry_items.id', ondelete='SET NULL'), nullable=True)
    item_name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    price_per_item = Column(Numeric(10, 2), nullable=False, default=0)
    total_price = Column(Numeric(12, 2), nullable=False, default=0)
    payment_pending = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)
    tags = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    order = relationship('Order', back_populates='line_items')

    def to_dict(self):
        return {
            'id': self.id,
            'order_id': self.order_id,
            'laundry_item_id': self.laundry_item_id,
            'item_name': self.item_name,
            'quantity': self.quantity,
            'price_per_item': str(self.price_per_item),
            'total_price': str(self.total_price),
            'payment_pending': self.payment_pending,
            'notes': self.notes,
            'tags': self.tags or [],
        }

    def __repr__(self):
        return f"<LineItem(id={self.id}, order_id={self.order_id}, item='{self.item_name}', qty={self.quantity}, pending={self.payment_pending})>"
