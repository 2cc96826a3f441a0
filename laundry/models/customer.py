"""Customer model."""
from sqlalchemy import Column, String, Text, Integer, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from laundry.database import Base, IdType


class Customer(Base):
    """Laundry customer. Orders keep their own name/phone snapshot."""

    __tablename__ = 'customers'

    id = Column(IdType, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default='active')
    loyalty_tier = Column(String(20), nullable=False, default='bronze')
    total_orders = Column(Integer, nullable=False, default=0)
    total_spent = Column(Numeric(12, 2), nullable=False, default=0)
    last_order_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    orders = relationship('Order', back_populates='customer')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
        }

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}')>"
