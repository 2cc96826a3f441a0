"""Pricing catalog models: per-item prices and per-kg service rates."""
from sqlalchemy import Column, String, Text, Numeric, DateTime, Boolean
from sqlalchemy.sql import func
from laundry.database import Base, IdType


class LaundryItem(Base):
    """Catalog item priced per piece (shirt, pants, bedsheet...)."""

    __tablename__ = 'laundry_items'

    id = Column(IdType, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    price_per_item = Column(Numeric(10, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'unit_price': str(self.price_per_item),
        }

    def __repr__(self):
        return f"<LaundryItem(id={self.id}, name='{self.name}', price={self.price_per_item})>"


class ServiceType(Base):
    """Weight-based service (wash & fold, dry clean...) priced per kilogram."""

    __tablename__ = 'service_types'

    id = Column(IdType, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price_per_kg = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'price_per_kg': str(self.price_per_kg),
        }

    def __repr__(self):
        return f"<ServiceType(id={self.id}, name='{self.name}', price_per_kg={self.price_per_kg})>"
