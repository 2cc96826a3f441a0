"""Models package - exports all SQLAlchemy models."""
# Reference data
from laundry.models.customer import Customer
from laundry.models.catalog import LaundryItem, ServiceType

# Orders
from laundry.models.order import Order, OrderStatus, OrderPriority, PricingType, DiscountType
from laundry.models.order_item import LineItem
from laundry.models.quality_check import QualityCheck, CheckType, CheckStatus

__all__ = [
    'Customer', 'LaundryItem', 'ServiceType',
    'Order', 'OrderStatus', 'OrderPriority', 'PricingType', 'DiscountType',
    'LineItem',
    'QualityCheck', 'CheckType', 'CheckStatus',
]
