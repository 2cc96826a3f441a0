"""
Order workflow: create, update, status change, delete and listing.

Every mutation is validated in full before the first write and committed
once, so an order update and its line item replacement are one unit:
either both land or neither does.
"""
import logging
import math
from datetime import datetime, date
from decimal import Decimal
from typing import Dict, Any, Optional

from sqlalchemy import or_, exists, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from laundry.models import (
    Order, LineItem, Customer, LaundryItem,
    OrderStatus, OrderPriority, PricingType, DiscountType
)
from laundry.exceptions import ValidationError, NotFoundError, ConfirmationRequiredError, PersistenceError
from laundry.services.pricing_service import (
    calculate_pricing, switch_pricing_type, build_items_summary, normalize_weight_items, normalize_tags
)
from laundry.services.order_item_service import replace_order_items, delete_order_items, build_item_map
from laundry.services.catalog_service import get_service_type
from laundry.utils.number_format import to_decimal, to_int, to_id, money

logger = logging.getLogger(__name__)

ORDER_NUMBER_PREFIX = 'ORD'
DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 100

PAYMENT_FILTERS = ('paid', 'pending')

# Column limits: amounts are Numeric(12, 2), prices and weights Numeric(10, 2)
MAX_AMOUNT = Decimal('9999999999.99')
MAX_UNIT_VALUE = Decimal('99999999.99')
MAX_QUANTITY = 10000


def generate_order_number(order_id: int, prefix: str = ORDER_NUMBER_PREFIX) -> str:
    """Human-facing number derived from the sequential id: 42 -> 'ORD-000042'."""
    return f"{prefix}-{order_id:06d}"


def parse_datetime(value) -> Optional[datetime]:
    """Accept datetime, date or ISO string ('2024-01-17', '2024-01-17T10:30'). None if unparsable."""
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value).strip().replace('Z', '+00:00'))
    except ValueError:
        return None


def _enum_value(enum_cls, value, default, field):
    if value in (None, ''):
        return default.value
    try:
        return enum_cls(value).value
    except ValueError:
        allowed = ', '.join(member.value for member in enum_cls)
        raise ValidationError(f'Invalid {field} "{value}". Allowed: {allowed}.', field=field)


def _bounded(value: Decimal, limit: Decimal, field: str, label: str) -> Decimal:
    if value > limit:
        raise ValidationError(f'{label} is too large.', field=field)
    return value


def _clamp_discount(discount, discount_type: str) -> Decimal:
    """Input-surface clamping: never negative, percentages capped at 100."""
    discount = max(Decimal('0'), to_decimal(discount))
    if discount_type == DiscountType.PERCENTAGE.value:
        discount = min(discount, Decimal('100'))
    return _bounded(discount, MAX_AMOUNT, 'discount', 'Discount')


def _resolve_item_snapshots(
    session: Session,
    items: Dict[str, Dict[str, Any]],
    stored_item_ids=frozenset()
) -> Dict[str, Dict[str, Any]]:
    """
    Validate the item map and fill missing name/price snapshots from the catalog.

    Prices already present in the map are kept as they are: they were
    captured when the item was added and later catalog changes must not
    reprice the order. Inactive catalog items can only stay on an order that
    already has them (``stored_item_ids``), never be newly selected.
    Entries with a quantity below 1 are dropped.
    """
    for entry in items.values():
        if not isinstance(entry, dict):
            raise ValidationError('Each item needs name, quantity and price.', field='items_detail')

    catalog_ids = [to_id(key) for key in items if str(key).isdigit() and to_id(key)]
    catalog = {}
    if catalog_ids:
        catalog = {
            item.id: item
            for item in session.query(LaundryItem).filter(LaundryItem.id.in_(catalog_ids)).all()
        }

    resolved = {}
    for key, entry in items.items():
        key = str(key)
        catalog_item = catalog.get(int(key)) if key.isdigit() else None
        if key.isdigit() and catalog_item is None:
            raise ValidationError(f'Laundry item {key} not found.', field='items_detail')
        if catalog_item is not None and not catalog_item.is_active and catalog_item.id not in stored_item_ids:
            raise ValidationError(f'{catalog_item.name} is no longer offered.', field='items_detail')

        quantity = to_int(entry.get('quantity'))
        if quantity < 1:
            continue
        if quantity > MAX_QUANTITY:
            raise ValidationError(f'Quantity cannot exceed {MAX_QUANTITY}.', field='items_detail')

        price = to_decimal(entry.get('price'), default=None)
        if price is None and catalog_item is not None:
            price = catalog_item.price_per_item
        price = to_decimal(price)
        if price < 0:
            raise ValidationError('Item prices cannot be negative.', field='items_detail')
        _bounded(price, MAX_UNIT_VALUE, 'items_detail', 'Item price')

        resolved[key] = {
            'name': str(entry.get('name') or (catalog_item.name if catalog_item else '')).strip(),
            'quantity': quantity,
            'price': money(price),
            'notes': str(entry.get('notes') or ''),
            'tags': normalize_tags(entry.get('tags')),
        }
    return resolved


def _resolve_service_type(session: Session, service_type_id, stored_service_type_id=None):
    """Selected service type, or None. Inactive services are only kept on orders that already use them."""
    service = get_service_type(session, service_type_id)
    if service is not None and not service.is_active and service.id != stored_service_type_id:
        raise ValidationError(f'{service.name} is no longer offered.', field='service_type_id')
    return service


def build_order_snapshot(
    session: Session,
    data: Dict[str, Any],
    stored_item_ids=frozenset(),
    stored_service_type_id=None
) -> Dict[str, Any]:
    """
    Normalize raw order input and compute its pricing. Reads only.

    ``items_detail`` is the item map in item mode and a list of
    ``{name, notes, tags}`` descriptors in kg mode. The ``stored_*``
    arguments name the catalog selection the order already has, which stays
    valid even if it was deactivated since.
    """
    pricing_type = _enum_value(PricingType, data.get('pricing_type'), PricingType.ITEM, 'pricing_type')
    discount_type = _enum_value(DiscountType, data.get('discount_type'), DiscountType.PERCENTAGE, 'discount_type')

    snapshot = {
        'customer_id': data.get('customer_id') or None,
        'customer_name': str(data.get('customer_name') or '').strip(),
        'customer_phone': str(data.get('customer_phone') or '').strip() or None,
        'pricing_type': pricing_type,
        'priority': _enum_value(OrderPriority, data.get('priority'), OrderPriority.NORMAL, 'priority'),
        'due_date': parse_datetime(data.get('due_date')),
        'date_received': parse_datetime(data.get('date_received')),
        'quality_score': to_int(data.get('quality_score')),
        'discount_type': discount_type,
        'items_map': {},
        'items_detail': None,
        'service_type': None,
        'service_type_id': None,
        'total_weight': None,
    }

    if snapshot['customer_id'] is not None:
        customer_id = to_id(snapshot['customer_id'])
        customer = session.get(Customer, customer_id) if customer_id else None
        if customer is None:
            raise ValidationError(f"Customer {snapshot['customer_id']} not found.", field='customer_id')
        snapshot['customer_id'] = customer.id

    if pricing_type == PricingType.ITEM.value:
        items_detail = data.get('items_detail') or {}
        if not isinstance(items_detail, dict):
            raise ValidationError('Item-priced orders need an item map.', field='items_detail')
        snapshot['items_map'] = _resolve_item_snapshots(session, items_detail, stored_item_ids)
    else:
        items_detail = data.get('items_detail') or []
        if isinstance(items_detail, dict):
            items_detail = list(items_detail.values())
        if not isinstance(items_detail, list) or not all(isinstance(entry, dict) for entry in items_detail):
            raise ValidationError('Items must be a list of {name, notes, tags}.', field='items_detail')
        snapshot['items_detail'] = normalize_weight_items(items_detail)
        snapshot['service_type'] = _resolve_service_type(session, data.get('service_type_id'), stored_service_type_id)
        snapshot['service_type_id'] = snapshot['service_type'].id if snapshot['service_type'] else None
        snapshot['total_weight'] = _bounded(
            max(Decimal('0'), to_decimal(data.get('total_weight'))),
            MAX_UNIT_VALUE, 'total_weight', 'Weight'
        )

    manual_amount = to_decimal(data.get('manual_amount'), default=None)
    if manual_amount is not None:
        _bounded(abs(manual_amount), MAX_AMOUNT, 'amount', 'Amount')

    discount = _clamp_discount(data.get('discount'), discount_type)
    pricing = calculate_pricing(
        pricing_type,
        items=snapshot['items_map'],
        weight=snapshot['total_weight'],
        price_per_kg=snapshot['service_type'].price_per_kg if snapshot['service_type'] else None,
        discount=discount,
        discount_type=discount_type,
        manual_amount=manual_amount
    )
    snapshot.update(pricing)
    snapshot['items'] = build_items_summary(pricing_type, snapshot['items_map'], snapshot['total_weight'])
    return snapshot


def validate_order_data(snapshot: Dict[str, Any]) -> None:
    """
    Preconditions shared by create and update. Raises ValidationError.

    - customer name present, due date valid
    - item mode: at least one item with quantity >= 1
    - kg mode: service type selected and weight > 0
    - final amount > 0, totals within the stored column range
    """
    if not snapshot.get('customer_name'):
        raise ValidationError('Customer name is required.', field='customer_name')

    if snapshot.get('due_date') is None:
        raise ValidationError('A valid due date is required.', field='due_date')

    if snapshot['pricing_type'] == PricingType.ITEM.value:
        items = snapshot.get('items_map') or {}
        if not any(to_int(entry.get('quantity')) >= 1 for entry in items.values()):
            raise ValidationError('Please add at least one item.', field='items_detail')
    else:
        if not snapshot.get('service_type_id'):
            raise ValidationError('Please select a service type.', field='service_type_id')
        if to_decimal(snapshot.get('total_weight')) <= 0:
            raise ValidationError('Please enter the total weight.', field='total_weight')

    if to_decimal(snapshot.get('amount')) <= 0:
        raise ValidationError('Order amount must be greater than 0.', field='amount')
    _bounded(to_decimal(snapshot.get('subtotal')), MAX_AMOUNT, 'amount', 'Order total')


def _apply_snapshot(order: Order, snapshot: Dict[str, Any]) -> None:
    order.customer_id = snapshot['customer_id']
    order.customer_name = snapshot['customer_name']
    order.customer_phone = snapshot['customer_phone']
    order.pricing_type = snapshot['pricing_type']
    order.items = snapshot['items']
    order.items_detail = snapshot['items_detail']
    order.service_type_id = snapshot['service_type_id']
    order.total_weight = snapshot['total_weight']
    order.subtotal = snapshot['subtotal']
    order.discount = snapshot['discount']
    order.discount_type = snapshot['discount_type']
    order.amount = snapshot['amount']
    order.amount_is_manual = snapshot['amount_is_manual']
    order.priority = snapshot['priority']
    order.due_date = snapshot['due_date']
    order.quality_score = min(100, max(0, snapshot['quality_score']))


def get_order(session: Session, order_id: int) -> Order:
    order = session.get(Order, order_id)
    if not order:
        raise NotFoundError(f'Order {order_id} not found.')
    return order


def order_form_data(order: Order) -> Dict[str, Any]:
    """Editable snapshot of a stored order, in the shape create/update accept."""
    if order.is_item_priced:
        items_detail = build_item_map(order.line_items)
    else:
        items_detail = list(order.items_detail or [])

    return {
        'customer_id': order.customer_id,
        'customer_name': order.customer_name,
        'customer_phone': order.customer_phone,
        'pricing_type': order.pricing_type,
        'items_detail': items_detail,
        'service_type_id': order.service_type_id,
        'total_weight': order.total_weight,
        'discount': order.discount,
        'discount_type': order.discount_type,
        'manual_amount': order.amount if order.amount_is_manual else None,
        'priority': order.priority,
        'due_date': order.due_date,
        'date_received': order.date_received,
        'quality_score': order.quality_score,
    }


def create_order(session: Session, data: Dict[str, Any], number_prefix: str = ORDER_NUMBER_PREFIX) -> Order:
    """
    Create an order (status ``received``) and, in item mode, its line items.

    Raises:
        ValidationError: a precondition failed; nothing was written
        PersistenceError: the database rejected the write; rolled back
    """
    snapshot = build_order_snapshot(session, data)
    validate_order_data(snapshot)

    try:
        order = Order(
            status=OrderStatus.RECEIVED.value,
            date_received=snapshot['date_received'] or datetime.now()
        )
        _apply_snapshot(order, snapshot)
        session.add(order)
        session.flush()

        order.order_number = generate_order_number(order.id, number_prefix)

        if order.is_item_priced:
            replace_order_items(session, order.id, snapshot['items_map'])

        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error creating order for '{snapshot['customer_name']}': {e}")
        raise PersistenceError('Failed to create order', original=e)

    logger.info(f"Order {order.order_number} created ({order.pricing_type}, amount={order.amount})")
    return order


def update_order(session: Session, order_id: int, data: Dict[str, Any]) -> Order:
    """
    Update an order from a full or partial edited snapshot.

    Missing keys keep their stored values. Switching pricing mode resets
    every pricing input of the old mode first. Item-mode saves replace all
    line items (payment flags come back as pending); switching to kg mode
    removes them.
    """
    order = get_order(session, order_id)

    base = order_form_data(order)
    new_pricing_type = data.get('pricing_type') or base['pricing_type']
    if new_pricing_type != base['pricing_type']:
        base = switch_pricing_type(base, new_pricing_type)

    stored_item_ids = frozenset(
        line.laundry_item_id for line in order.line_items if line.laundry_item_id is not None
    )
    snapshot = build_order_snapshot(
        session,
        {**base, **data},
        stored_item_ids=stored_item_ids,
        stored_service_type_id=order.service_type_id
    )
    validate_order_data(snapshot)

    was_item_priced = order.is_item_priced

    try:
        _apply_snapshot(order, snapshot)
        if snapshot['date_received'] is not None:
            order.date_received = snapshot['date_received']
        session.flush()

        if order.is_item_priced:
            replace_order_items(session, order.id, snapshot['items_map'])
        elif was_item_priced:
            delete_order_items(session, order.id)

        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error updating order {order_id}: {e}")
        raise PersistenceError('Failed to update order', original=e)

    logger.info(f"Order {order.order_number} updated (amount={order.amount})")
    return order


def change_status(session: Session, order_id: int, status: str) -> Order:
    """
    Set the order status. Any status may follow any other.

    ``completed`` stamps completed_date with the current time; every other
    status clears it.
    """
    if not status:
        raise ValidationError('Status is required.', field='status')
    status = _enum_value(OrderStatus, status, OrderStatus.RECEIVED, 'status')

    order = get_order(session, order_id)
    previous = order.status

    try:
        order.status = status
        order.completed_date = datetime.now() if status == OrderStatus.COMPLETED.value else None
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error changing status of order {order_id}: {e}")
        raise PersistenceError('Failed to update order status', original=e)

    logger.info(f"Order {order.order_number}: status {previous} -> {status}")
    return order


def delete_order(session: Session, order_id: int, confirm: bool = False) -> None:
    """Delete an order and its line items. Irreversible, so ``confirm=True`` is required."""
    if not confirm:
        raise ConfirmationRequiredError('Deleting an order is irreversible; confirm to proceed.')

    order = get_order(session, order_id)
    order_number = order.order_number

    try:
        session.delete(order)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error deleting order {order_id}: {e}")
        raise PersistenceError('Failed to delete order', original=e)

    logger.info(f"Order {order_number} deleted")


def list_orders(
    session: Session,
    page: int = 1,
    per_page: int = DEFAULT_PER_PAGE,
    search: str = None,
    status: str = None,
    payment_status: str = None
) -> Dict[str, Any]:
    """
    Paginated order list, most recent first.

    Args:
        search: matches customer name or order number (case-insensitive)
        status: one of OrderStatus values; 'all' or empty disables the filter
        payment_status: 'pending' (some item line unpaid) or 'paid'

    Returns:
        dict with orders, total, page, per_page, pages
    """
    page = max(1, to_int(page, 1))
    per_page = min(MAX_PER_PAGE, max(1, to_int(per_page, DEFAULT_PER_PAGE)))

    query = session.query(Order)

    search = (search or '').strip()
    if search:
        pattern = f'%{search}%'
        query = query.filter(
            or_(
                Order.customer_name.ilike(pattern),
                Order.order_number.ilike(pattern)
            )
        )

    if status and status != 'all':
        query = query.filter(Order.status == _enum_value(OrderStatus, status, OrderStatus.RECEIVED, 'status'))

    if payment_status and payment_status != 'all':
        if payment_status not in PAYMENT_FILTERS:
            raise ValidationError(f'Invalid payment status "{payment_status}".', field='payment_status')

        has_pending = and_(
            Order.pricing_type == PricingType.ITEM.value,
            exists().where(and_(
                LineItem.order_id == Order.id,
                LineItem.payment_pending == True  # noqa: E712
            ))
        )
        query = query.filter(has_pending if payment_status == 'pending' else ~has_pending)

    total = query.count()
    orders = query.order_by(
        Order.created_at.desc(), Order.id.desc()
    ).offset((page - 1) * per_page).limit(per_page).all()

    return {
        'orders': orders,
        'total': total,
        'page': page,
        'per_page': per_page,
        'pages': math.ceil(total / per_page) if total else 0,
    }
