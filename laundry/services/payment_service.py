"""Payment state of orders, tracked per line item."""
import logging
from decimal import Decimal
from typing import Dict, Any, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from laundry.models import Order, LineItem, PricingType
from laundry.exceptions import NotFoundError, PersistenceError
from laundry.utils.number_format import money

logger = logging.getLogger(__name__)


def summarize_payments(line_items: Iterable[LineItem], pricing_type: str = PricingType.ITEM.value) -> Dict[str, Any]:
    """
    Derive an order's payment state from its line items.

    Kg orders are paid at order level, never itemized: they report no
    pending payments and an empty breakdown.

    Returns:
        dict with paid_count, total_count, paid_amount, pending_amount,
        has_pending_payments
    """
    summary = {
        'paid_count': 0,
        'total_count': 0,
        'paid_amount': money(0),
        'pending_amount': money(0),
        'has_pending_payments': False,
    }
    if pricing_type == PricingType.KG.value:
        return summary

    paid_amount = Decimal('0')
    pending_amount = Decimal('0')
    for line in line_items:
        summary['total_count'] += 1
        if line.payment_pending:
            pending_amount += line.total_price or 0
        else:
            summary['paid_count'] += 1
            paid_amount += line.total_price or 0

    summary['paid_amount'] = money(paid_amount)
    summary['pending_amount'] = money(pending_amount)
    summary['has_pending_payments'] = (
        summary['total_count'] > 0 and summary['paid_count'] < summary['total_count']
    )
    return summary


def get_order_payment_summary(session: Session, order_id: int) -> Dict[str, Any]:
    order = session.get(Order, order_id)
    if not order:
        raise NotFoundError(f'Order {order_id} not found.')
    return summarize_payments(order.line_items, order.pricing_type)


def set_item_payment(session: Session, item_id: int, payment_pending: bool) -> LineItem:
    """
    Set one line item's payment flag. Idempotent.

    Does not touch the parent order's status or amount.
    """
    line = session.get(LineItem, item_id)
    if not line:
        raise NotFoundError(f'Order item {item_id} not found.')

    payment_pending = bool(payment_pending)
    if line.payment_pending == payment_pending:
        return line

    try:
        line.payment_pending = payment_pending
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error updating payment for order item {item_id}: {e}")
        raise PersistenceError('Failed to update payment status', original=e)

    logger.info(
        f"Order item {item_id} (order {line.order_id}) marked as "
        f"{'pending' if payment_pending else 'paid'}"
    )
    return line


def mark_all_paid(session: Session, order_id: int) -> int:
    """Mark every pending line of the order as paid. Returns how many changed."""
    return _set_all_payments(session, order_id, payment_pending=False)


def mark_all_pending(session: Session, order_id: int) -> int:
    """Mirror of mark_all_paid."""
    return _set_all_payments(session, order_id, payment_pending=True)


def _set_all_payments(session: Session, order_id: int, payment_pending: bool) -> int:
    """Flip every line in the opposite state, all in one transaction."""
    order = session.get(Order, order_id)
    if not order:
        raise NotFoundError(f'Order {order_id} not found.')

    if order.pricing_type == PricingType.KG.value:
        return 0

    try:
        lines = session.query(LineItem).filter(
            LineItem.order_id == order_id,
            LineItem.payment_pending == (not payment_pending)
        ).all()

        for line in lines:
            line.payment_pending = payment_pending

        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error on bulk payment update for order {order_id}: {e}")
        raise PersistenceError('Failed to update payment status', original=e)

    logger.info(
        f"Order {order_id}: {len(lines)} items marked as "
        f"{'pending' if payment_pending else 'paid'}"
    )
    return len(lines)
