"""
Line item synchronization for item-priced orders.

Strategy is replace-all: every save deletes the order's line items and
re-inserts one row per entry of the item map. Consequence worth knowing:
a line that was marked paid comes back as pending after any save that
goes through here, even if its quantity and price did not change.
"""
import logging
from typing import Dict, Any, List

from sqlalchemy.orm import Session

from laundry.models import Order, LineItem
from laundry.utils.number_format import to_decimal, to_int, money

logger = logging.getLogger(__name__)


def replace_order_items(session: Session, order_id: int, items: Dict[str, Dict[str, Any]]) -> List[LineItem]:
    """
    Make the persisted line items of ``order_id`` match ``items`` exactly.

    Runs inside the caller's transaction: flushes, never commits, so the
    order update and the line replacement land (or fail) together.

    Args:
        session: SQLAlchemy session
        order_id: Order whose lines are replaced
        items: Item map ``{catalog_item_id: {name, quantity, price, notes, tags}}``

    Returns:
        The newly inserted LineItem rows (all with payment_pending=True)
    """
    deleted = delete_order_items(session, order_id)

    new_lines = []
    for item_id, entry in (items or {}).items():
        quantity = to_int(entry.get('quantity'))
        if quantity < 1:
            continue
        price = money(entry.get('price'))

        line = LineItem(
            order_id=order_id,
            laundry_item_id=_catalog_id(item_id),
            item_name=entry.get('name') or '',
            quantity=quantity,
            price_per_item=price,
            total_price=money(price * quantity),
            payment_pending=True,
            notes=(entry.get('notes') or '').strip() or None,
            tags=list(entry.get('tags') or []) or None
        )
        session.add(line)
        new_lines.append(line)

    session.flush()
    logger.info(f"Order {order_id}: replaced {deleted} line items with {len(new_lines)}")
    return new_lines


def delete_order_items(session: Session, order_id: int) -> int:
    """Remove every line item of the order (no commit). Returns the number deleted."""
    deleted = session.query(LineItem).filter(
        LineItem.order_id == order_id
    ).delete(synchronize_session='fetch')

    # Deleted rows left the identity map; drop the stale collection too
    order = session.get(Order, order_id)
    if order is not None:
        session.expire(order, ['line_items'])
    return deleted


def list_order_items(session: Session, order_id: int) -> List[LineItem]:
    """Line items of an order in insertion order."""
    return session.query(LineItem).filter(
        LineItem.order_id == order_id
    ).order_by(LineItem.created_at.asc(), LineItem.id.asc()).all()


def build_item_map(line_items: List[LineItem]) -> Dict[str, Dict[str, Any]]:
    """
    Rebuild the editable item map from stored lines.

    Lines whose catalog item is gone are keyed by their own id so they are
    still editable. Two lines from the same catalog item are merged.
    """
    items = {}
    for line in line_items:
        key = str(line.laundry_item_id) if line.laundry_item_id is not None else f'line-{line.id}'
        if key in items:
            items[key]['quantity'] += line.quantity
            continue
        items[key] = {
            'name': line.item_name,
            'quantity': line.quantity,
            'price': to_decimal(line.price_per_item),
            'notes': line.notes or '',
            'tags': list(line.tags or []),
        }
    return items


def _catalog_id(item_id):
    """Map keys are catalog ids as strings; anything else has no catalog link."""
    key = str(item_id)
    return int(key) if key.isdigit() else None
