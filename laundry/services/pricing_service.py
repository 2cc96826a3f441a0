"""
Pricing calculator for laundry orders.

Pure functions, no database access. Two pricing bases:
- item: sum of quantity x unit price over the item map
- kg: total weight x service rate per kilogram

The item map has the same shape as the order form keeps it::

    {'<catalog_item_id>': {'name': 'Shirt', 'quantity': 3, 'price': Decimal('20'),
                           'notes': '', 'tags': []}}

Functions that change the map return a new dict and leave the input alone.
"""
from decimal import Decimal
from typing import Dict, Any, Optional, List

from laundry.models import PricingType, DiscountType
from laundry.utils.number_format import to_decimal, to_int, money
from laundry.utils.formatters import weight_kg

ZERO = Decimal('0')


def _entry_price(entry: Dict[str, Any]) -> Decimal:
    return to_decimal(entry.get('price'))


def add_item(items: Dict[str, Dict[str, Any]], item_id, name: str, price, quantity: int = 1) -> Dict[str, Dict[str, Any]]:
    """
    Add a catalog item to the map.

    An item already in the map gets its quantity incremented (notes and
    tags kept). The price snapshot is refreshed from the catalog value passed in.
    Non-positive quantities are ignored.
    """
    quantity = to_int(quantity)
    new_items = dict(items or {})
    if quantity <= 0:
        return new_items

    key = str(item_id)
    existing = new_items.get(key, {})
    new_items[key] = {
        'name': name,
        'quantity': to_int(existing.get('quantity')) + quantity,
        'price': to_decimal(price),
        'notes': existing.get('notes', ''),
        'tags': normalize_tags(existing.get('tags')),
    }
    return new_items


def set_item_quantity(items: Dict[str, Dict[str, Any]], item_id, quantity) -> Dict[str, Dict[str, Any]]:
    """Set an entry's quantity; zero or negative removes the entry."""
    quantity = to_int(quantity)
    key = str(item_id)
    if quantity <= 0:
        return remove_item(items, key)

    new_items = dict(items or {})
    if key in new_items:
        new_items[key] = {**new_items[key], 'quantity': quantity}
    return new_items


def remove_item(items: Dict[str, Dict[str, Any]], item_id) -> Dict[str, Dict[str, Any]]:
    new_items = dict(items or {})
    new_items.pop(str(item_id), None)
    return new_items


def calculate_item_subtotal(items: Optional[Dict[str, Dict[str, Any]]]) -> Decimal:
    """Sum of quantity x price over every entry of the item map."""
    subtotal = ZERO
    for entry in (items or {}).values():
        subtotal += to_int(entry.get('quantity')) * _entry_price(entry)
    return money(subtotal)


def calculate_kg_subtotal(weight, price_per_kg) -> Decimal:
    """Weight x rate. Zero when either the weight or the rate is missing."""
    weight = to_decimal(weight)
    rate = to_decimal(price_per_kg)
    if weight <= 0 or rate <= 0:
        return money(ZERO)
    return money(weight * rate)


def apply_discount(subtotal, discount, discount_type: str = DiscountType.PERCENTAGE.value) -> Decimal:
    """
    Final amount after discount.

    percentage: subtotal - subtotal * discount / 100. The 0..100 range is
    the caller's job.
    fixed: subtotal - discount, floored at 0.
    """
    subtotal = to_decimal(subtotal)
    discount = to_decimal(discount)

    if discount_type == DiscountType.FIXED.value:
        return money(max(ZERO, subtotal - discount))
    return money(subtotal - subtotal * discount / Decimal('100'))


def calculate_pricing(
    pricing_type: str,
    items: Optional[Dict[str, Dict[str, Any]]] = None,
    weight=None,
    price_per_kg=None,
    discount=0,
    discount_type: Optional[str] = None,
    manual_amount=None
) -> Dict[str, Any]:
    """
    Compute subtotal and final amount for either pricing mode.

    ``manual_amount`` is an explicit override typed by the user. It replaces
    the formula result and is flagged with ``amount_is_manual`` so the
    mismatch with subtotal/discount stays visible.
    """
    discount_type = discount_type or DiscountType.PERCENTAGE.value
    discount = to_decimal(discount)

    if pricing_type == PricingType.KG.value:
        subtotal = calculate_kg_subtotal(weight, price_per_kg)
    else:
        subtotal = calculate_item_subtotal(items)

    amount = apply_discount(subtotal, discount, discount_type)
    amount_is_manual = False

    override = to_decimal(manual_amount, default=None)
    if override is not None:
        amount = money(override)
        amount_is_manual = True

    return {
        'subtotal': subtotal,
        'discount': money(discount),
        'discount_type': discount_type,
        'amount': amount,
        'amount_is_manual': amount_is_manual,
    }


def switch_pricing_type(draft: Dict[str, Any], pricing_type: str) -> Dict[str, Any]:
    """
    Switch an in-progress order to the other pricing mode.

    Destructive: the two bases are mutually exclusive, so every pricing
    field and every mode-specific input is reset.
    """
    return {
        **draft,
        'pricing_type': pricing_type,
        'items': '',
        'items_detail': {} if pricing_type == PricingType.ITEM.value else [],
        'service_type_id': None,
        'total_weight': ZERO,
        'subtotal': ZERO,
        'amount': ZERO,
        'discount': ZERO,
        'manual_amount': None,
        'amount_is_manual': False,
    }


def build_items_summary(pricing_type: str, items: Optional[Dict[str, Dict[str, Any]]] = None, weight=None) -> str:
    """Human readable summary stored in ``orders.items``."""
    if pricing_type == PricingType.KG.value:
        return f"Weight-based service: {weight_kg(to_decimal(weight))}"
    return ', '.join(
        f"{entry.get('name')} ({to_int(entry.get('quantity'))})"
        for entry in (items or {}).values()
    )


def normalize_tags(tags) -> List[str]:
    """Unique non-empty tags in order. A value that is not a list means no tags."""
    if not isinstance(tags, (list, tuple)):
        return []
    cleaned = []
    for tag in tags:
        tag = str(tag).strip() if tag is not None else ''
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


def normalize_weight_items(entries: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """Clean kg-mode item descriptors to ``{name, notes, tags}``; unnamed and non-dict entries are dropped."""
    cleaned = []
    for entry in entries or []:
        if not isinstance(entry, dict):
            continue
        name = str(entry.get('name') or '').strip()
        if not name:
            continue
        cleaned.append({
            'name': name,
            'notes': str(entry.get('notes') or '').strip(),
            'tags': normalize_tags(entry.get('tags')),
        })
    return cleaned
