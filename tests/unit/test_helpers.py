"""
Unit tests for small service helpers that need no database.
"""

from decimal import Decimal

from laundry.models import LineItem
from laundry.services.customer_service import placeholder_email
from laundry.services.order_item_service import build_item_map
from laundry.services.order_service import generate_order_number, parse_datetime
from laundry.services.quality_check_service import calculate_checklist_score


def test_checklist_score():
    assert calculate_checklist_score({}) == 0
    assert calculate_checklist_score({'stain_removal': True, 'pressing': True}) == 33
    assert calculate_checklist_score({'stain_removal': True, 'unknown': True}) == 17


def test_placeholder_email():
    assert placeholder_email('Asha  Rao') == 'asharao@temp.com'


def test_order_number():
    assert generate_order_number(42) == 'ORD-000042'
    assert generate_order_number(7, 'LD') == 'LD-000007'


def test_parse_datetime():
    assert parse_datetime('2024-01-17').day == 17
    assert parse_datetime('2024-01-17T10:30').hour == 10
    assert parse_datetime('tomorrow') is None
    assert parse_datetime('') is None


def test_build_item_map_merges_and_keeps_orphans():
    lines = [
        LineItem(id=1, laundry_item_id=5, item_name='Shirt', quantity=2, price_per_item=Decimal('20')),
        LineItem(id=2, laundry_item_id=5, item_name='Shirt', quantity=1, price_per_item=Decimal('20')),
        LineItem(id=3, laundry_item_id=None, item_name='Old Coat', quantity=1, price_per_item=Decimal('90')),
    ]

    items = build_item_map(lines)

    assert items['5']['quantity'] == 3
    assert items['line-3']['name'] == 'Old Coat'
    assert items['line-3']['price'] == Decimal('90')
