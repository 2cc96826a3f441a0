"""
Unit tests for invoice rendering on unsaved orders.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from laundry.models import Order, LineItem
from laundry.services.invoice_service import _invoice_rows, _order_info_rows, generate_invoice_pdf


def _order(**kwargs):
    values = dict(
        order_number='ORD-000001',
        customer_name='Asha Rao',
        pricing_type='item',
        items='Shirt (2)',
        subtotal=Decimal('40.00'),
        amount=Decimal('40.00'),
        status='received',
        priority='normal',
        due_date=datetime.now() + timedelta(days=1),
    )
    values.update(kwargs)
    return Order(**values)


def _kg_order(**kwargs):
    return _order(
        pricing_type='kg',
        items='Weight-based service: 5kg',
        total_weight=Decimal('5'),
        subtotal=Decimal('200.00'),
        amount=Decimal('200.00'),
        **kwargs
    )


class TestOrderInfoRows:

    def test_quality_score_shown_when_set(self):
        rows = _order_info_rows(_order(quality_score=92))

        assert rows[-1][2:] == ['Quality Score:', '92%']

    def test_quality_score_hidden_when_zero(self):
        for score in (0, None):
            rows = _order_info_rows(_order(quality_score=score))

            assert rows[-1][2:] == ['', '']


class TestInvoiceRows:

    def test_kg_entries_include_tags_and_notes(self):
        order = _kg_order(items_detail=[
            {'name': 'Bedsheet', 'notes': 'starch', 'tags': ['delicate']},
            {'name': 'Towel', 'notes': '', 'tags': []},
        ])

        rows = _invoice_rows(order, 'Rs. ')

        assert rows[2][0] == '  - Bedsheet [delicate]: starch'
        assert rows[3][0] == '  - Towel'

    def test_line_notes_follow_item_name(self):
        order = _order(line_items=[
            LineItem(item_name='Shirt', quantity=2, price_per_item=Decimal('20.00'),
                     total_price=Decimal('40.00'), notes='no starch'),
            LineItem(item_name='Pants', quantity=1, price_per_item=Decimal('50.00'),
                     total_price=Decimal('50.00')),
        ])

        rows = _invoice_rows(order, 'Rs. ')

        assert rows[1][0] == 'Shirt: no starch'
        assert rows[2][0] == 'Pants'


class TestGenerateInvoicePdf:

    def test_renders_pdf(self):
        buffer = generate_invoice_pdf(_kg_order(quality_score=80, items_detail=[
            {'name': 'Bedsheet', 'notes': 'starch', 'tags': ['delicate']},
        ]), {'name': 'Fresh Folds'})

        assert buffer.read(4) == b'%PDF'
