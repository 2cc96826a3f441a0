"""
Integration tests for the order workflow services against the database.
"""

import pytest
from decimal import Decimal

from laundry.exceptions import ValidationError, NotFoundError, ConfirmationRequiredError
from laundry.models import Order, LineItem, LaundryItem, ServiceType
from laundry.services.order_service import (
    create_order,
    update_order,
    change_status,
    delete_order,
    list_orders,
    get_order,
)
from laundry.services.payment_service import (
    set_item_payment,
    mark_all_paid,
    mark_all_pending,
    get_order_payment_summary,
)


class TestCreateOrder:

    def test_item_order(self, session, item_order_data):
        order = create_order(session, item_order_data)

        assert order.order_number == f'ORD-{order.id:06d}'
        assert order.status == 'received'
        assert order.subtotal == Decimal('160.00')
        assert order.amount == Decimal('160.00')
        assert order.items == 'Shirt (3), Pants (2)'
        assert len(order.line_items) == 2
        assert all(line.payment_pending for line in order.line_items)
        assert sorted(line.total_price for line in order.line_items) == [Decimal('60.00'), Decimal('100.00')]

    def test_kg_order_has_no_line_items(self, session, kg_order_data):
        order = create_order(session, kg_order_data)

        assert order.subtotal == Decimal('200.00')
        assert order.amount == Decimal('200.00')
        assert order.items == 'Weight-based service: 5kg'
        assert order.items_detail == [{'name': 'Bedsheet', 'notes': 'starch', 'tags': ['delicate']}]
        assert order.line_items == []
        assert order.payment_summary['has_pending_payments'] is False

    def test_percentage_discount(self, session, item_order_data):
        item_order_data.update(discount='10', discount_type='percentage')

        order = create_order(session, item_order_data)

        assert order.subtotal == Decimal('160.00')
        assert order.amount == Decimal('144.00')

    def test_price_taken_from_catalog_when_missing(self, session, item_order_data, shirt):
        del item_order_data['items_detail'][str(shirt.id)]['price']

        order = create_order(session, item_order_data)

        assert order.subtotal == Decimal('160.00')

    def test_manual_amount(self, session, item_order_data):
        item_order_data['manual_amount'] = '150'

        order = create_order(session, item_order_data)

        assert order.amount == Decimal('150.00')
        assert order.amount_is_manual is True

    def test_order_numbers_are_sequential(self, session, item_order_data):
        first = create_order(session, item_order_data)
        second = create_order(session, item_order_data)

        assert second.id == first.id + 1
        assert second.order_number != first.order_number

    @pytest.mark.parametrize('field, value', [
        ('customer_name', ''),
        ('due_date', 'not-a-date'),
        ('items_detail', {}),
    ])
    def test_missing_required_input(self, session, item_order_data, field, value):
        item_order_data[field] = value

        with pytest.raises(ValidationError) as exc:
            create_order(session, item_order_data)

        assert exc.value.field == field
        assert session.query(Order).count() == 0
        assert session.query(LineItem).count() == 0

    def test_kg_order_without_weight(self, session, kg_order_data):
        kg_order_data['total_weight'] = '0'

        with pytest.raises(ValidationError) as exc:
            create_order(session, kg_order_data)

        assert exc.value.field == 'total_weight'

    def test_kg_order_without_service(self, session, kg_order_data):
        kg_order_data['service_type_id'] = ''

        with pytest.raises(ValidationError) as exc:
            create_order(session, kg_order_data)

        assert exc.value.field == 'service_type_id'

    def test_zero_amount_rejected(self, session, item_order_data):
        item_order_data.update(discount='100', discount_type='percentage')

        with pytest.raises(ValidationError) as exc:
            create_order(session, item_order_data)

        assert exc.value.field == 'amount'

    def test_unknown_catalog_item(self, session, item_order_data):
        item_order_data['items_detail']['9999'] = {'name': 'Ghost', 'quantity': 1, 'price': '10'}

        with pytest.raises(ValidationError):
            create_order(session, item_order_data)

    def test_unknown_customer(self, session, item_order_data):
        item_order_data['customer_id'] = 9999

        with pytest.raises(ValidationError) as exc:
            create_order(session, item_order_data)

        assert exc.value.field == 'customer_id'


class TestInputLimits:
    """Malformed or out-of-range numbers are rejected before anything is written."""

    def _assert_rejected(self, session, data, field):
        with pytest.raises(ValidationError) as exc:
            create_order(session, data)

        assert exc.value.field == field
        assert session.query(Order).count() == 0
        assert session.query(LineItem).count() == 0

    @pytest.mark.parametrize('weight', ['NaN', 'Infinity', '-inf'])
    def test_non_finite_weight_counts_as_missing(self, session, kg_order_data, weight):
        kg_order_data['total_weight'] = weight

        self._assert_rejected(session, kg_order_data, 'total_weight')

    def test_weight_too_large(self, session, kg_order_data):
        kg_order_data['total_weight'] = '1e30'

        self._assert_rejected(session, kg_order_data, 'total_weight')

    def test_non_finite_discount_is_ignored(self, session, item_order_data):
        item_order_data.update(discount='Infinity', discount_type='fixed')

        order = create_order(session, item_order_data)

        assert order.discount == Decimal('0')
        assert order.amount == Decimal('160.00')

    def test_discount_too_large(self, session, item_order_data):
        item_order_data.update(discount='1e30', discount_type='fixed')

        self._assert_rejected(session, item_order_data, 'discount')

    def test_manual_amount_too_large(self, session, item_order_data):
        item_order_data['manual_amount'] = '1e30'

        self._assert_rejected(session, item_order_data, 'amount')

    def test_quantity_too_large(self, session, item_order_data, shirt):
        item_order_data['items_detail'][str(shirt.id)]['quantity'] = '1e30'

        self._assert_rejected(session, item_order_data, 'items_detail')

    def test_item_price_too_large(self, session, item_order_data, shirt):
        item_order_data['items_detail'][str(shirt.id)]['price'] = '1e30'

        self._assert_rejected(session, item_order_data, 'items_detail')

    def test_order_total_too_large(self, session, item_order_data, shirt):
        item_order_data['items_detail'][str(shirt.id)].update(quantity=10000, price='99999999.99')

        self._assert_rejected(session, item_order_data, 'amount')

    def test_negative_price_rejected(self, session, item_order_data, shirt):
        item_order_data['items_detail'][str(shirt.id)]['price'] = '-20'

        self._assert_rejected(session, item_order_data, 'items_detail')

    def test_non_finite_price_falls_back_to_catalog(self, session, item_order_data, shirt):
        item_order_data['items_detail'][str(shirt.id)]['price'] = 'NaN'

        order = create_order(session, item_order_data)

        assert order.subtotal == Decimal('160.00')

    def test_item_entry_must_be_an_object(self, session, item_order_data, shirt):
        item_order_data['items_detail'][str(shirt.id)] = 3

        self._assert_rejected(session, item_order_data, 'items_detail')

    def test_weight_items_must_be_objects(self, session, kg_order_data):
        kg_order_data['items_detail'] = ['Bedsheet', 'Towel']

        self._assert_rejected(session, kg_order_data, 'items_detail')

    def test_scalar_tags_are_dropped(self, session, item_order_data, shirt):
        item_order_data['items_detail'][str(shirt.id)]['tags'] = 'starch'

        order = create_order(session, item_order_data)

        line = next(line for line in order.line_items if line.laundry_item_id == shirt.id)
        assert line.tags is None


class TestInactiveCatalog:
    """Deactivated items and services stay on orders that have them but cannot be picked anew."""

    def _deactivate(self, session, model, row_id):
        session.get(model, row_id).is_active = False
        session.commit()

    def test_inactive_item_rejected_on_create(self, session, item_order_data, pants):
        self._deactivate(session, LaundryItem, pants.id)

        with pytest.raises(ValidationError) as exc:
            create_order(session, item_order_data)

        assert exc.value.field == 'items_detail'
        assert session.query(Order).count() == 0

    def test_inactive_service_rejected_on_create(self, session, kg_order_data, wash_fold):
        self._deactivate(session, ServiceType, wash_fold.id)

        with pytest.raises(ValidationError) as exc:
            create_order(session, kg_order_data)

        assert exc.value.field == 'service_type_id'
        assert session.query(Order).count() == 0

    def test_stored_inactive_item_still_saves(self, session, item_order_data, pants):
        order = create_order(session, item_order_data)
        self._deactivate(session, LaundryItem, pants.id)

        update_order(session, order.id, {'priority': 'urgent'})

        order = get_order(session, order.id)
        assert order.priority == 'urgent'
        assert order.amount == Decimal('160.00')

    def test_newly_selected_inactive_item_rejected_on_update(self, session, item_order_data, shirt, pants):
        item_order_data['items_detail'] = {str(shirt.id): {'name': 'Shirt', 'quantity': 1, 'price': '20.00'}}
        order = create_order(session, item_order_data)
        self._deactivate(session, LaundryItem, pants.id)

        with pytest.raises(ValidationError) as exc:
            update_order(session, order.id, {'items_detail': {
                str(shirt.id): {'name': 'Shirt', 'quantity': 1, 'price': '20.00'},
                str(pants.id): {'name': 'Pants', 'quantity': 1, 'price': '50.00'},
            }})

        assert exc.value.field == 'items_detail'
        assert len(get_order(session, order.id).line_items) == 1

    def test_stored_inactive_service_still_saves(self, session, kg_order_data, wash_fold):
        order = create_order(session, kg_order_data)
        self._deactivate(session, ServiceType, wash_fold.id)

        update_order(session, order.id, {'total_weight': '6'})

        assert get_order(session, order.id).amount == Decimal('240.00')

    def test_newly_selected_inactive_service_rejected_on_update(self, session, kg_order_data):
        order = create_order(session, kg_order_data)
        dry_clean = ServiceType(name='Dry Clean', price_per_kg=Decimal('90.00'), is_active=False)
        session.add(dry_clean)
        session.commit()

        with pytest.raises(ValidationError) as exc:
            update_order(session, order.id, {'service_type_id': dry_clean.id})

        assert exc.value.field == 'service_type_id'
        assert get_order(session, order.id).amount == Decimal('200.00')


class TestUpdateOrder:

    def test_save_resets_payment_flags(self, session, item_order_data):
        order = create_order(session, item_order_data)
        mark_all_paid(session, order.id)

        update_order(session, order.id, {'priority': 'urgent'})

        lines = session.query(LineItem).filter(LineItem.order_id == order.id).all()
        assert len(lines) == 2
        assert all(line.payment_pending for line in lines)
        assert get_order(session, order.id).priority == 'urgent'

    def test_adding_an_item_replaces_all_lines(self, session, item_order_data, shirt, pants):
        item_order_data['items_detail'] = {str(shirt.id): {'name': 'Shirt', 'quantity': 2, 'price': '20.00'}}
        order = create_order(session, item_order_data)
        set_item_payment(session, order.line_items[0].id, payment_pending=False)

        update_order(session, order.id, {'items_detail': {
            str(shirt.id): {'name': 'Shirt', 'quantity': 2, 'price': '20.00'},
            str(pants.id): {'name': 'Pants', 'quantity': 1, 'price': '50.00'},
        }})

        lines = session.query(LineItem).filter(LineItem.order_id == order.id).all()
        assert len(lines) == 2
        assert all(line.payment_pending for line in lines)

    def test_line_items_match_item_map(self, session, item_order_data, shirt, pants):
        order = create_order(session, item_order_data)

        update_order(session, order.id, {
            'items_detail': {str(shirt.id): {'name': 'Shirt', 'quantity': 5, 'price': '20.00'}}
        })

        order = get_order(session, order.id)
        assert [(line.laundry_item_id, line.quantity) for line in order.line_items] == [(shirt.id, 5)]
        assert order.subtotal == Decimal('100.00')
        assert order.items == 'Shirt (5)'

    def test_catalog_price_change_does_not_reprice(self, session, item_order_data, shirt):
        order = create_order(session, item_order_data)
        session.get(LaundryItem, shirt.id).price_per_item = Decimal('99.00')
        session.commit()

        update_order(session, order.id, {'priority': 'low'})

        assert get_order(session, order.id).amount == Decimal('160.00')

    def test_switch_item_to_kg_removes_line_items(self, session, item_order_data, wash_fold):
        order = create_order(session, item_order_data)

        update_order(session, order.id, {
            'pricing_type': 'kg',
            'service_type_id': wash_fold.id,
            'total_weight': '3',
        })

        order = get_order(session, order.id)
        assert order.pricing_type == 'kg'
        assert order.amount == Decimal('120.00')
        assert order.line_items == []
        assert session.query(LineItem).count() == 0

    def test_switch_kg_to_item_starts_from_empty_map(self, session, kg_order_data, shirt):
        order = create_order(session, kg_order_data)

        with pytest.raises(ValidationError):
            update_order(session, order.id, {'pricing_type': 'item'})

        update_order(session, order.id, {
            'pricing_type': 'item',
            'items_detail': {str(shirt.id): {'name': 'Shirt', 'quantity': 2}},
        })

        order = get_order(session, order.id)
        assert order.service_type_id is None
        assert order.total_weight is None
        assert order.items_detail is None
        assert order.amount == Decimal('40.00')

    def test_failed_validation_leaves_order_untouched(self, session, item_order_data):
        order = create_order(session, item_order_data)
        line_ids = sorted(line.id for line in order.line_items)

        with pytest.raises(ValidationError):
            update_order(session, order.id, {'customer_name': '', 'priority': 'urgent'})

        session.expire_all()
        order = get_order(session, order.id)
        assert order.customer_name == 'Asha Rao'
        assert order.priority == 'normal'
        assert sorted(line.id for line in order.line_items) == line_ids

    def test_update_missing_order(self, session):
        with pytest.raises(NotFoundError):
            update_order(session, 424242, {'priority': 'low'})


class TestStatusAndDelete:

    def test_completed_stamps_date(self, session, item_order_data):
        order = create_order(session, item_order_data)

        order = change_status(session, order.id, 'completed')
        assert order.completed_date is not None

        order = change_status(session, order.id, 'processing')
        assert order.completed_date is None

    def test_any_status_may_follow_any_other(self, session, item_order_data):
        order = create_order(session, item_order_data)

        for status in ('completed', 'received', 'delayed', 'ready'):
            assert change_status(session, order.id, status).status == status

    def test_invalid_status(self, session, item_order_data):
        order = create_order(session, item_order_data)

        with pytest.raises(ValidationError):
            change_status(session, order.id, 'lost')
        with pytest.raises(ValidationError):
            change_status(session, order.id, '')

    def test_delete_requires_confirmation(self, session, item_order_data):
        order = create_order(session, item_order_data)

        with pytest.raises(ConfirmationRequiredError):
            delete_order(session, order.id)
        assert session.query(Order).count() == 1

        delete_order(session, order.id, confirm=True)
        assert session.query(Order).count() == 0
        assert session.query(LineItem).count() == 0


class TestPayments:

    def test_toggle_single_item(self, session, item_order_data):
        order = create_order(session, item_order_data)
        shirts = next(line for line in order.line_items if line.item_name == 'Shirt')

        set_item_payment(session, shirts.id, payment_pending=False)

        summary = get_order_payment_summary(session, order.id)
        assert summary['paid_count'] == 1
        assert summary['paid_amount'] == Decimal('60.00')
        assert summary['pending_amount'] == Decimal('100.00')
        assert summary['has_pending_payments'] is True

        order = get_order(session, order.id)
        assert order.status == 'received'
        assert order.amount == Decimal('160.00')

    def test_toggle_is_idempotent(self, session, item_order_data):
        order = create_order(session, item_order_data)
        line_id = order.line_items[0].id

        set_item_payment(session, line_id, False)
        set_item_payment(session, line_id, False)

        assert get_order_payment_summary(session, order.id)['paid_count'] == 1

    def test_mark_all_paid_then_pending(self, session, item_order_data):
        order = create_order(session, item_order_data)

        assert mark_all_paid(session, order.id) == 2
        assert mark_all_paid(session, order.id) == 0
        assert get_order_payment_summary(session, order.id)['has_pending_payments'] is False

        assert mark_all_pending(session, order.id) == 2
        assert get_order_payment_summary(session, order.id)['pending_amount'] == Decimal('160.00')

    def test_mark_all_on_kg_order_is_noop(self, session, kg_order_data):
        order = create_order(session, kg_order_data)
        assert mark_all_paid(session, order.id) == 0

    def test_unknown_item(self, session):
        with pytest.raises(NotFoundError):
            set_item_payment(session, 424242, False)


class TestListOrders:

    def test_filters(self, session, item_order_data, kg_order_data):
        pending = create_order(session, item_order_data)
        paid = create_order(session, {**item_order_data, 'customer_name': 'Ravi Kumar'})
        mark_all_paid(session, paid.id)
        kg = create_order(session, kg_order_data)
        change_status(session, kg.id, 'ready')

        def ids(**filters):
            return {order.id for order in list_orders(session, **filters)['orders']}

        assert ids() == {pending.id, paid.id, kg.id}
        assert ids(search='ravi') == {paid.id}
        assert ids(search=pending.order_number) == {pending.id}
        assert ids(status='ready') == {kg.id}
        assert ids(status='all') == {pending.id, paid.id, kg.id}
        assert ids(payment_status='pending') == {pending.id}
        assert ids(payment_status='paid') == {paid.id, kg.id}

    def test_pagination(self, session, item_order_data):
        for _ in range(3):
            create_order(session, item_order_data)

        result = list_orders(session, page=2, per_page=2)

        assert result['total'] == 3
        assert result['pages'] == 2
        assert len(result['orders']) == 1

    def test_invalid_payment_filter(self, session):
        with pytest.raises(ValidationError):
            list_orders(session, payment_status='partly')
