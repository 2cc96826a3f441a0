"""Orders blueprint: order CRUD, status, per-item payments and invoices."""
from typing import Any, Dict

from flask import Blueprint, request, jsonify, send_file, current_app

from laundry.database import get_session
from laundry.exceptions import ValidationError
from laundry.services.order_service import (
    create_order,
    update_order,
    change_status,
    delete_order,
    get_order,
    list_orders,
    build_order_snapshot,
)
from laundry.services.payment_service import (
    get_order_payment_summary,
    summarize_payments,
    set_item_payment,
    mark_all_paid,
    mark_all_pending,
)
from laundry.services.order_item_service import list_order_items
from laundry.services.invoice_service import generate_invoice_pdf

orders_bp = Blueprint('orders', __name__, url_prefix='/orders')

TRUE_VALUES = ('1', 'true', 'yes', 'on')


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object.')
    return data


def _flag(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or '').strip().lower() in TRUE_VALUES


def _summary_json(summary: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: str(value) if key.endswith('_amount') else value
        for key, value in summary.items()
    }


@orders_bp.route('/', methods=['GET'])
def list_all():
    """List orders with search, status and payment filters."""
    session = get_session()
    result = list_orders(
        session,
        page=request.args.get('page', 1),
        per_page=request.args.get('per_page', current_app.config.get('ORDERS_PER_PAGE', 10)),
        search=request.args.get('q', ''),
        status=request.args.get('status', ''),
        payment_status=request.args.get('payment_status', '')
    )
    return jsonify({
        'orders': [order.to_dict() for order in result['orders']],
        'total': result['total'],
        'page': result['page'],
        'per_page': result['per_page'],
        'pages': result['pages'],
    })


@orders_bp.route('/', methods=['POST'])
def create():
    session = get_session()
    order = create_order(
        session,
        _json_body(),
        number_prefix=current_app.config.get('ORDER_NUMBER_PREFIX', 'ORD')
    )
    return jsonify(order.to_dict(include_items=True)), 201


@orders_bp.route('/<int:order_id>', methods=['GET'])
def detail(order_id: int):
    session = get_session()
    order = get_order(session, order_id)
    return jsonify(order.to_dict(include_items=True))


@orders_bp.route('/<int:order_id>', methods=['PUT'])
def update(order_id: int):
    """Save an edited order. Item-priced orders get their line items rebuilt."""
    session = get_session()
    order = update_order(session, order_id, _json_body())
    return jsonify(order.to_dict(include_items=True))


@orders_bp.route('/<int:order_id>/status', methods=['POST'])
def set_status(order_id: int):
    session = get_session()
    order = change_status(session, order_id, _json_body().get('status'))
    return jsonify(order.to_dict())


@orders_bp.route('/<int:order_id>', methods=['DELETE'])
def delete(order_id: int):
    """Delete an order. Requires ?confirm=true since it cannot be undone."""
    session = get_session()
    delete_order(session, order_id, confirm=_flag(request.args.get('confirm')))
    return jsonify({'status': 'ok', 'deleted': order_id})


@orders_bp.route('/<int:order_id>/payments', methods=['GET'])
def payments(order_id: int):
    session = get_session()
    order = get_order(session, order_id)
    lines = list_order_items(session, order.id)
    return jsonify({
        'order_id': order.id,
        'line_items': [line.to_dict() for line in lines],
        'summary': _summary_json(summarize_payments(lines, order.pricing_type)),
    })


@orders_bp.route('/items/<int:item_id>/payment', methods=['POST'])
def toggle_item_payment(item_id: int):
    """Body: {"paid": true|false}."""
    session = get_session()
    data = _json_body()
    if 'paid' not in data:
        raise ValidationError('Missing "paid" flag.', field='paid')

    line = set_item_payment(session, item_id, payment_pending=not _flag(data['paid']))
    return jsonify({
        'item': line.to_dict(),
        'summary': _summary_json(get_order_payment_summary(session, line.order_id)),
    })


@orders_bp.route('/<int:order_id>/payments/mark-all', methods=['POST'])
def mark_all(order_id: int):
    session = get_session()
    paid = _flag(_json_body().get('paid', True))
    changed = mark_all_paid(session, order_id) if paid else mark_all_pending(session, order_id)
    return jsonify({
        'changed': changed,
        'summary': _summary_json(get_order_payment_summary(session, order_id)),
    })


@orders_bp.route('/<int:order_id>/invoice.pdf', methods=['GET'])
def invoice_pdf(order_id: int):
    session = get_session()
    order = get_order(session, order_id)

    config = current_app.config
    business_info = {
        'name': config.get('BUSINESS_NAME'),
        'address': config.get('BUSINESS_ADDRESS'),
        'phone': config.get('BUSINESS_PHONE'),
        'email': config.get('BUSINESS_EMAIL'),
        'currency_symbol': config.get('CURRENCY_SYMBOL'),
    }

    pdf_buffer = generate_invoice_pdf(order, business_info)
    current_app.logger.info(f"Invoice generated for order {order.order_number}")

    return send_file(
        pdf_buffer,
        mimetype='application/pdf',
        as_attachment=True,
        download_name=f"invoice_{order.order_number}.pdf"
    )


@orders_bp.route('/pricing/preview', methods=['POST'])
def pricing_preview():
    """
    Price an order form without saving it.

    Accepts the same body as create; returns subtotal, discount, amount
    and the items summary line. Nothing is validated beyond input shape.
    """
    session = get_session()
    snapshot = build_order_snapshot(session, _json_body())
    return jsonify({
        'pricing_type': snapshot['pricing_type'],
        'items': snapshot['items'],
        'subtotal': str(snapshot['subtotal']),
        'discount': str(snapshot['discount']),
        'discount_type': snapshot['discount_type'],
        'amount': str(snapshot['amount']),
        'amount_is_manual': snapshot['amount_is_manual'],
    })
