"""Customers blueprint: autocomplete search and quick create from the order form."""
from flask import Blueprint, request, jsonify

from laundry.database import get_session
from laundry.services.customer_service import find_customers, create_customer

customers_bp = Blueprint('customers', __name__, url_prefix='/customers')


@customers_bp.route('/search', methods=['GET'])
def search_customers():
    """Search customers for autocomplete (JSON)."""
    session = get_session()
    query_str = request.args.get('q', '').strip()

    if not query_str:
        return jsonify({'results': []})

    return jsonify({'results': [c.to_dict() for c in find_customers(session, query_str)]})


@customers_bp.route('/', methods=['POST'])
def quick_create():
    session = get_session()
    data = request.get_json(silent=True) or {}
    customer = create_customer(session, data.get('name'), data.get('phone'))
    return jsonify(customer.to_dict()), 201
