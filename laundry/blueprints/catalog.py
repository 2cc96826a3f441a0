"""Catalog blueprint: active laundry items and service types for the order form."""
from flask import Blueprint, jsonify

from laundry.database import get_session
from laundry.services.catalog_service import get_active_items, get_active_service_types

catalog_bp = Blueprint('catalog', __name__, url_prefix='/catalog')


@catalog_bp.route('/items', methods=['GET'])
def items():
    session = get_session()
    return jsonify({'results': [item.to_dict() for item in get_active_items(session)]})


@catalog_bp.route('/service-types', methods=['GET'])
def service_types():
    session = get_session()
    return jsonify({'results': [service.to_dict() for service in get_active_service_types(session)]})
