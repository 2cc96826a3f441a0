"""Quality checks blueprint."""
from flask import Blueprint, request, jsonify

from laundry.database import get_session
from laundry.exceptions import ValidationError
from laundry.services.quality_check_service import create_quality_check, list_quality_checks
from laundry.utils.number_format import to_id

quality_bp = Blueprint('quality', __name__, url_prefix='/quality-checks')


@quality_bp.route('/', methods=['GET'])
def list_checks():
    session = get_session()
    order_id = request.args.get('order_id')
    checks = list_quality_checks(session, to_id(order_id) if order_id else None)
    return jsonify({'results': [check.to_dict() for check in checks]})


@quality_bp.route('/', methods=['POST'])
def create():
    """Log an inspection. Either ``score`` or a ``checks`` checklist is required."""
    session = get_session()
    data = request.get_json(silent=True) or {}

    order_id = to_id(data.get('order_id'))
    if not order_id:
        raise ValidationError('Order is required.', field='order_id')

    check = create_quality_check(
        session,
        order_id,
        data.get('check_type'),
        status=data.get('status'),
        score=data.get('score'),
        checks=data.get('checks'),
        issues=data.get('issues'),
        notes=data.get('notes'),
        inspector=data.get('inspector'),
        update_order_score=bool(data.get('update_order_score'))
    )
    return jsonify(check.to_dict()), 201
