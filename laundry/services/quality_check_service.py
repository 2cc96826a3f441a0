"""Quality inspection logging."""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from laundry.models import QualityCheck, CheckType, CheckStatus, Order
from laundry.exceptions import ValidationError, NotFoundError, PersistenceError
from laundry.utils.number_format import to_int

logger = logging.getLogger(__name__)

# Checklist shown to inspectors; the score is the share of items ticked
CHECKLIST = (
    'stain_removal',
    'fabric_care',
    'color_integrity',
    'pressing',
    'packaging',
    'overall_cleanliness',
)


def calculate_checklist_score(checks: Dict[str, bool]) -> int:
    """
    Score 0..100 from a checklist: round(ticked / total * 100).

    Keys outside CHECKLIST are ignored; missing keys count as not ticked.
    """
    ticked = sum(1 for key in CHECKLIST if checks.get(key))
    return round(ticked / len(CHECKLIST) * 100)


def create_quality_check(
    session: Session,
    order_id: int,
    check_type: str,
    status: str = CheckStatus.PENDING.value,
    score: Optional[int] = None,
    checks: Optional[Dict[str, bool]] = None,
    issues: Optional[List[str]] = None,
    notes: str = None,
    inspector: str = None,
    update_order_score: bool = False
) -> QualityCheck:
    """
    Log an inspection for an order.

    Either pass ``score`` directly or a ``checks`` checklist to derive it.
    With ``update_order_score`` the order's quality_score takes the new
    score in the same commit.
    """
    order = session.get(Order, order_id)
    if not order:
        raise NotFoundError(f'Order {order_id} not found.')

    try:
        check_type = CheckType(check_type).value
    except ValueError:
        raise ValidationError(f'Invalid check type "{check_type}".', field='check_type')

    try:
        status = CheckStatus(status or CheckStatus.PENDING.value).value
    except ValueError:
        raise ValidationError(f'Invalid check status "{status}".', field='status')

    if score is None:
        score = calculate_checklist_score(checks if isinstance(checks, dict) else {})
    score = to_int(score, -1)
    if not 0 <= score <= 100:
        raise ValidationError('Score must be between 0 and 100.', field='score')

    check = QualityCheck(
        order_id=order.id,
        order_number=order.order_number,
        customer_name=order.customer_name,
        check_type=check_type,
        status=status,
        score=score,
        issues=[str(issue).strip() for issue in (issues if isinstance(issues, list) else []) if issue and str(issue).strip()] or None,
        notes=str(notes or '').strip() or None,
        inspector=str(inspector or '').strip() or None,
        checked_at=datetime.now()
    )

    try:
        session.add(check)
        if update_order_score:
            order.quality_score = score
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error saving quality check for order {order_id}: {e}")
        raise PersistenceError('Failed to save quality check', original=e)

    logger.info(f"Quality check {check_type} for {order.order_number}: {status} ({score})")
    return check


def list_quality_checks(session: Session, order_id: Optional[int] = None) -> List[QualityCheck]:
    """Most recent first, optionally for one order."""
    query = session.query(QualityCheck)
    if order_id is not None:
        query = query.filter(QualityCheck.order_id == order_id)
    return query.order_by(QualityCheck.created_at.desc(), QualityCheck.id.desc()).all()
