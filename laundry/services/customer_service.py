"""Customer lookup and quick creation from the order form."""
import logging
import re
from typing import List

from sqlalchemy import or_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from laundry.models import Customer
from laundry.exceptions import ValidationError, PersistenceError

logger = logging.getLogger(__name__)


def find_customers(session: Session, query: str, limit: int = 10) -> List[Customer]:
    """Case-insensitive search over name, email and phone."""
    query = (query or '').strip().lower()
    if not query:
        return []

    pattern = f'%{query}%'
    return session.query(Customer).filter(
        or_(
            func.lower(Customer.name).like(pattern),
            func.lower(Customer.email).like(pattern),
            func.lower(Customer.phone).like(pattern)
        )
    ).order_by(Customer.name).limit(limit).all()


def placeholder_email(name: str) -> str:
    """Customers created from the order form get a throwaway email: 'Ana Roy' -> 'anaroy@temp.com'."""
    local_part = re.sub(r'\s+', '', name.lower())
    return f"{local_part}@temp.com"


def create_customer(session: Session, name: str, phone: str = None) -> Customer:
    """
    Create a customer with just a name and phone.

    Remaining fields take defaults (status active, bronze tier, no orders).
    """
    name = (name or '').strip()
    if not name:
        raise ValidationError('Customer name is required.', field='name')

    customer = Customer(
        name=name,
        phone=(phone or '').strip() or None,
        email=placeholder_email(name),
        status='active',
        loyalty_tier='bronze',
        total_orders=0,
        total_spent=0
    )

    try:
        session.add(customer)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error creating customer '{name}': {e}")
        raise PersistenceError('Failed to create customer', original=e)

    logger.info(f"Customer created: {customer.id} ({customer.name})")
    return customer
