"""Catalog lookups used when pricing new orders."""
from typing import List, Optional

from sqlalchemy.orm import Session

from laundry.models import LaundryItem, ServiceType
from laundry.utils.number_format import to_id


def get_active_items(session: Session) -> List[LaundryItem]:
    """Active per-piece catalog items, by name."""
    return session.query(LaundryItem).filter(
        LaundryItem.is_active == True  # noqa: E712
    ).order_by(LaundryItem.name).all()


def get_active_service_types(session: Session) -> List[ServiceType]:
    """Active per-kg services, by name."""
    return session.query(ServiceType).filter(
        ServiceType.is_active == True  # noqa: E712
    ).order_by(ServiceType.name).all()


def get_service_type(session: Session, service_type_id) -> Optional[ServiceType]:
    """Any service type by id, active or not; None for blank or unknown ids."""
    service_type_id = to_id(service_type_id)
    if service_type_id is None:
        return None
    return session.get(ServiceType, service_type_id)
