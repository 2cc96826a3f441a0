import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from laundry import create_app
from laundry.database import Base, create_all, get_session
from laundry.models import Customer, LaundryItem, ServiceType


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite)."""
    app = create_app('config.TestConfig')
    ctx = app.app_context()
    ctx.push()
    create_all()
    yield app
    ctx.pop()


@pytest.fixture(scope='function')
def client(app, session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Database session; every table is emptied after the test."""
    session = get_session()
    yield session
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.remove()


@pytest.fixture(scope='function')
def shirt(session):
    item = LaundryItem(name='Shirt', price_per_item=Decimal('20.00'), is_active=True)
    session.add(item)
    session.commit()
    return item


@pytest.fixture(scope='function')
def pants(session):
    item = LaundryItem(name='Pants', price_per_item=Decimal('50.00'), is_active=True)
    session.add(item)
    session.commit()
    return item


@pytest.fixture(scope='function')
def wash_fold(session):
    service = ServiceType(name='Wash & Fold', price_per_kg=Decimal('40.00'), is_active=True)
    session.add(service)
    session.commit()
    return service


@pytest.fixture(scope='function')
def customer(session):
    customer = Customer(name='Asha Rao', email='asharao@temp.com', phone='9876543210')
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def due_date():
    return (datetime.now() + timedelta(days=2)).replace(microsecond=0)


@pytest.fixture(scope='function')
def item_order_data(shirt, pants, due_date):
    """Shirt x3 + Pants x2 = 160.00, no discount."""
    return {
        'customer_name': 'Asha Rao',
        'customer_phone': '9876543210',
        'pricing_type': 'item',
        'items_detail': {
            str(shirt.id): {'name': 'Shirt', 'quantity': 3, 'price': '20.00'},
            str(pants.id): {'name': 'Pants', 'quantity': 2, 'price': '50.00'},
        },
        'due_date': due_date.isoformat(),
    }


@pytest.fixture(scope='function')
def kg_order_data(wash_fold, due_date):
    """5kg at 40/kg = 200.00."""
    return {
        'customer_name': 'Asha Rao',
        'pricing_type': 'kg',
        'service_type_id': wash_fold.id,
        'total_weight': '5',
        'items_detail': [{'name': 'Bedsheet', 'notes': 'starch', 'tags': ['delicate']}],
        'due_date': due_date.isoformat(),
    }
