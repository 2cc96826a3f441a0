"""
Flask CLI commands.

Commands:
- flask init-db: Create all tables
- flask seed-catalog: Load a starter price list (items and per-kg services)
"""

import click
from decimal import Decimal

from laundry.database import create_all, get_session
from laundry.models import LaundryItem, ServiceType

STARTER_ITEMS = (
    ('Shirt', Decimal('20.00')),
    ('Pants', Decimal('50.00')),
    ('Saree', Decimal('120.00')),
    ('Bedsheet', Decimal('60.00')),
    ('Blazer', Decimal('150.00')),
)

STARTER_SERVICES = (
    ('Wash & Fold', Decimal('40.00'), 'Regular wash, dry and fold'),
    ('Wash & Iron', Decimal('60.00'), 'Wash, dry and steam press'),
    ('Dry Clean', Decimal('120.00'), 'Solvent cleaning for delicate fabrics'),
)


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create database tables."""
        create_all()
        click.echo(click.style('Tables created.', fg='green'))

    @app.cli.command('seed-catalog')
    def seed_catalog():
        """Insert the starter catalog, skipping names that already exist."""
        session = get_session()
        created = 0

        try:
            existing_items = {name for (name,) in session.query(LaundryItem.name).all()}
            for name, price in STARTER_ITEMS:
                if name not in existing_items:
                    session.add(LaundryItem(name=name, price_per_item=price, is_active=True))
                    created += 1

            existing_services = {name for (name,) in session.query(ServiceType.name).all()}
            for name, rate, description in STARTER_SERVICES:
                if name not in existing_services:
                    session.add(ServiceType(name=name, price_per_kg=rate, description=description, is_active=True))
                    created += 1

            session.commit()
        except Exception as e:
            session.rollback()
            click.echo(click.style(f'Error seeding catalog: {str(e)}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style(f'{created} catalog entries created.', fg='green'))
