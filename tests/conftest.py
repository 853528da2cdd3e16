"""
Pytest configuration and fixtures for HostBaku tests.

Every test gets its own SQLite database file under tmp_path, so tests
never share rows.
"""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from hostbaku.app import create_app
from hostbaku.auth.jwt_auth import generate_token
from hostbaku.models import Expense, Property, PropertyUnit, Reservation, User
from hostbaku.scripts.init_db import init_db
from hostbaku.statements.access import Caller
from hostbaku.utils.rate_limit import reset_limits

JWT_TEST_SECRET = 'test-secret-do-not-use-in-production'


@pytest.fixture
def app_factory(tmp_path):
    """Build apps on a fresh SQLite database; keyword arguments extend the test config."""
    created = []

    def _create(**overrides):
        test_config = {
            'TESTING': True,
            'JWT_SECRET': JWT_TEST_SECRET,
            'JWT_ALGORITHM': 'HS256',
            'RATELIMIT_ENABLED': False,
            'AUDIT_LOG_DIR': str(tmp_path / 'logs'),
        }
        test_config.update(overrides)
        application = create_app(db_url=f"sqlite:///{tmp_path / 'hostbaku.db'}", test_config=test_config)
        init_db(application.get_db_engine())
        created.append(application)
        return application

    reset_limits()
    yield _create
    for application in created:
        application.get_db_engine().dispose()


@pytest.fixture
def app(app_factory):
    """Flask app with the schema created."""
    return app_factory()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    session = app.get_db_session()
    yield session
    session.close()


@pytest.fixture
def seed(db_session):
    """
    Users and properties shared by most tests.

    Old City Studio belongs to `owner`, Sea View Loft to `other_owner`.
    """
    admin = User(email='admin@hostbaku.az', name='Admin', role='admin')
    owner = User(email='leyla@example.com', name='Leyla Aliyeva', role='owner')
    other_owner = User(email='rashad@example.com', name='Rashad Mammadov', role='owner')
    cleaner = User(email='cleaner@hostbaku.az', name='Cleaner', role='cleaner')
    db_session.add_all([admin, owner, other_owner, cleaner])
    db_session.flush()

    studio = Property(name='Old City Studio', address='12 Kichik Qala', city='Baku', owner_id=owner.id)
    loft = Property(name='Sea View Loft', address='5 Neftchilar Ave', city='Baku', owner_id=other_owner.id)
    db_session.add_all([studio, loft])
    db_session.flush()

    unit = PropertyUnit(property_id=studio.id, unit_number='A1', floor=2)
    db_session.add(unit)
    db_session.commit()

    return SimpleNamespace(
        admin=admin, owner=owner, other_owner=other_owner, cleaner=cleaner,
        studio=studio, loft=loft, unit=unit,
    )


@pytest.fixture
def june_activity(db_session, seed):
    """One $380.00 reservation checking out 2025-06-15 and one $45.00 expense on 2025-06-10."""
    db_session.add(Reservation(
        property_id=seed.studio.id,
        guest_name='Anna Schmidt',
        check_in=date(2025, 6, 12),
        check_out=date(2025, 6, 15),
        total_amount=Decimal('380.00'),
        platform='airbnb',
    ))
    db_session.add(Expense(
        property_id=seed.studio.id,
        recorded_by=seed.admin.id,
        category='Cleaning',
        description='Deep clean after checkout',
        amount=Decimal('45.00'),
        expense_date=date(2025, 6, 10),
    ))
    db_session.commit()
    return seed


def caller_for(user):
    return Caller(user_id=user.id, role=user.role, email=user.email, name=user.name)


@pytest.fixture
def callers(seed):
    return SimpleNamespace(
        admin=caller_for(seed.admin),
        owner=caller_for(seed.owner),
        other_owner=caller_for(seed.other_owner),
        cleaner=caller_for(seed.cleaner),
    )


@pytest.fixture
def auth_headers(app, seed):
    """Build Authorization headers for a seeded user."""
    def _headers(user):
        with app.app_context():
            token = generate_token(user)
        return {'Authorization': f'Bearer {token}'}
    return _headers


@pytest.fixture
def jwt_secret():
    return JWT_TEST_SECRET
