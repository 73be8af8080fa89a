"""
Pytest fixtures for procsim backend tests.

Provides an in-memory database, per-test table wipe, catalog fixtures and
a test client.
"""

from decimal import Decimal

import pytest
from procsim import create_app
from procsim.extensions import db
from procsim.models import User, TrainingTask, Supplier, Product
from procsim.services.records import RecordStore
from procsim.services.task_service import start_task


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'MARKET_RNG_SEED': None,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def store(db_session):
    return RecordStore(db_session)


@pytest.fixture(scope='function')
def teacher(db_session):
    user = User(username="teacher", name="Ms. Teacher", role="teacher")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def student(db_session):
    user = User(username="student", name="Student One", role="student", student_number="S0001")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def other_student(db_session):
    user = User(username="student2", name="Student Two", role="student", student_number="S0002")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def task(db_session, teacher):
    """Budget 10000, five days."""
    task = TrainingTask(
        name="Procurement basics",
        initial_budget=Decimal("10000.00"),
        duration_days=5,
        created_by=teacher.id,
        status="active",
    )
    db_session.add(task)
    db_session.commit()
    return task


@pytest.fixture(scope='function')
def supplier(db_session):
    supplier = Supplier(
        name="Acme Wholesale",
        categories=["electronics"],
        rating=Decimal("4.5"),
        reliability=90,
        quality_level="high",
        cooperation_years=2,
    )
    db_session.add(supplier)
    db_session.commit()
    return supplier


@pytest.fixture(scope='function')
def product(db_session):
    """List price 100, safety stock 10."""
    product = Product(sku="EL-001", name="Earbuds", category="electronics", unit_price=Decimal("100.00"), safety_stock=10)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def second_product(db_session):
    """No explicit safety stock (defaults apply)."""
    product = Product(sku="EL-002", name="Charger", category="electronics", unit_price=Decimal("20.00"))
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def progress(store, student, task):
    """Student has started the task."""
    return start_task(student.id, task.id, store=store)


@pytest.fixture(scope='function')
def student_headers(student):
    """Caller identity headers for the student."""
    return {'X-User-Id': str(student.id)}


@pytest.fixture(scope='function')
def teacher_headers(teacher):
    return {'X-User-Id': str(teacher.id)}
