# Overview: Flask CLI command groups for database bootstrap, demo data and market ticks.

# backend/procsim/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Database bootstrap:
# - python -m flask sim init-db
#   Create all tables (no-op for tables that already exist).
# - python -m flask sim reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask sim seed-demo
#   Idempotent demo data: teacher/student users, one task, suppliers and products.
#
# Market:
# - python -m flask market tick electronics clothing [--seed 42]
#   Run one market fluctuation per category (scheduler entry point).

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Product, Supplier, TrainingTask
from .services import catalog_service, market_service
from .services.records import RecordStore


DEMO_USERS = (
    ("teacher", "Demo Teacher", "teacher", None),
    ("student", "Demo Student", "student", "S0001"),
)

DEMO_SUPPLIERS = (
    {"name": "Quality Electronics Co.", "categories": ["electronics"], "rating": "4.5",
     "reliability": 95, "quality_level": "high", "cooperation_years": 3},
    {"name": "Budget Apparel Ltd.", "categories": ["clothing"], "rating": "3.8",
     "reliability": 80, "quality_level": "medium", "cooperation_years": 1},
)

DEMO_PRODUCTS = (
    {"sku": "EL-001", "name": "Wireless Earbuds", "category": "electronics", "unit_price": "100.00", "safety_stock": 20},
    {"sku": "EL-002", "name": "Phone Charger", "category": "electronics", "unit_price": "25.00", "safety_stock": 50},
    {"sku": "CL-001", "name": "Cotton T-Shirt", "category": "clothing", "unit_price": "15.00", "safety_stock": None},
)


@click.group('sim')
def sim_group():
    """Database bootstrap and demo data commands."""


@sim_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("PASS Tables created.")


@sim_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask sim seed-demo' for demo data.")


@sim_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Create demo users, a task, suppliers and products (safe to re-run)."""
    store = RecordStore()

    teacher = None
    for username, name, role, student_number in DEMO_USERS:
        user = store.get_user_by_username(username)
        if user is None:
            user = catalog_service.create_user(
                username, name=name, role=role, student_number=student_number, store=store
            )
            click.echo(f"PASS Created user: {username} (ID: {user.id}, role: {role})")
        else:
            click.echo(f"SKIP User exists: {username} (ID: {user.id})")
        if role == "teacher":
            teacher = user

    task = db.session.query(TrainingTask).filter_by(name="Demo Procurement Task").first()
    if task is None:
        task = catalog_service.create_training_task(
            "Demo Procurement Task",
            "10000.00",
            30,
            description="Buy low, sell high: run a small electronics and apparel shop for 30 days.",
            created_by=teacher.id if teacher else None,
            store=store,
        )
        click.echo(f"PASS Created task: {task.name} (ID: {task.id})")
    else:
        click.echo(f"SKIP Task exists: {task.name} (ID: {task.id})")

    for entry in DEMO_SUPPLIERS:
        if db.session.query(Supplier).filter_by(name=entry["name"]).first() is None:
            fields = {k: v for k, v in entry.items() if k != "name"}
            supplier = catalog_service.create_supplier(entry["name"], store=store, **fields)
            click.echo(f"PASS Created supplier: {supplier.name} (ID: {supplier.id})")

    for entry in DEMO_PRODUCTS:
        if db.session.query(Product).filter_by(sku=entry["sku"]).first() is None:
            product = catalog_service.create_product(
                entry["sku"],
                entry["name"],
                entry["unit_price"],
                category=entry["category"],
                safety_stock=entry["safety_stock"],
                store=store,
            )
            click.echo(f"PASS Created product: {product.sku} (ID: {product.id})")

    click.echo("PASS Demo data ready.")


@click.group('market')
def market_group():
    """Market simulator commands."""


@market_group.command('tick')
@click.argument('categories', nargs=-1, required=True)
@click.option('--seed', type=int, default=None, help='Replay from this RNG seed instead of the app generator')
@with_appcontext
def market_tick(categories, seed):
    """Run one market fluctuation for each CATEGORY."""
    if seed is None:
        rng = current_app.extensions["market_rng"]
    else:
        rng = market_service.make_rng(seed)

    for category in categories:
        snapshot = market_service.generate_market_data(category, rng=rng)
        events = ", ".join(e["type"] for e in snapshot.market_events or []) or "none"
        click.echo(
            f"{snapshot.category:<20} demand={snapshot.demand_level:>3} "
            f"competition={snapshot.competition_level:>3} index={snapshot.price_index} "
            f"trend={snapshot.trend_direction} events={events}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(sim_group)
    app.cli.add_command(market_group)
