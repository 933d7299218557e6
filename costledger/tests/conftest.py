import os
_default_test_secret = "test-jwt-secret-for-pytest-only-0000000000000000"
if len(os.environ.get("JWT_SECRET", "")) < 32:
    os.environ["JWT_SECRET"] = _default_test_secret
os.environ.setdefault("ENV", "test")

import subprocess
from decimal import Decimal
from itertools import count
from pathlib import Path

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url

TEST_DATABASE_URL = os.getenv("DATABASE_URL", "postgresql://localhost/costledger_test")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from costledger import database
from costledger.core.enums import AccountClass, SystemRole
from costledger.database import SessionLocal
from costledger.models.account import Account
from costledger.models.item import Material, Product

# code, name, class, system role
STANDARD_CHART = [
    ("1000", "Cash", AccountClass.ASSET, None),
    ("1100", "Accounts Receivable", AccountClass.ASSET, SystemRole.ACCOUNTS_RECEIVABLE),
    ("1200", "Raw Materials Inventory", AccountClass.ASSET, SystemRole.INVENTORY_RAW_MATERIAL),
    ("1250", "Work in Process", AccountClass.ASSET, SystemRole.INVENTORY_WIP),
    ("1300", "Finished Goods Inventory", AccountClass.ASSET, SystemRole.INVENTORY_FINISHED_GOODS),
    ("2000", "Accounts Payable", AccountClass.LIABILITY, SystemRole.ACCOUNTS_PAYABLE),
    ("2100", "Wages Payable", AccountClass.LIABILITY, None),
    ("3000", "Owner's Capital", AccountClass.EQUITY, None),
    ("4000", "Sales Revenue", AccountClass.REVENUE, SystemRole.SALES_REVENUE),
    ("5000", "Cost of Goods Sold", AccountClass.COST_OF_GOODS_SOLD, SystemRole.COGS),
    ("5200", "Manufacturing Overhead Applied", AccountClass.EXPENSE, None),
    ("6000", "Rent Expense", AccountClass.EXPENSE, None),
]


def _ensure_database_exists(database_url: str) -> None:
    url = make_url(database_url)

    if not url.drivername.startswith("postgresql"):
        return

    db_name = url.database
    admin_url = url.set(database="postgres")
    admin_engine = create_engine(admin_url, isolation_level="AUTOCOMMIT")

    try:
        with admin_engine.connect() as conn:
            exists = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": db_name},
            ).scalar()
            if not exists:
                safe_db_name = db_name.replace('"', '""')
                conn.execute(text(f'CREATE DATABASE "{safe_db_name}"'))
    finally:
        admin_engine.dispose()


def _truncate_all_tables() -> None:
    with database.engine.begin() as conn:
        rows = conn.execute(
            text(
                """
                SELECT tablename
                FROM pg_tables
                WHERE schemaname = 'public'
                  AND tablename <> 'alembic_version'
                """
            )
        ).fetchall()

        table_names = [row[0] for row in rows]
        if table_names:
            quoted = ", ".join([f'"public"."{name}"' for name in table_names])
            conn.execute(text(f"TRUNCATE TABLE {quoted} RESTART IDENTITY CASCADE"))


@pytest.fixture(scope="session", autouse=True)
def _prepare_test_database() -> None:
    _ensure_database_exists(TEST_DATABASE_URL)

    env = os.environ.copy()
    env["DATABASE_URL"] = TEST_DATABASE_URL

    subprocess.run(
        ["alembic", "upgrade", "head"],
        check=True,
        cwd=Path(__file__).resolve().parents[2],
        env=env,
    )

    database.configure_database()


@pytest.fixture(scope="function", autouse=True)
def _truncate_tables_between_tests():
    _truncate_all_tables()
    yield
    _truncate_all_tables()


def _persist(row):
    db = SessionLocal()
    try:
        db.add(row)
        db.commit()
        db.refresh(row)
        return row
    finally:
        db.close()


@pytest.fixture
def account_factory():
    def create(
        company_id: int,
        code: str,
        name: str = None,
        account_class: AccountClass = AccountClass.ASSET,
        system_role: SystemRole = None,
        is_active: bool = True,
    ) -> Account:
        return _persist(
            Account(
                company_id=company_id,
                code=code,
                name=name or f"Account {code}",
                account_class=AccountClass(account_class).value,
                system_role=None if system_role is None else SystemRole(system_role).value,
                is_active=is_active,
            )
        )

    return create


@pytest.fixture
def chart_of_accounts(account_factory):
    def create(company_id: int) -> dict:
        return {
            code: account_factory(
                company_id=company_id,
                code=code,
                name=name,
                account_class=account_class,
                system_role=system_role,
            )
            for code, name, account_class, system_role in STANDARD_CHART
        }

    return create


@pytest.fixture
def material_factory():
    seq = count(1)

    def create(
        company_id: int,
        average_unit_cost="0",
        quantity_on_hand="0",
        name: str = None,
        unit_of_measure: str = "kg",
    ) -> Material:
        return _persist(
            Material(
                company_id=company_id,
                name=name or f"Material {next(seq)}",
                unit_of_measure=unit_of_measure,
                quantity_on_hand=Decimal(str(quantity_on_hand)),
                average_unit_cost=Decimal(str(average_unit_cost)),
            )
        )

    return create


@pytest.fixture
def product_factory():
    seq = count(1)

    def create(
        company_id: int,
        name: str = None,
        quantity_on_hand="0",
        average_unit_cost="0",
    ) -> Product:
        n = next(seq)
        return _persist(
            Product(
                company_id=company_id,
                name=name or f"Product {n}",
                sku=f"SKU-{n:04d}",
                unit_of_measure="pcs",
                quantity_on_hand=Decimal(str(quantity_on_hand)),
                average_unit_cost=Decimal(str(average_unit_cost)),
            )
        )

    return create


@pytest.fixture
def widget_bom(chart_of_accounts, material_factory, product_factory):
    """
    A finished good costing 15.00 of material per unit, with one overhead of
    each allocation method:
      Direct labor      per_unit               3.00  -> 2100 Wages Payable
      Machine setup     per_batch             25.00  -> 5200
      Factory overhead  percentage_of_material 10%   -> 5200
    """
    from costledger.core.enums import AllocationMethod
    from costledger.services.bom_service import BomComponentSpec, BomOverheadSpec, create_bom

    def create(company_id: int, **overrides) -> dict:
        chart_of_accounts(company_id)
        steel = material_factory(company_id, average_unit_cost="2.50", quantity_on_hand="100", name="Steel")
        paint = material_factory(company_id, average_unit_cost="10.00", quantity_on_hand="20", name="Paint")
        widget = product_factory(company_id, name="Widget")

        kwargs = dict(
            company_id=company_id,
            actor_id="test",
            finished_good_id=widget.id,
            bom_code="BOM-WIDGET",
            batch_size=Decimal("10"),
            components=[
                BomComponentSpec(material_id=steel.id, quantity=Decimal("4")),
                BomComponentSpec(material_id=paint.id, quantity=Decimal("0.5")),
            ],
            overheads=[
                BomOverheadSpec(
                    name="Direct labor",
                    allocation_method=AllocationMethod.PER_UNIT,
                    cost=Decimal("3.00"),
                    gl_account_code="2100",
                ),
                BomOverheadSpec(
                    name="Machine setup",
                    allocation_method=AllocationMethod.PER_BATCH,
                    cost=Decimal("25.00"),
                    gl_account_code="5200",
                ),
                BomOverheadSpec(
                    name="Factory overhead",
                    allocation_method=AllocationMethod.PERCENTAGE_OF_MATERIAL,
                    cost=Decimal("10"),
                    gl_account_code="5200",
                ),
            ],
        )
        kwargs.update(overrides)
        bom_id = create_bom(**kwargs)
        return {"bom_id": bom_id, "steel": steel, "paint": paint, "widget": widget}

    return create
