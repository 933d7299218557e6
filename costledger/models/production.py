from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from costledger.database import Base


class ProductionOrder(Base):
    __tablename__ = "production_orders"

    __table_args__ = (
        CheckConstraint(
            "status in ('Pending','InProgress','Completed','Cancelled')",
            name="ck_production_orders_status_valid",
        ),
        CheckConstraint(
            "(status = 'Completed' AND completion_date IS NOT NULL) "
            "OR (status <> 'Completed' AND completion_date IS NULL)",
            name="ck_production_orders_completion_date_consistent",
        ),
        CheckConstraint("quantity > 0", name="ck_production_orders_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False, index=True)

    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    bom_id = Column(Integer, ForeignKey("boms.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity = Column(Numeric(18, 4), nullable=False)

    status = Column(String, nullable=False, default="Pending", index=True)
    notes = Column(Text, nullable=True)
    created_by = Column(String, nullable=False)

    creation_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    completion_date = Column(DateTime(timezone=True), nullable=True)

    planned_material_cost = Column(Numeric(18, 2), nullable=False, default=0)
    planned_overhead_cost = Column(Numeric(18, 2), nullable=False, default=0)
    actual_material_cost = Column(Numeric(18, 2), nullable=True)
    actual_overhead_cost = Column(Numeric(18, 2), nullable=True)
    total_production_cost = Column(Numeric(18, 2), nullable=True)

    journal_voucher_id = Column(Integer, ForeignKey("journal_vouchers.id", ondelete="RESTRICT"), nullable=True)

    bom = relationship("Bom")
    product = relationship("Product")
    journal_voucher = relationship("JournalVoucher")
    costs = relationship(
        "ProductionOrderCost",
        back_populates="production_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProductionOrderCost.id",
    )
    consumption = relationship(
        "ProductionOrderConsumption",
        back_populates="production_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProductionOrderConsumption.id",
    )


class ProductionOrderCost(Base):
    """Planned cost snapshot taken when the order is created."""

    __tablename__ = "production_order_costs"

    __table_args__ = (CheckConstraint("amount >= 0", name="ck_production_order_costs_amount_nonnegative"),)

    id = Column(Integer, primary_key=True, index=True)
    production_order_id = Column(
        Integer,
        ForeignKey("production_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    bom_overhead_id = Column(Integer, ForeignKey("bom_overheads.id", ondelete="SET NULL"), nullable=True)

    cost_type = Column(String, nullable=False)  # material|direct|misc
    description = Column(String, nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    gl_account_code = Column(String(32), nullable=True)

    production_order = relationship("ProductionOrder", back_populates="costs")


class ProductionOrderConsumption(Base):
    __tablename__ = "production_order_consumption"

    id = Column(Integer, primary_key=True, index=True)
    production_order_id = Column(
        Integer,
        ForeignKey("production_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    material_id = Column(Integer, ForeignKey("raw_materials.id", ondelete="RESTRICT"), nullable=False)

    quantity_consumed = Column(Numeric(18, 6), nullable=False)
    unit_cost_at_consumption = Column(Numeric(18, 4), nullable=False)
    total_cost = Column(Numeric(18, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    production_order = relationship("ProductionOrder", back_populates="consumption")
    material = relationship("Material")
