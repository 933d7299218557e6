from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from costledger.database import Base


class Bom(Base):
    __tablename__ = "boms"

    __table_args__ = (
        UniqueConstraint("company_id", "finished_good_id", "version", name="uq_boms_company_good_version"),
        CheckConstraint("status in ('active','inactive')", name="ck_boms_status_valid"),
        CheckConstraint(
            "scrap_percentage >= 0 AND scrap_percentage <= 100",
            name="ck_boms_scrap_percentage_range",
        ),
        CheckConstraint("batch_size > 0", name="ck_boms_batch_size_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False, index=True)
    finished_good_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)

    bom_code = Column(String, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    status = Column(String, nullable=False, default="active")
    batch_size = Column(Numeric(18, 4), nullable=False, default=1)
    scrap_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    finished_good = relationship("Product")
    components = relationship(
        "BomComponent",
        back_populates="bom",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="BomComponent.id",
    )
    overheads = relationship(
        "BomOverhead",
        back_populates="bom",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="BomOverhead.id",
    )
    operations = relationship(
        "BomOperation",
        back_populates="bom",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="BomOperation.sequence",
    )


class BomComponent(Base):
    __tablename__ = "bom_components"

    __table_args__ = (CheckConstraint("quantity > 0", name="ck_bom_components_quantity_positive"),)

    id = Column(Integer, primary_key=True, index=True)
    bom_id = Column(Integer, ForeignKey("boms.id", ondelete="CASCADE"), nullable=False, index=True)
    material_id = Column(Integer, ForeignKey("raw_materials.id", ondelete="RESTRICT"), nullable=False)

    quantity = Column(Numeric(18, 6), nullable=False)  # per finished unit
    unit_of_measure = Column(String, nullable=True)

    bom = relationship("Bom", back_populates="components")
    material = relationship("Material")


class BomOverhead(Base):
    __tablename__ = "bom_overheads"

    __table_args__ = (
        CheckConstraint(
            "allocation_method in ('per_unit','per_batch','percentage_of_material')",
            name="ck_bom_overheads_allocation_method_valid",
        ),
        CheckConstraint("cost >= 0", name="ck_bom_overheads_cost_nonnegative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    bom_id = Column(Integer, ForeignKey("boms.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    cost_category = Column(String, nullable=True)
    allocation_method = Column(String, nullable=False)
    cost = Column(Numeric(18, 4), nullable=False)
    gl_account_code = Column(String(32), nullable=False)

    bom = relationship("Bom", back_populates="overheads")


class BomOperation(Base):
    __tablename__ = "bom_operations"

    id = Column(Integer, primary_key=True, index=True)
    bom_id = Column(Integer, ForeignKey("boms.id", ondelete="CASCADE"), nullable=False, index=True)

    sequence = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    notes = Column(Text, nullable=True)

    bom = relationship("Bom", back_populates="operations")
