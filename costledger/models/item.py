from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, func

from costledger.database import Base


class Material(Base):
    __tablename__ = "raw_materials"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False, index=True)

    name = Column(String, nullable=False)
    unit_of_measure = Column(String, nullable=True)
    quantity_on_hand = Column(Numeric(18, 6), nullable=False, default=0, server_default="0")
    average_unit_cost = Column(Numeric(18, 4), nullable=False, default=0, server_default="0")

    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Product(Base):
    """A finished good produced from a bill of materials."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False, index=True)

    name = Column(String, nullable=False)
    sku = Column(String, nullable=True)
    unit_of_measure = Column(String, nullable=True)
    quantity_on_hand = Column(Numeric(18, 6), nullable=False, default=0, server_default="0")
    average_unit_cost = Column(Numeric(18, 4), nullable=False, default=0, server_default="0")

    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
