from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from costledger.core.enums import ProductionStatus
from costledger.schemas.journal import VoucherResponse


class ProductionOrderCreate(BaseModel):
    bom_id: int
    quantity: Decimal
    notes: Optional[str] = None


class ProductionOrderCreated(BaseModel):
    production_order_id: int


class StatusUpdate(BaseModel):
    status: ProductionStatus


class StatusUpdateResponse(BaseModel):
    message: str
    production_order_id: int
    status: ProductionStatus
    journal_voucher_id: Optional[int] = None
    journal_voucher_number: Optional[str] = None


class ProductionOrderCostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    bom_overhead_id: Optional[int]
    cost_type: str
    description: str
    amount: Decimal
    gl_account_code: Optional[str]


class ConsumptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    material_id: int
    quantity_consumed: Decimal
    unit_cost_at_consumption: Decimal
    total_cost: Decimal
    created_at: datetime


class ProductionOrderSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    product_id: int
    bom_id: int
    quantity: Decimal
    status: ProductionStatus
    notes: Optional[str]
    created_by: str
    creation_date: datetime
    completion_date: Optional[datetime]
    planned_material_cost: Decimal
    planned_overhead_cost: Decimal
    actual_material_cost: Optional[Decimal]
    actual_overhead_cost: Optional[Decimal]
    total_production_cost: Optional[Decimal]
    journal_voucher_id: Optional[int]


class ProductionOrderDetail(ProductionOrderSummary):
    costs: list[ProductionOrderCostResponse]
    consumption: list[ConsumptionResponse]
    journal_voucher: Optional[VoucherResponse] = None


class ProductionOrderListResponse(BaseModel):
    limit: int
    offset: int
    rows: list[ProductionOrderSummary]
