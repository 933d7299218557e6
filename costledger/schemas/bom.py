from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from costledger.core.enums import AllocationMethod, BomStatus


class BomComponentCreate(BaseModel):
    material_id: int
    quantity: Decimal = Field(gt=0)
    unit_of_measure: Optional[str] = None


class BomOverheadCreate(BaseModel):
    name: str = Field(min_length=1)
    allocation_method: AllocationMethod
    cost: Decimal = Field(ge=0)
    gl_account_code: str
    cost_category: Optional[str] = None


class BomOperationCreate(BaseModel):
    sequence: int
    name: str = Field(min_length=1)
    notes: Optional[str] = None


class BomCreate(BaseModel):
    finished_good_id: int
    bom_code: str = Field(min_length=1)
    version: Optional[int] = Field(default=None, ge=1)
    status: BomStatus = BomStatus.ACTIVE
    batch_size: Decimal = Field(default=Decimal("1"), gt=0)
    scrap_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    notes: Optional[str] = None
    components: list[BomComponentCreate] = Field(min_length=1)
    overheads: list[BomOverheadCreate] = []
    operations: list[BomOperationCreate] = []


class BomCreated(BaseModel):
    bom_id: int
    version: int


class BomComponentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    material_id: int
    quantity: Decimal
    unit_of_measure: Optional[str]


class BomOverheadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    cost_category: Optional[str]
    allocation_method: str
    cost: Decimal
    gl_account_code: str


class BomOperationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sequence: int
    name: str
    notes: Optional[str]


class BomSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    finished_good_id: int
    bom_code: str
    version: int
    status: str
    batch_size: Decimal
    scrap_percentage: Decimal
    notes: Optional[str]
    created_at: datetime


class BomResponse(BomSummary):
    components: list[BomComponentResponse]
    overheads: list[BomOverheadResponse]
    operations: list[BomOperationResponse]


class BomCostEstimateResponse(BaseModel):
    bom_id: int
    batch_quantity: Decimal
    material_unit_cost: Decimal
    overhead_unit_cost: Decimal
    pre_scrap_unit_cost: Decimal
    scrap_unit_cost: Decimal
    per_unit: Decimal
    material: Decimal
    overhead: Decimal
    scrap: Decimal
    total: Decimal
