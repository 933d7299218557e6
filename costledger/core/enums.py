from enum import Enum


class AccountClass(str, Enum):
    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    EXPENSE = "Expense"
    COST_OF_GOODS_SOLD = "CostOfGoodsSold"


class BalanceSide(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class SystemRole(str, Enum):
    """Functional account roles looked up programmatically instead of by account code."""

    INVENTORY_RAW_MATERIAL = "INVENTORY_RAW_MATERIAL"
    INVENTORY_FINISHED_GOODS = "INVENTORY_FINISHED_GOODS"
    INVENTORY_WIP = "INVENTORY_WIP"
    COGS = "COGS"
    ACCOUNTS_RECEIVABLE = "ACCOUNTS_RECEIVABLE"
    ACCOUNTS_PAYABLE = "ACCOUNTS_PAYABLE"
    SALES_REVENUE = "SALES_REVENUE"


class VoucherStatus(str, Enum):
    DRAFT = "draft"
    POSTED = "posted"


class AllocationMethod(str, Enum):
    PER_UNIT = "per_unit"
    PER_BATCH = "per_batch"
    PERCENTAGE_OF_MATERIAL = "percentage_of_material"


class BomStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ProductionStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
