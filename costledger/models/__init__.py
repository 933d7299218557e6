from costledger.models.account import Account
from costledger.models.bom import Bom, BomComponent, BomOperation, BomOverhead
from costledger.models.item import Material, Product
from costledger.models.journal import JournalVoucher, JournalVoucherLine
from costledger.models.production import (
    ProductionOrder,
    ProductionOrderConsumption,
    ProductionOrderCost,
)

__all__ = [
    "Account",
    "Bom",
    "BomComponent",
    "BomOperation",
    "BomOverhead",
    "JournalVoucher",
    "JournalVoucherLine",
    "Material",
    "Product",
    "ProductionOrder",
    "ProductionOrderConsumption",
    "ProductionOrderCost",
]
