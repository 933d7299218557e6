"""
Bill-of-materials cost rollup.

Pure functions over plain values: no session, no I/O. The same rollup serves
pre-order estimates and post-completion reconciliation against actual costs.

For a batch of q units:
  material   = q * sum(component.quantity * component.average_unit_cost)
  overhead   = sum of each overhead's batch amount
                 per_unit               -> cost * q
                 per_batch              -> cost
                 percentage_of_material -> material * cost / 100
  scrap      = (material + overhead) * scrap_percentage / 100
  total      = material + overhead + scrap
Per-unit figures are the batch figures divided by q.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Sequence, Union

from costledger.core.enums import AllocationMethod
from costledger.core.errors import InvalidBatchSize

HUNDRED = Decimal("100")

Number = Union[Decimal, int, float, str]


def _dec(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class ComponentCost:
    quantity: Decimal  # per finished unit
    average_unit_cost: Decimal
    material_id: Optional[int] = None


@dataclass(frozen=True)
class OverheadCost:
    name: str
    allocation_method: AllocationMethod
    cost: Decimal


@dataclass(frozen=True)
class BomCostInput:
    components: Sequence[ComponentCost] = field(default_factory=tuple)
    overheads: Sequence[OverheadCost] = field(default_factory=tuple)
    scrap_percentage: Decimal = Decimal("0")


@dataclass(frozen=True)
class BatchCostEstimate:
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


def require_positive_quantity(batch_quantity: Number) -> Decimal:
    q = _dec(batch_quantity)
    if q <= 0:
        raise InvalidBatchSize(f"Batch quantity must be positive, got {batch_quantity}")
    return q


def material_unit_cost(components: Sequence[ComponentCost]) -> Decimal:
    total = Decimal("0")
    for c in components:
        total += _dec(c.quantity) * _dec(c.average_unit_cost)
    return total


def planned_overhead_amount(overhead: OverheadCost, material_unit: Decimal, quantity: Number) -> Decimal:
    """Batch-level amount of one overhead for a production run of `quantity` units."""
    q = require_positive_quantity(quantity)
    method = AllocationMethod(overhead.allocation_method)
    cost = _dec(overhead.cost)

    if method is AllocationMethod.PER_UNIT:
        return cost * q
    if method is AllocationMethod.PER_BATCH:
        # fixed per batch; not spread and re-multiplied, so no rounding drift
        return cost
    return material_unit * q * (cost / HUNDRED)


def estimate_batch_cost(bom: BomCostInput, batch_quantity: Number) -> BatchCostEstimate:
    q = require_positive_quantity(batch_quantity)

    material_unit = material_unit_cost(bom.components)
    material = material_unit * q

    overhead = Decimal("0")
    for o in bom.overheads:
        overhead += planned_overhead_amount(o, material_unit, q)

    scrap = (material + overhead) * (_dec(bom.scrap_percentage) / HUNDRED)
    total = material + overhead + scrap

    # batch figures are exact; unit figures are derived from them
    overhead_unit = overhead / q
    scrap_unit = scrap / q

    return BatchCostEstimate(
        batch_quantity=q,
        material_unit_cost=material_unit,
        overhead_unit_cost=overhead_unit,
        pre_scrap_unit_cost=material_unit + overhead_unit,
        scrap_unit_cost=scrap_unit,
        per_unit=total / q,
        material=material,
        overhead=overhead,
        scrap=scrap,
        total=total,
    )
