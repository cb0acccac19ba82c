"""Static cost table for detected constructs.

All figures are heuristic (see ``gaslens.constants``). The table is versioned
so results can record which schedule produced them.
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from gaslens import constants
from gaslens.models.rules import OptimizationCategory
from gaslens.models.static import ConstructKind


@dataclass(frozen=True)
class CostSpec:
    """Cost of a single execution of a construct.

    Attributes:
        operation_name: Canonical operation label (e.g., "SSTORE")
        category: Cost category
        unit_cost: Gas for one execution
    """

    operation_name: str
    category: OptimizationCategory
    unit_cost: int


class CostModel:
    """Lookup table mapping construct kinds to base costs.

    Some kinds have variants selected by construct attributes: a storage
    write in a declaration initializer is a zero to non-zero SSTORE charged
    at deployment, contract creation is charged as CREATE, and memory
    allocations distinguish ``new`` arrays from plain declarations.
    """

    version = constants.COST_MODEL_VERSION

    BASE_COSTS: dict[ConstructKind, CostSpec] = {
        ConstructKind.STORAGE_READ: CostSpec("SLOAD", OptimizationCategory.STORAGE, constants.SLOAD),
        ConstructKind.STORAGE_WRITE: CostSpec("SSTORE", OptimizationCategory.STORAGE, constants.SSTORE),
        ConstructKind.LOOP: CostSpec("LOOP", OptimizationCategory.COMPUTATION, constants.LOOP_OVERHEAD),
        ConstructKind.EXTERNAL_CALL: CostSpec("CALL", OptimizationCategory.CALL, constants.CALL),
        ConstructKind.FUNCTION_DECL: CostSpec(
            "FUNCTION", OptimizationCategory.COMPUTATION, constants.FUNCTION_DECL
        ),
        ConstructKind.MEMORY_ALLOC: CostSpec("MSTORE", OptimizationCategory.MEMORY, constants.MSTORE),
    }

    # (kind, attribute, value) -> override
    VARIANTS: dict[tuple[ConstructKind, str, str], CostSpec] = {
        (ConstructKind.STORAGE_WRITE, "context", "initializer"): CostSpec(
            "SSTORE (init)", OptimizationCategory.DEPLOYMENT, constants.SSTORE_SET
        ),
        (ConstructKind.EXTERNAL_CALL, "call_type", "create"): CostSpec(
            "CREATE", OptimizationCategory.DEPLOYMENT, constants.CREATE
        ),
        (ConstructKind.MEMORY_ALLOC, "alloc", "new_array"): CostSpec(
            "MEMORY_EXPANSION", OptimizationCategory.MEMORY, constants.MEMORY_EXPANSION
        ),
    }

    def cost_of(
        self, kind: ConstructKind, attributes: Optional[Mapping[str, str]] = None
    ) -> CostSpec:
        """Resolve the cost of one execution of a construct.

        Args:
            kind: Construct kind
            attributes: Construct attributes used to select a variant

        Returns:
            CostSpec for the construct
        """
        if attributes:
            for (variant_kind, name, value), spec in self.VARIANTS.items():
                if variant_kind is kind and attributes.get(name) == value:
                    return spec
        return self.BASE_COSTS[kind]


default_cost_model = CostModel()


def cost_of(kind: ConstructKind, attributes: Optional[Mapping[str, str]] = None) -> CostSpec:
    """Resolve a construct's cost with the default cost model."""
    return default_cost_model.cost_of(kind, attributes)
