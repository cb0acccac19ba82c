"""Optimization rule engine for gaslens.

Rules are automatically registered when imported.

Available rule categories:
- Visibility rules (GL-001): Function visibility tightening
- Storage rules (GL-101 to GL-102): Slot packing, storage access in loops
- Computation rules (GL-201): Loop bound caching
"""

# Import base classes and registry
from gaslens.rules.base import OptimizationRule
from gaslens.rules.executors import RuleExecutor, detect
from gaslens.rules.registry import registry

# Import all rule modules to trigger registration
import gaslens.rules.computation  # noqa: F401
import gaslens.rules.storage  # noqa: F401
import gaslens.rules.visibility  # noqa: F401

__all__ = [
    "OptimizationRule",
    "RuleExecutor",
    "detect",
    "registry",
]


def get_all_rules():
    """Get all registered rules.

    Returns:
        List of all rule instances in registration order
    """
    return registry.get_rules()


def get_rule_by_id(rule_id: str):
    """Get a specific rule by ID.

    Args:
        rule_id: Rule identifier (e.g., "GL-001")

    Returns:
        Rule instance if found, None otherwise
    """
    return registry.get_rule_by_id(rule_id)
