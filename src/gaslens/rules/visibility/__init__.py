"""Function visibility rules."""

from gaslens.rules.registry import registry
from gaslens.rules.visibility.gl001_external_visibility import RULE_GL_001, rule_gl001

# Register all visibility rules
registry.register(rule_gl001)

__all__ = [
    "RULE_GL_001",
    "rule_gl001",
]
