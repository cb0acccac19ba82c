"""Storage layout and storage access rules."""

from gaslens.rules.registry import registry
from gaslens.rules.storage.gl101_storage_packing import RULE_GL_101, rule_gl101
from gaslens.rules.storage.gl102_storage_in_loop import RULE_GL_102, rule_gl102

# Register all storage rules
registry.register(rule_gl101)
registry.register(rule_gl102)

__all__ = [
    "RULE_GL_101",
    "RULE_GL_102",
    "rule_gl101",
    "rule_gl102",
]
