"""Computation rules."""

from gaslens.rules.computation.gl201_loop_bound_caching import RULE_GL_201, rule_gl201
from gaslens.rules.registry import registry

# Register all computation rules
registry.register(rule_gl201)

__all__ = [
    "RULE_GL_201",
    "rule_gl201",
]
