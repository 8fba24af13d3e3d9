"""
Seam rules.

Importing this package registers every rule with the global registry.
"""

from seamscan.rules import (
    complexity,
    direct_dependencies,
    global_state,
    infrastructure,
    inheritance_blockers,
    static_dependencies,
)

__all__ = [
    "complexity",
    "direct_dependencies",
    "global_state",
    "infrastructure",
    "inheritance_blockers",
    "static_dependencies",
]
