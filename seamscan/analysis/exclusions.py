"""
Per-rule exclusion and threshold resolution.

Keys follow the analyzer-option convention:

    dotnet_code_quality.SEAM001.excluded_types = T:MyNamespace.AllowedFactory
    dotnet_code_quality.SEAM004.excluded_methods = M:System.Console.WriteLine
    dotnet_code_quality.SEAM004.excluded_namespaces = MyNamespace.Internal
    dotnet_code_quality.SEAM020.cyclomatic_complexity_threshold = 30

Nothing here raises on bad input. A missing or malformed value resolves to
"exclude nothing" or the rule's default threshold.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

from seamscan.core.options import EMPTY_OPTIONS, OptionsProvider


logger = logging.getLogger(__name__)

OPTION_PREFIX = "dotnet_code_quality."

EXCLUDED_TYPES_SUFFIX = "excluded_types"
EXCLUDED_METHODS_SUFFIX = "excluded_methods"
EXCLUDED_NAMESPACES_SUFFIX = "excluded_namespaces"

TYPE_MARKER = "T:"
METHOD_MARKER = "M:"

_SEPARATORS = re.compile(r"[,;]")
_INTEGER = re.compile(r"^\s*[+-]?\d+\s*$")


def option_key(rule_id: str, suffix: str) -> str:
    return f"{OPTION_PREFIX}{rule_id}.{suffix}"


def parse_symbol_list(raw: Optional[str]) -> FrozenSet[str]:
    """Split a comma/semicolon separated list into an ordinal set of entries."""
    if raw is None or not raw.strip():
        return frozenset()
    entries = (entry.strip() for entry in _SEPARATORS.split(raw))
    return frozenset(entry for entry in entries if entry)


def parse_threshold(raw: Optional[str], default: int) -> int:
    if raw is None or not _INTEGER.match(raw):
        return default
    return int(raw)


@dataclass(frozen=True)
class RuleConfig:
    """Resolved configuration for one rule in one scope."""
    rule_id: str
    excluded_types: FrozenSet[str] = frozenset()
    excluded_methods: FrozenSet[str] = frozenset()
    excluded_namespaces: FrozenSet[str] = frozenset()
    thresholds: Mapping[str, int] = field(default_factory=dict)

    def threshold(self, name: str, default: Optional[int] = None) -> int:
        if name in self.thresholds:
            return self.thresholds[name]
        if default is None:
            raise KeyError(f"Rule {self.rule_id} declares no threshold named '{name}'")
        return default

    def is_type_excluded(self, type_name: Optional[str]) -> bool:
        if not self.excluded_types or not type_name:
            return False
        return f"{TYPE_MARKER}{type_name}" in self.excluded_types

    def is_method_excluded(self, containing_type: Optional[str], method_name: str) -> bool:
        if not self.excluded_methods or not containing_type:
            return False
        return f"{METHOD_MARKER}{containing_type}.{method_name}" in self.excluded_methods

    def is_in_excluded_namespace(self, namespace: Optional[str]) -> bool:
        """
        Check a namespace and each namespace enclosing it.

        `A.B.C` is tested as `A.B.C`, then `A.B`, then `A`. The global
        namespace ('') never matches.
        """
        if not self.excluded_namespaces or not namespace:
            return False
        current = namespace
        while current:
            if current in self.excluded_namespaces:
                return True
            current = current.rpartition(".")[0]
        return False


class ExclusionResolver:
    """
    Resolves RuleConfig values from an options provider.

    Results are cached per (rule id, scope, thresholds) for the lifetime of
    the resolver, which the engine ties to one analysis pass.
    """

    def __init__(self, options: Optional[OptionsProvider] = None):
        self.options = options or EMPTY_OPTIONS
        self._cache: Dict[Tuple[str, str, Tuple[Tuple[str, int], ...]], RuleConfig] = {}
        self._lock = threading.Lock()

    def resolve(
        self,
        rule_id: str,
        scope: str,
        thresholds: Optional[Mapping[str, int]] = None,
    ) -> RuleConfig:
        defaults = tuple(sorted((thresholds or {}).items()))
        cache_key = (rule_id, scope, defaults)
        with self._lock:
            cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        logger.debug("Resolving options for %s in %s", rule_id, scope)
        config = RuleConfig(
            rule_id=rule_id,
            excluded_types=self._symbol_list(rule_id, scope, EXCLUDED_TYPES_SUFFIX),
            excluded_methods=self._symbol_list(rule_id, scope, EXCLUDED_METHODS_SUFFIX),
            excluded_namespaces=self._symbol_list(rule_id, scope, EXCLUDED_NAMESPACES_SUFFIX),
            thresholds={
                name: self._threshold(rule_id, scope, name, default)
                for name, default in defaults
            },
        )
        with self._lock:
            return self._cache.setdefault(cache_key, config)

    def _lookup(self, scope: str, key: str) -> Optional[str]:
        try:
            return self.options.lookup(scope, key)
        except Exception:
            logger.exception("Option lookup for %s failed; treating it as unset", key)
            return None

    def _symbol_list(self, rule_id: str, scope: str, suffix: str) -> FrozenSet[str]:
        return parse_symbol_list(self._lookup(scope, option_key(rule_id, suffix)))

    def _threshold(self, rule_id: str, scope: str, name: str, default: int) -> int:
        key = option_key(rule_id, name)
        raw = self._lookup(scope, key)
        if raw is not None and raw.strip() and not _INTEGER.match(raw):
            logger.warning("Ignoring non-integer value %r for %s; using %d", raw, key, default)
        return parse_threshold(raw, default)
