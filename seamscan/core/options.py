"""
Analyzer option lookup.

Options are flat `key = value` strings scoped to a file, the same shape an
.editorconfig produces. The core only ever asks `lookup(scope, key)`; where
the values came from is the host's business.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple


class OptionsProvider:
    """Interface for the configuration collaborator."""

    def lookup(self, scope: str, key: str) -> Optional[str]:
        raise NotImplementedError


def _stringify(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, set, frozenset)):
        return ",".join(str(item) for item in value)
    return str(value)


@dataclass(frozen=True)
class OptionSection:
    """Options that apply to files matching a glob."""
    pattern: str
    options: Mapping[str, str]

    def matches(self, scope: str) -> bool:
        normalized = scope.replace("\\", "/")
        if fnmatch.fnmatchcase(normalized, self.pattern):
            return True
        # Bare patterns like "*.cs" match on the file name, as in .editorconfig.
        if "/" not in self.pattern:
            return fnmatch.fnmatchcase(normalized.rsplit("/", 1)[-1], self.pattern)
        return False


@dataclass(frozen=True)
class MappingOptions(OptionsProvider):
    """
    Options backed by plain mappings.

    Global options apply to every scope; sections are applied in order on
    top of them, so a later matching section overrides an earlier one.
    """
    global_options: Mapping[str, str] = field(default_factory=dict)
    sections: Tuple[OptionSection, ...] = ()

    @classmethod
    def from_data(
        cls,
        options: Optional[Mapping[str, Any]] = None,
        sections: Optional[List[Mapping[str, Any]]] = None,
    ) -> "MappingOptions":
        global_options = {
            str(key): text
            for key, text in ((k, _stringify(v)) for k, v in (options or {}).items())
            if text is not None
        }
        parsed_sections = []
        for section in sections or []:
            section_options = {
                str(key): text
                for key, text in ((k, _stringify(v)) for k, v in (section.get("options") or {}).items())
                if text is not None
            }
            parsed_sections.append(OptionSection(str(section.get("files", "*")), section_options))
        return cls(global_options, tuple(parsed_sections))

    def lookup(self, scope: str, key: str) -> Optional[str]:
        value = self.global_options.get(key)
        for section in self.sections:
            if key in section.options and section.matches(scope):
                value = section.options[key]
        return value


EMPTY_OPTIONS = MappingOptions()
