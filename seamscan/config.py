"""
Configuration for the seamscan host.

Supports YAML and JSON configuration files. The analysis core never reads
these files; it only sees the resolved options through `ScanConfig.options()`.

Example YAML config:

```yaml
rules:
  enabled:
    - SEAM004
  disabled:
    - SEAM013
  severities:
    SEAM016: error

options:
  dotnet_code_quality.SEAM020.cyclomatic_complexity_threshold: 30
  dotnet_code_quality.SEAM004.excluded_namespaces: MyCompany.Internal

sections:
  - files: "src/Legacy/**"
    options:
      dotnet_code_quality.SEAM015.excluded_types: T:Legacy.FileStore

reporting:
  format: text
  fail_on_severity: warning

engine:
  max_workers: 4
```
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from seamscan.core.findings import Severity
from seamscan.core.options import MappingOptions
from seamscan.errors import ConfigError


logger = logging.getLogger(__name__)

# Default configuration file names to search for
CONFIG_FILE_NAMES = [
    ".seamscan.yaml",
    ".seamscan.yml",
    ".seamscan.json",
]

REPORT_FORMATS = ("text", "json", "sarif")

DEFAULT_CONFIG: Dict[str, Any] = {
    "version": 1,
    "rules": {
        "enabled": [],
        "disabled": [],
        "severities": {},
    },
    "options": {},
    "sections": [],
    "reporting": {
        "format": "text",
        "fail_on_severity": "warning",
    },
    "engine": {
        "max_workers": 4,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _parse_severity(value: Any, where: str) -> Severity:
    try:
        return Severity(str(value).lower())
    except ValueError:
        choices = ", ".join(s.value for s in Severity)
        raise ConfigError(f"Invalid severity '{value}' for {where}; expected one of: {choices}") from None


def load_config_data(path: str) -> Dict[str, Any]:
    """Read a YAML or JSON configuration file into a mapping."""
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {path}")
    raw = config_path.read_text(encoding="utf-8")
    try:
        if config_path.suffix.lower() == ".json":
            data = json.loads(raw)
        else:
            data = yaml.safe_load(raw) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot parse config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")
    return data


def find_config(start_path: str = ".") -> Optional[str]:
    """
    Find a configuration file by searching up the directory tree.

    Returns the path to the first config file found, or None.
    """
    current = Path(start_path).resolve()
    if current.is_file():
        current = current.parent

    while True:
        for name in CONFIG_FILE_NAMES:
            config_path = current / name
            if config_path.exists():
                return str(config_path)
        if current == current.parent:
            return None
        current = current.parent


@dataclass(frozen=True)
class ScanConfig:
    data: Dict[str, Any]
    source: Optional[str] = None

    @classmethod
    def default(cls) -> "ScanConfig":
        return cls(copy.deepcopy(DEFAULT_CONFIG))

    @classmethod
    def from_dict(cls, overrides: Dict[str, Any], source: Optional[str] = None) -> "ScanConfig":
        config = cls(_deep_merge(DEFAULT_CONFIG, overrides), source)
        config.validate()
        return config

    @classmethod
    def load(cls, path: Optional[str]) -> "ScanConfig":
        if not path:
            return cls.default()
        logger.debug("Loading configuration from %s", path)
        return cls.from_dict(load_config_data(path), source=path)

    @classmethod
    def discover(cls, start_path: str = ".") -> "ScanConfig":
        """Load the nearest config file above `start_path`, or the defaults."""
        return cls.load(find_config(start_path))

    def validate(self) -> None:
        if self.report_format() not in REPORT_FORMATS:
            raise ConfigError(
                f"Unknown report format '{self.report_format()}'; expected one of: {', '.join(REPORT_FORMATS)}"
            )
        self.fail_on_severity()
        for rule_id in self.severity_overrides():
            self.rule_severity(rule_id, Severity.INFO)
        if not isinstance(self.data.get("sections", []), list):
            raise ConfigError("'sections' must be a list of {files, options} mappings")
        if self.max_workers() < 1:
            raise ConfigError("'engine.max_workers' must be at least 1")

    def _rules(self) -> Dict[str, Any]:
        return self.data.get("rules", {}) or {}

    def enabled_rules(self) -> List[str]:
        return list(self._rules().get("enabled", []) or [])

    def disabled_rules(self) -> List[str]:
        return list(self._rules().get("disabled", []) or [])

    def rule_enabled(self, rule_id: str, enabled_by_default: bool) -> bool:
        if rule_id in self.disabled_rules():
            return False
        return enabled_by_default or rule_id in self.enabled_rules()

    def severity_overrides(self) -> Dict[str, str]:
        return dict(self._rules().get("severities", {}) or {})

    def rule_severity(self, rule_id: str, default: Severity) -> Severity:
        override = self.severity_overrides().get(rule_id)
        if override is None:
            return default
        return _parse_severity(override, f"rules.severities.{rule_id}")

    def options(self) -> MappingOptions:
        return MappingOptions.from_data(self.data.get("options"), self.data.get("sections"))

    def reporting(self) -> Dict[str, Any]:
        return self.data.get("reporting", {}) or {}

    def report_format(self) -> str:
        return str(self.reporting().get("format", "text"))

    def fail_on_severity(self) -> Severity:
        return _parse_severity(self.reporting().get("fail_on_severity", "warning"), "reporting.fail_on_severity")

    def max_workers(self) -> int:
        try:
            return int((self.data.get("engine", {}) or {}).get("max_workers", 4))
        except (TypeError, ValueError):
            raise ConfigError("'engine.max_workers' must be an integer") from None


def create_default_config() -> str:
    """Default configuration file content, as YAML."""
    return yaml.safe_dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False)
