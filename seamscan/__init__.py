"""
seamscan

Static detection of code patterns that block test seams: places where a test
cannot substitute a collaborator.
"""

__version__ = "0.3.0"

from seamscan.config import ScanConfig
from seamscan.core.engine import AnalysisEngine
from seamscan.core.findings import Finding, Location, ScanReport, Severity
from seamscan.scanner import create_engine, scan_paths

__all__ = [
    "AnalysisEngine",
    "Finding",
    "Location",
    "ScanConfig",
    "ScanReport",
    "Severity",
    "create_engine",
    "scan_paths",
]
