"""Diagnostics subpackage (Layer 0 -- no internal dependencies)."""

from moqinterop.diagnostics.collector import DiagnosticCollector
from moqinterop.diagnostics.diagnostic import Diagnostic, DiagnosticSeverity
from moqinterop.diagnostics.location import SourceLocation

__all__ = ["SourceLocation", "DiagnosticSeverity", "Diagnostic", "DiagnosticCollector"]
