"""Pairing subpackage (Layer 2 -- depends on registry)."""

from moqinterop.pairing.engine import PairFilter, PairPredicate, Trial, build
from moqinterop.pairing.versions import VersionClassification, classify_versions

__all__ = [
    "VersionClassification",
    "classify_versions",
    "Trial",
    "PairFilter",
    "PairPredicate",
    "build",
]
