"""Protocol-version compatibility classification."""

from __future__ import annotations

from collections.abc import Set
from enum import Enum


class VersionClassification(Enum):
    """How a relay's and a client's supported versions relate to the run target."""

    MATCHED_CURRENT = "matched-current"
    MATCHED_LEGACY = "matched-legacy"
    MISMATCHED = "mismatched"

    def __str__(self) -> str:
        return self.value


def classify_versions(
    relay_versions: Set[str],
    client_versions: Set[str],
    current_target: str,
) -> VersionClassification:
    """Classify a relay/client pair.

    Returns ``MATCHED_CURRENT`` when both sides support *current_target*,
    ``MATCHED_LEGACY`` when they share only other tags, and ``MISMATCHED``
    when they share nothing.
    """
    common = set(relay_versions) & set(client_versions)
    if current_target in common:
        return VersionClassification.MATCHED_CURRENT
    if common:
        return VersionClassification.MATCHED_LEGACY
    return VersionClassification.MISMATCHED
