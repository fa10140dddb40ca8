"""Pairing engine: expand a registry into an ordered list of trials."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from moqinterop.pairing.versions import VersionClassification, classify_versions
from moqinterop.registry.model import Implementation, Registry, TestCase

PairPredicate = Callable[[Implementation, Implementation], bool]


@dataclass(frozen=True)
class Trial:
    """One (relay, client, test case) execution unit.

    ``index`` is the trial's position in pairing order; the matrix sorts on
    it so reports do not depend on worker scheduling.
    """

    relay: Implementation
    client: Implementation
    test_case: TestCase
    classification: VersionClassification
    index: int

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.relay.identifier, self.client.identifier, self.test_case.identifier)

    def __str__(self) -> str:
        return f"{self.relay} <- {self.client} [{self.test_case}]"


@dataclass(frozen=True)
class PairFilter:
    """Scope a run to selected relays/clients.

    Empty selections mean "everything". ``exclude_mismatched`` drops pairs
    that share no protocol version; by default they still run.
    """

    relays: frozenset[str] = frozenset()
    clients: frozenset[str] = frozenset()
    exclude_mismatched: bool = False

    @classmethod
    def of(
        cls,
        relays: Iterable[str] | None = None,
        clients: Iterable[str] | None = None,
        exclude_mismatched: bool = False,
    ) -> PairFilter:
        return cls(frozenset(relays or ()), frozenset(clients or ()), exclude_mismatched)

    def __call__(self, relay: Implementation, client: Implementation) -> bool:
        if self.relays and relay.identifier not in self.relays:
            return False
        if self.clients and client.identifier not in self.clients:
            return False
        if self.exclude_mismatched and not (relay.versions & client.versions):
            return False
        return True


def build(
    registry: Registry,
    test_cases: Sequence[TestCase],
    current_target: str,
    pair_filter: PairPredicate | None = None,
) -> tuple[Trial, ...]:
    """Produce every trial for *registry* in deterministic order.

    Relays sorted by identifier, then clients sorted by identifier, then test
    cases in declaration order. Classification is computed here, once.
    """
    trials: list[Trial] = []
    for relay in registry.relays():
        for client in registry.clients():
            if pair_filter is not None and not pair_filter(relay, client):
                continue
            classification = classify_versions(relay.versions, client.versions, current_target)
            for test_case in test_cases:
                trials.append(
                    Trial(
                        relay=relay,
                        client=client,
                        test_case=test_case,
                        classification=classification,
                        index=len(trials),
                    )
                )
    return tuple(trials)
