from __future__ import annotations

import pytest

from moqinterop.pairing import (
    PairFilter,
    VersionClassification,
    build,
    classify_versions,
)
from moqinterop.registry.model import TestCase

CASES = (TestCase("setup-only"), TestCase("announce-only"))


# ---------------------------------------------------------------------------
# Version classification
# ---------------------------------------------------------------------------


class TestClassifyVersions:
    @pytest.mark.parametrize(
        "relay, client, expected",
        [
            ({"draft-16"}, {"draft-16"}, VersionClassification.MATCHED_CURRENT),
            ({"draft-14", "draft-16"}, {"draft-16", "draft-15"}, VersionClassification.MATCHED_CURRENT),
            ({"draft-14", "draft-15"}, {"draft-15"}, VersionClassification.MATCHED_LEGACY),
            ({"draft-14"}, {"draft-16"}, VersionClassification.MISMATCHED),
            ({"draft-16"}, {"draft-14", "draft-15"}, VersionClassification.MISMATCHED),
        ],
    )
    def test_table(self, relay, client, expected):
        assert classify_versions(relay, client, "draft-16") is expected

    def test_target_on_one_side_only_is_legacy_when_overlap(self):
        result = classify_versions({"draft-15", "draft-16"}, {"draft-15"}, "draft-16")
        assert result is VersionClassification.MATCHED_LEGACY

    def test_str(self):
        assert str(VersionClassification.MATCHED_CURRENT) == "matched-current"


# ---------------------------------------------------------------------------
# Trial generation
# ---------------------------------------------------------------------------


class TestBuild:
    def test_single_pair(self, make_impl, make_registry, setup_only):
        registry = make_registry(
            make_impl("relay-a", relay=True), make_impl("client-b", client=True)
        )
        (trial,) = build(registry, (setup_only,), "draft-16")
        assert trial.key == ("relay-a", "client-b", "setup-only")
        assert trial.classification is VersionClassification.MATCHED_CURRENT
        assert trial.index == 0
        assert str(trial) == "relay-a <- client-b [setup-only]"

    def test_order_is_relay_client_testcase(self, make_impl, make_registry):
        registry = make_registry(
            make_impl("zeta", relay=True),
            make_impl("alpha", relay=True, client=True),
            make_impl("mid", client=True),
        )
        trials = build(registry, CASES, "draft-16")
        assert [t.key for t in trials] == [
            ("alpha", "alpha", "setup-only"),
            ("alpha", "alpha", "announce-only"),
            ("alpha", "mid", "setup-only"),
            ("alpha", "mid", "announce-only"),
            ("zeta", "alpha", "setup-only"),
            ("zeta", "alpha", "announce-only"),
            ("zeta", "mid", "setup-only"),
            ("zeta", "mid", "announce-only"),
        ]
        assert [t.index for t in trials] == list(range(8))

    def test_deterministic(self, make_impl, make_registry):
        impls = [
            make_impl("c", relay=True),
            make_impl("a", client=True),
            make_impl("b", relay=True, client=True),
        ]
        first = build(make_registry(*impls), CASES, "draft-16")
        second = build(make_registry(*reversed(impls)), CASES, "draft-16")
        assert first == second

    def test_mismatched_pairs_still_emitted(self, make_impl, make_registry, setup_only):
        registry = make_registry(
            make_impl("relay-a", ("draft-14",), relay=True),
            make_impl("client-b", ("draft-16",), client=True),
        )
        (trial,) = build(registry, (setup_only,), "draft-16")
        assert trial.classification is VersionClassification.MISMATCHED

    def test_classification_shared_across_test_cases(self, make_impl, make_registry):
        registry = make_registry(
            make_impl("relay-a", ("draft-15",), relay=True),
            make_impl("client-b", ("draft-15",), client=True),
        )
        trials = build(registry, CASES, "draft-16")
        assert {t.classification for t in trials} == {VersionClassification.MATCHED_LEGACY}

    def test_empty_inputs(self, make_impl, make_registry, setup_only):
        assert build(make_registry(), (setup_only,), "draft-16") == ()
        only_relays = make_registry(make_impl("relay-a", relay=True))
        assert build(only_relays, (setup_only,), "draft-16") == ()
        both = make_registry(make_impl("relay-a", relay=True), make_impl("client-b", client=True))
        assert build(both, (), "draft-16") == ()


class TestPairFilter:
    @pytest.fixture
    def registry(self, make_impl, make_registry):
        return make_registry(
            make_impl("r1", ("draft-16",), relay=True),
            make_impl("r2", ("draft-14",), relay=True),
            make_impl("c1", ("draft-16",), client=True),
            make_impl("c2", ("draft-16",), client=True),
        )

    def test_empty_filter_keeps_everything(self, registry, setup_only):
        assert len(build(registry, (setup_only,), "draft-16", PairFilter())) == 4

    def test_relay_selection(self, registry, setup_only):
        trials = build(registry, (setup_only,), "draft-16", PairFilter.of(relays=["r2"]))
        assert [t.key[:2] for t in trials] == [("r2", "c1"), ("r2", "c2")]

    def test_client_selection(self, registry, setup_only):
        trials = build(registry, (setup_only,), "draft-16", PairFilter.of(clients=["c2"]))
        assert [t.key[:2] for t in trials] == [("r1", "c2"), ("r2", "c2")]

    def test_exclude_mismatched(self, registry, setup_only):
        trials = build(
            registry, (setup_only,), "draft-16", PairFilter.of(exclude_mismatched=True)
        )
        assert {t.relay.identifier for t in trials} == {"r1"}

    def test_indices_are_dense_after_filtering(self, registry):
        trials = build(registry, CASES, "draft-16", PairFilter.of(clients=["c2"]))
        assert [t.index for t in trials] == [0, 1, 2, 3]

    def test_plain_callable(self, registry, setup_only):
        trials = build(
            registry,
            (setup_only,),
            "draft-16",
            lambda relay, client: relay.identifier == "r1" and client.identifier == "c1",
        )
        assert [t.key[:2] for t in trials] == [("r1", "c1")]
