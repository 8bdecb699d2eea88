from __future__ import annotations

from rctrain.core.result import Err, Ok
from rctrain.services.train.errors import TrainError
from rctrain.services.train.model import RefListing
from rctrain.services.train.refstore import InMemoryRefStore
from rctrain.services.train.scanner import build_snapshot, scan_refs
from rctrain.services.train.semver import SemVer


def test_empty_repository() -> None:
    snapshot = build_snapshot(RefListing(branches={}, tags={}))

    assert snapshot.latest_production_version is None
    assert snapshot.active_trains == {}
    assert snapshot.rc_branches == ()
    assert snapshot.highest_active_version() is None
    assert snapshot.highest_rc() is None
    assert snapshot.latest_tag is None


def test_groups_trains_and_ignores_foreign_refs() -> None:
    listing = RefListing(
        branches={
            "main": "m",
            "release/1.2.0-rc.0": "a",
            "release/1.2.0-rc.2": "b",
            "release/1.3.0-rc.0": "c",
            "release/1.4-rc.0": "x",
            "feature/release/9.9.9-rc.9": "y",
        },
        tags={"v1.1.0": "t1", "v1.0.0": "t0", "v2.0.0-beta": "tb", "nightly": "tn"},
    )

    snapshot = build_snapshot(listing)

    assert snapshot.latest_production_version == SemVer(1, 1, 0)
    assert snapshot.latest_tag == "v1.1.0"
    assert snapshot.active_trains == {SemVer(1, 2, 0): 2, SemVer(1, 3, 0): 0}
    assert [b.name for b in snapshot.rc_branches] == [
        "release/1.2.0-rc.0",
        "release/1.2.0-rc.2",
        "release/1.3.0-rc.0",
    ]
    assert snapshot.highest_active_version() == SemVer(1, 3, 0)


def test_train_and_highest_rc() -> None:
    listing = RefListing(
        branches={
            "release/2.0.0-rc.10": "a",
            "release/2.0.0-rc.9": "b",
            "release/1.9.0-rc.12": "c",
        },
        tags={},
    )

    snapshot = build_snapshot(listing)

    assert [b.number for b in snapshot.train(SemVer(2, 0, 0))] == [9, 10]
    highest = snapshot.highest_rc()
    assert highest is not None
    assert highest.name == "release/2.0.0-rc.10"
    assert highest.sha == "a"


def test_scan_refs_reads_store_once() -> None:
    store = InMemoryRefStore(branches={"release/1.0.0-rc.0": "a"}, tags={"v0.9.0": "t"})

    result = scan_refs(store)

    assert isinstance(result, Ok)
    assert result.value.active_trains == {SemVer(1, 0, 0): 0}
    assert store.list_calls == 1
    assert store.operations == []


def test_scan_refs_propagates_read_failure() -> None:
    class FailingStore(InMemoryRefStore):
        def list_refs(self):  # type: ignore[override]
            return Err(TrainError(kind="network", message="failed to list refs on origin"))

    result = scan_refs(FailingStore())

    assert isinstance(result, Err)
    assert result.error.kind == "network"
