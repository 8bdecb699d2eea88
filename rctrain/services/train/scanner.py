from __future__ import annotations

from rctrain.core.result import Err, Ok, Result
from rctrain.services.train.errors import TrainError
from rctrain.services.train.model import RcBranch, RefListing, RefSnapshot
from rctrain.services.train.refstore import RefStore
from rctrain.services.train.semver import SemVer, parse_production_tag, parse_rc_branch


def build_snapshot(listing: RefListing) -> RefSnapshot:
    """Derive the release state from a raw listing.

    Refs that do not match the exact tag/branch patterns are ignored.
    """
    production: list[SemVer] = []
    for tag in listing.tags:
        v = parse_production_tag(tag)
        if v is not None:
            production.append(v)

    rc_branches: list[RcBranch] = []
    active: dict[SemVer, int] = {}
    for name, sha in listing.branches.items():
        parsed = parse_rc_branch(name)
        if parsed is None:
            continue
        version, n = parsed
        rc_branches.append(RcBranch(version=version, number=n, sha=sha))
        prev = active.get(version)
        active[version] = n if prev is None else max(prev, n)

    return RefSnapshot(
        latest_production_version=max(production) if production else None,
        active_trains=active,
        rc_branches=tuple(sorted(rc_branches)),
        branches=dict(listing.branches),
        tags=dict(listing.tags),
    )


def scan_refs(store: RefStore) -> Result[RefSnapshot, TrainError]:
    """Read the remote once and derive a snapshot; never partial, never mutating."""
    listing = store.list_refs()
    if isinstance(listing, Err):
        return listing
    return Ok(build_snapshot(listing.value))
