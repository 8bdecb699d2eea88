from __future__ import annotations

from pathlib import Path

from rctrain.core.result import Err, Ok
from rctrain.git.repository import CommitInfo
from rctrain.services.train.errors import TrainError
from rctrain.services.train.model import RefListing
from rctrain.services.train.refstore import InMemoryRefStore
from rctrain.services.train.scanner import build_snapshot
from rctrain.services.train.semver import SemVer
from rctrain.services.train.status import StatusOptions, build_status, recommend
from rctrain.services.train.worktree import InMemoryWorktree


def _commit(n: int, subject: str = "change") -> CommitInfo:
    return CommitInfo(
        sha=f"{n:040x}",
        author=f"dev{n}",
        date="2024-05-01 10:00:00 +0000",
        subject=subject,
    )


class TestRecommend:
    def test_active_train_suggests_promote(self) -> None:
        snapshot = build_snapshot(
            RefListing(branches={"release/1.2.0-rc.0": "a", "release/1.2.0-rc.3": "b"}, tags={})
        )

        rec = recommend(snapshot)

        assert rec.kind == "promote"
        assert "release/1.2.0-rc.3" in rec.summary
        assert rec.commands == (
            "rctrain promote --rc release/1.2.0-rc.3",
            "rctrain cut --replace",
        )

    def test_rc_zero_is_still_recommended(self) -> None:
        snapshot = build_snapshot(RefListing(branches={"release/1.2.0-rc.0": "a"}, tags={}))
        assert recommend(snapshot).commands[0] == "rctrain promote --rc release/1.2.0-rc.0"

    def test_already_released_train_is_not_promoted(self) -> None:
        snapshot = build_snapshot(
            RefListing(branches={"release/2.0.0-rc.3": "c"}, tags={"v2.0.0": "c"})
        )

        rec = recommend(snapshot, commits_since=2)

        assert rec.kind == "cut"
        assert rec.commands == ("rctrain cut --bump patch --dry-run", "rctrain cut --bump patch")

    def test_skips_released_train_for_older_open_one(self) -> None:
        snapshot = build_snapshot(
            RefListing(
                branches={"release/1.3.0-rc.1": "a", "release/2.0.0-rc.0": "b"},
                tags={"v1.2.0": "t", "v2.0.0": "b"},
            )
        )

        rec = recommend(snapshot)

        assert rec.kind == "promote"
        assert rec.commands[0] == "rctrain promote --rc release/1.3.0-rc.1"

    def test_no_release_yet(self) -> None:
        rec = recommend(build_snapshot(RefListing(branches={}, tags={})))
        assert rec.kind == "start"
        assert rec.commands == ("rctrain cut --bump minor --replace",)

    def test_no_new_commits(self) -> None:
        snapshot = build_snapshot(RefListing(branches={}, tags={"v1.0.0": "t"}))
        rec = recommend(snapshot, commits_since=0)
        assert rec.kind == "idle"
        assert rec.commands == ()

    def test_manifest_ahead_of_release(self) -> None:
        snapshot = build_snapshot(RefListing(branches={}, tags={"v1.0.0": "t"}))

        rec = recommend(snapshot, commits_since=4, manifest_version=SemVer(1, 1, 0))

        assert rec.kind == "cut"
        assert rec.commands == (
            "rctrain cut --version 1.1.0 --dry-run",
            "rctrain cut --version 1.1.0",
        )

    def test_falls_back_to_patch_bump(self) -> None:
        snapshot = build_snapshot(RefListing(branches={}, tags={"v1.0.0": "t"}))

        rec = recommend(snapshot, manifest_version=SemVer(1, 0, 0))

        assert rec.commands[-1] == "rctrain cut --bump patch"
        assert "1.0.1" in rec.summary


class TestBuildStatus:
    def _options(self, **kwargs: object) -> StatusOptions:
        return StatusOptions(remote="origin", mainline="main", **kwargs)  # type: ignore[arg-type]

    def test_full_report(self, tmp_path: Path) -> None:
        manifest = tmp_path / "package.json"
        manifest.write_text('{"version": "1.3.0"}', encoding="utf-8")
        store = InMemoryRefStore(
            branches={"main": "m", "release/1.3.0-rc.1": "r"},
            tags={"v1.2.0": "t"},
        )
        since = [_commit(i) for i in range(1, 6)]
        worktree = InMemoryWorktree(
            root=tmp_path,
            branch="release/1.3.0-rc.1",
            history={
                "v1.2.0": [_commit(100, "release")],
                "origin/release/1.3.0-rc.1": [_commit(200, "rc")],
                "v1.2.0..origin/release/1.3.0-rc.1": [_commit(200), _commit(201)],
                "v1.2.0..origin/main": since,
            },
        )

        result = build_status(
            store=store,
            worktree=worktree,
            options=self._options(
                verbose=True, show_commits=True, max_commits=3, manifest=manifest
            ),
        )

        assert isinstance(result, Ok)
        report = result.value
        assert report.latest is not None
        assert report.latest.tag == "v1.2.0"
        assert report.latest.commit == _commit(100, "release")
        assert len(report.trains) == 1
        assert report.trains[0].branch.name == "release/1.3.0-rc.1"
        assert report.trains[0].ahead == 2
        assert report.commits is not None
        assert report.commits.total == 5
        assert len(report.commits.shown) == 3
        assert report.commits.hidden == 2
        assert report.on_rc_branch is True
        assert report.recommendation.kind == "promote"
        assert store.operations == []
        assert worktree.syncs == 1

    def test_empty_repository(self, tmp_path: Path) -> None:
        result = build_status(
            store=InMemoryRefStore(branches={"main": "m"}),
            worktree=InMemoryWorktree(root=tmp_path),
            options=self._options(show_commits=True),
        )

        assert isinstance(result, Ok)
        report = result.value
        assert report.latest is None
        assert report.trains == ()
        assert report.commits is None
        assert report.recommendation.kind == "start"

    def test_missing_commit_metadata_degrades(self, tmp_path: Path) -> None:
        result = build_status(
            store=InMemoryRefStore(branches={"release/2.0.0-rc.0": "r"}, tags={"v1.0.0": "t"}),
            worktree=InMemoryWorktree(root=tmp_path),
            options=self._options(verbose=True),
        )

        assert isinstance(result, Ok)
        assert result.value.latest is not None
        assert result.value.latest.commit is None
        assert result.value.trains[0].commit is None
        assert result.value.trains[0].ahead == 0

    def test_sync_failure_is_a_warning(self, tmp_path: Path) -> None:
        class OfflineWorktree(InMemoryWorktree):
            def sync(self):  # type: ignore[override]
                return Err(TrainError(kind="network", message="failed to fetch from origin"))

        result = build_status(
            store=InMemoryRefStore(),
            worktree=OfflineWorktree(root=tmp_path),
            options=self._options(),
        )

        assert isinstance(result, Ok)
        assert any("failed to fetch" in w for w in result.value.warnings)

    def test_idle_when_no_commits_since_release(self, tmp_path: Path) -> None:
        result = build_status(
            store=InMemoryRefStore(branches={"main": "m"}, tags={"v1.0.0": "t"}),
            worktree=InMemoryWorktree(root=tmp_path),
            options=self._options(show_commits=True),
        )

        assert isinstance(result, Ok)
        assert result.value.commits is not None
        assert result.value.commits.total == 0
        assert result.value.recommendation.kind == "idle"
