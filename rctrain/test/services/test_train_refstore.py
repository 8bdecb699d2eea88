from __future__ import annotations

from pathlib import Path

import pytest

from rctrain.core.result import Err, Ok, Result
from rctrain.git import repository as repository_mod
from rctrain.git.repository import Repository
from rctrain.platform.process import ProcessError
from rctrain.services.train.refstore import (
    GitRefStore,
    InMemoryRefStore,
    branch_ref,
    parse_ls_remote,
    tag_ref,
)

LS_REMOTE = "\n".join(
    [
        "1111111111111111111111111111111111111111\trefs/heads/main",
        "2222222222222222222222222222222222222222\trefs/heads/release/1.0.0-rc.0",
        "3333333333333333333333333333333333333333\trefs/tags/v0.9.0",
        "4444444444444444444444444444444444444444\trefs/tags/v0.9.0^{}",
        "5555555555555555555555555555555555555555\trefs/tags/lightweight",
        "6666666666666666666666666666666666666666\trefs/pull/1/head",
        "",
    ]
)


def test_parse_ls_remote_uses_peeled_tag_sha() -> None:
    listing = parse_ls_remote(LS_REMOTE)

    assert listing.branches == {
        "main": "1" * 40,
        "release/1.0.0-rc.0": "2" * 40,
    }
    assert listing.tags == {"v0.9.0": "4" * 40, "lightweight": "5" * 40}


def test_parse_ls_remote_empty() -> None:
    listing = parse_ls_remote("")
    assert listing.branches == {}
    assert listing.tags == {}


def test_full_ref_names() -> None:
    assert branch_ref("release/1.0.0-rc.0") == "refs/heads/release/1.0.0-rc.0"
    assert tag_ref("v1.0.0") == "refs/tags/v1.0.0"


class _FakeGit:
    def __init__(self, responses: list[Result[str, ProcessError]]) -> None:
        self.responses = responses
        self.calls: list[list[str]] = []

    def __call__(self, cmd: list[str], cwd: Path, env: dict[str, str] | None = None):
        del cwd, env
        self.calls.append(cmd)
        return self.responses.pop(0)


def _push_err(stderr: str, stdout: str = "") -> Err[ProcessError]:
    return Err(ProcessError(command=("git", "push"), returncode=1, stdout=stdout, stderr=stderr))


_FAILED = "error: failed to push some refs to '/srv/app.git'"


class TestGitRefStore:
    def test_list_refs(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        fake = _FakeGit([Ok(LS_REMOTE)])
        monkeypatch.setattr(repository_mod, "run_process", fake)

        result = GitRefStore(Repository(tmp_path), "origin").list_refs()

        assert isinstance(result, Ok)
        assert "release/1.0.0-rc.0" in result.value.branches
        assert fake.calls[0][3:] == ["ls-remote", "--heads", "--tags", "origin"]

    def test_list_refs_failure_is_network(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        fake = _FakeGit([_push_err("fatal: unable to access remote")])
        monkeypatch.setattr(repository_mod, "run_process", fake)

        result = GitRefStore(Repository(tmp_path), "origin").list_refs()

        assert isinstance(result, Err)
        assert result.error.kind == "network"

    def test_create_uses_must_not_exist_lease(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        fake = _FakeGit([Ok("")])
        monkeypatch.setattr(repository_mod, "run_process", fake)
        ref = branch_ref("release/1.0.0-rc.0")

        result = GitRefStore(Repository(tmp_path), "origin").create_ref(ref, "abc")

        assert result == Ok(None)
        assert fake.calls[0][3:] == [
            "push",
            "--porcelain",
            f"--force-with-lease={ref}:",
            "origin",
            f"abc:{ref}",
        ]

    def test_delete_uses_expected_sha_lease(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        fake = _FakeGit([Ok("")])
        monkeypatch.setattr(repository_mod, "run_process", fake)
        ref = branch_ref("release/1.0.0-rc.0")

        GitRefStore(Repository(tmp_path), "origin").delete_ref(ref, "abc")

        assert fake.calls[0][3:] == [
            "push",
            "--porcelain",
            f"--force-with-lease={ref}:abc",
            "origin",
            f":{ref}",
        ]

    @pytest.mark.parametrize(
        ("stderr", "stdout", "kind"),
        [
            (_FAILED, "!\tabc:refs/tags/v1.0.0\t[rejected] (stale info)\nDone", "conflict"),
            (_FAILED, "!\tabc:refs/tags/v1.0.0\t[rejected] (already exists)\nDone", "conflict"),
            ("fatal: could not read from remote repository", "", "network"),
        ],
    )
    def test_push_failure_classification(
        self,
        monkeypatch: pytest.MonkeyPatch,
        tmp_path: Path,
        stderr: str,
        stdout: str,
        kind: str,
    ) -> None:
        fake = _FakeGit([_push_err(stderr, stdout)])
        monkeypatch.setattr(repository_mod, "run_process", fake)

        result = GitRefStore(Repository(tmp_path), "origin").create_ref(tag_ref("v1.0.0"), "abc")

        assert isinstance(result, Err)
        assert result.error.kind == kind


class TestInMemoryRefStore:
    def test_create_rejects_existing(self) -> None:
        store = InMemoryRefStore(tags={"v1.0.0": "a"})

        result = store.create_ref(tag_ref("v1.0.0"), "b")

        assert isinstance(result, Err)
        assert result.error.kind == "conflict"
        assert store.tags == {"v1.0.0": "a"}

    def test_delete_requires_expected_sha(self) -> None:
        store = InMemoryRefStore(branches={"release/1.0.0-rc.0": "a"})

        moved = store.delete_ref(branch_ref("release/1.0.0-rc.0"), "b")
        deleted = store.delete_ref(branch_ref("release/1.0.0-rc.0"), "a")

        assert isinstance(moved, Err)
        assert moved.error.kind == "conflict"
        assert deleted == Ok(None)
        assert store.branches == {}
        assert store.operations == [("delete", "refs/heads/release/1.0.0-rc.0")]

    def test_on_list_hook_runs_after_listing(self) -> None:
        def sneak_in(store: InMemoryRefStore) -> None:
            store.branches["release/9.9.9-rc.0"] = "z"

        store = InMemoryRefStore(on_list=sneak_in)

        first = store.list_refs()

        assert isinstance(first, Ok)
        assert first.value.branches == {}
        assert "release/9.9.9-rc.0" in store.branches
