"""CLI tests for branchkeep -- tests all commands via Click's CliRunner.

Each test uses runner.isolated_filesystem() with file-backed databases
since CLI opens its own connection (separate from SDK setup).
"""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from branchkeep.cli import cli


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    """Create a Click test runner."""
    return CliRunner()


def _setup_repo(db_path: str) -> dict[str, str]:
    """Create a repository with a deleted feature stack, then close it.

    main: base. Former feature branch: f1 - f2 (f2 hidden).
    Returns the commit ids by name.
    """
    from branchkeep.repo import Repository

    with Repository.open(db_path) as repo:
        base = repo.commit("base").oid
        repo.create_branch("feature", switch=True)
        f1 = repo.commit("f1").oid
        f2 = repo.commit("f2").oid
        repo.checkout("main")
        repo.delete_branch("feature")
        repo.hide(f2)
    return {"base": base, "f1": f1, "f2": f2}


def _pinned(db_path: str) -> set[str]:
    from branchkeep.repo import Repository

    with Repository.open(db_path) as repo:
        return {info.commit_oid for info in repo.list_gc_refs()}


# ---------------------------------------------------------------------------
# gc
# ---------------------------------------------------------------------------


class TestGcCommand:
    def test_gc(self, runner):
        with runner.isolated_filesystem():
            oids = _setup_repo("test.db")
            result = runner.invoke(cli, ["--db", "test.db", "gc"])

            assert result.exit_code == 0, result.output
            assert "branchless: collecting garbage" in result.output
            assert "deleted 1" in result.output
            assert oids["f2"] not in _pinned("test.db")
            assert {oids["base"], oids["f1"]} <= _pinned("test.db")

    def test_gc_verbose(self, runner):
        with runner.isolated_filesystem():
            oids = _setup_repo("test.db")
            result = runner.invoke(cli, ["--db", "test.db", "gc", "-v"])
            assert result.exit_code == 0, result.output
            assert oids["f2"][:12] in result.output

    def test_gc_twice(self, runner):
        with runner.isolated_filesystem():
            _setup_repo("test.db")
            runner.invoke(cli, ["--db", "test.db", "gc"])
            result = runner.invoke(cli, ["--db", "test.db", "gc"])
            assert result.exit_code == 0
            assert "deleted 0" in result.output

    def test_db_from_env(self, runner):
        with runner.isolated_filesystem():
            _setup_repo("env.db")
            result = runner.invoke(cli, ["gc"], env={"BRANCHKEEP_DB": "env.db"})
            assert result.exit_code == 0, result.output
            assert "deleted 1" in result.output


# ---------------------------------------------------------------------------
# pin / hide / unhide
# ---------------------------------------------------------------------------


class TestPinCommand:
    def test_pin_after_gc(self, runner):
        with runner.isolated_filesystem():
            oids = _setup_repo("test.db")
            runner.invoke(cli, ["--db", "test.db", "gc"])

            result = runner.invoke(cli, ["--db", "test.db", "pin", oids["f2"][:10]])

            assert result.exit_code == 0, result.output
            assert f"Pinned {oids['f2'][:12]}" in result.output
            assert oids["f2"] in _pinned("test.db")

    def test_pin_unknown(self, runner):
        with runner.isolated_filesystem():
            _setup_repo("test.db")
            result = runner.invoke(cli, ["--db", "test.db", "pin", "nothing"])
            assert result.exit_code == 1
            assert "Error" in result.output


class TestHideCommands:
    def test_hide_then_gc(self, runner):
        with runner.isolated_filesystem():
            oids = _setup_repo("test.db")
            result = runner.invoke(cli, ["--db", "test.db", "hide", oids["f1"]])
            assert result.exit_code == 0, result.output
            assert f"Hid {oids['f1'][:12]}" in result.output

            runner.invoke(cli, ["--db", "test.db", "gc"])
            assert oids["f1"] not in _pinned("test.db")

    def test_unhide(self, runner):
        with runner.isolated_filesystem():
            oids = _setup_repo("test.db")
            runner.invoke(cli, ["--db", "test.db", "gc"])

            result = runner.invoke(cli, ["--db", "test.db", "unhide", oids["f2"]])

            assert result.exit_code == 0, result.output
            assert f"Unhid {oids['f2'][:12]}" in result.output
            assert oids["f2"] in _pinned("test.db")


# ---------------------------------------------------------------------------
# refs / log
# ---------------------------------------------------------------------------


class TestRefsCommand:
    def test_refs(self, runner):
        with runner.isolated_filesystem():
            oids = _setup_repo("test.db")
            result = runner.invoke(cli, ["--db", "test.db", "refs"])
            assert result.exit_code == 0, result.output
            assert oids["f2"][:12] in result.output
            assert "dangling" in result.output
            assert "visible" in result.output

    def test_refs_empty(self, runner):
        with runner.isolated_filesystem():
            from branchkeep.repo import Repository

            Repository.open("empty.db").close()
            result = runner.invoke(cli, ["--db", "empty.db", "refs"])
            assert result.exit_code == 0
            assert "No pinned commits" in result.output


class TestLogCommand:
    def test_log(self, runner):
        with runner.isolated_filesystem():
            oids = _setup_repo("test.db")
            result = runner.invoke(cli, ["--db", "test.db", "log"])
            assert result.exit_code == 0, result.output
            assert oids["base"][:8] in result.output
            assert "base" in result.output

    def test_log_limit(self, runner):
        with runner.isolated_filesystem():
            from branchkeep.repo import Repository

            with Repository.open("test.db") as repo:
                oids = [repo.commit(f"commit {i}").oid for i in range(3)]
            result = runner.invoke(cli, ["--db", "test.db", "log", "-n", "1"])
            assert result.exit_code == 0
            assert oids[2][:8] in result.output
            assert oids[0][:8] not in result.output


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    def test_missing_database(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["--db", "nope.db", "gc"])
            assert result.exit_code == 1
            assert "Database not found" in result.output

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("gc", "pin", "hide", "unhide", "refs", "log"):
            assert command in result.output
