"""Tests for CLI argument parsing and command output."""

from __future__ import annotations

from pathlib import Path

import pytest

from psfunctions import __version__
from psfunctions.cli import (
    _build_parser,
    _run_function,
    _run_list,
    _run_reload,
    main,
)
from psfunctions.constants import LocationState
from psfunctions.errors import ExtractionError
from psfunctions.fakes import FakeInvoker


class TestArgParser:
    def test_version_flag(self) -> None:
        args = _build_parser().parse_args(["--version"])
        assert args.version is True

    def test_list_defaults(self) -> None:
        args = _build_parser().parse_args(["list"])
        assert args.command == "list"
        assert args.fresh is False
        assert args.filter == ""
        assert args.script is None
        assert args.verbose is False

    def test_list_with_options(self) -> None:
        args = _build_parser().parse_args(
            ["--script", "~/x.ps1", "-v", "list", "--fresh", "-f", "get"]
        )
        assert args.script == "~/x.ps1"
        assert args.verbose is True
        assert args.fresh is True
        assert args.filter == "get"

    def test_run_requires_function(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["run"])

    def test_run_function(self) -> None:
        args = _build_parser().parse_args(["run", "Get-Status"])
        assert args.command == "run"
        assert args.function == "Get-Status"

    def test_no_command(self) -> None:
        args = _build_parser().parse_args([])
        assert args.command is None


class TestMain:
    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["--version"])
        assert capsys.readouterr().out.strip() == f"psfn {__version__}"

    def test_no_command_prints_help(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main([])
        assert "usage: psfn" in capsys.readouterr().out

    def test_invalid_path_exits_nonzero(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setenv(
            "PSFN_CACHE_URL", f"sqlite:///{tmp_path / 'cache.db'}"
        )
        with pytest.raises(SystemExit) as exc_info:
            main(["--script", str(tmp_path / "missing.ps1"), "list"])
        assert exc_info.value.code == 1
        assert "Invalid Path: File not found at:" in capsys.readouterr().err


class TestListCommand:
    async def test_prints_names(
        self, make_parts, sample_script: Path, capsys
    ) -> None:
        parts = make_parts(names=["Get-Status", "Get-Config"])
        await parts.session.configure(str(sample_script))

        ok = await _run_list(parts.session, fresh=False, query="")

        assert ok
        assert capsys.readouterr().out.splitlines() == [
            "Get-Status",
            "Get-Config",
        ]

    async def test_filter(self, make_parts, sample_script: Path, capsys) -> None:
        parts = make_parts(names=["Get-Status", "Get-Config"])
        await parts.session.configure(str(sample_script))

        await _run_list(parts.session, fresh=False, query="config")

        assert capsys.readouterr().out.splitlines() == ["Get-Config"]

    async def test_fresh_extracts_again(
        self, parts, sample_script: Path
    ) -> None:
        await parts.session.configure(str(sample_script))
        await _run_list(parts.session, fresh=True, query="")
        assert parts.extractions == 2

    async def test_empty_list(
        self, make_parts, sample_script: Path, capsys
    ) -> None:
        parts = make_parts(names=[])
        await parts.session.configure(str(sample_script))

        ok = await _run_list(parts.session, fresh=False, query="")

        assert ok
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "No Parameter-less Functions Found" in captured.err

    async def test_load_failure(
        self, make_parts, sample_script: Path, capsys
    ) -> None:
        parts = make_parts(
            structural_error=ExtractionError("a"),
            textual_error=ExtractionError("b"),
        )
        await parts.session.configure(str(sample_script))

        ok = await _run_list(parts.session, fresh=False, query="")

        assert not ok
        assert "Failed to read functions" in capsys.readouterr().err


class TestRunCommand:
    async def test_prints_output(
        self, parts, sample_script: Path, capsys
    ) -> None:
        await parts.session.configure(str(sample_script))

        ok = await _run_function(parts.session, "Get-Status")

        assert ok
        assert capsys.readouterr().out.strip() == "OK"

    async def test_failure(
        self, make_parts, sample_script: Path, capsys
    ) -> None:
        parts = make_parts(invoker=FakeInvoker(error="Access denied"))
        await parts.session.configure(str(sample_script))

        ok = await _run_function(parts.session, "Get-Status")

        assert not ok
        assert (
            'Failed to Execute "Get-Status": Access denied'
            in capsys.readouterr().err
        )

    async def test_unknown_name(
        self, parts, sample_script: Path, capsys
    ) -> None:
        await parts.session.configure(str(sample_script))

        ok = await _run_function(parts.session, "Nope")

        assert not ok
        assert "is not a function in" in capsys.readouterr().err
        assert parts.invoker.calls == []


class TestReloadCommand:
    async def test_reports_count(
        self, make_parts, sample_script: Path, capsys
    ) -> None:
        parts = make_parts(names=["A", "B"])
        await parts.session.configure(str(sample_script))

        ok = await _run_reload(parts.session)

        assert ok
        assert capsys.readouterr().out.strip() == "Reloaded 2 functions"

    async def test_reports_failure(
        self, parts, tmp_path: Path, capsys
    ) -> None:
        view = await parts.session.configure(str(tmp_path / "none.ps1"))
        assert view.location_state == LocationState.PATH_INVALID

        ok = await _run_reload(parts.session)

        assert not ok
        assert "Reload failed: File not found at:" in capsys.readouterr().err
