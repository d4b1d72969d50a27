"""
Tests for building and running the robocopy invocation.
"""

import subprocess
from pathlib import Path

import pytest

from robomirror.errors import CopyToolFailure, DirectoryCreateError
from robomirror.invoker import CopyInvoker, build_copy_args
from robomirror.models import FolderEntry, RunConfig


def make_config(**overrides):
    values = dict(
        simulate_only=False,
        notify_enabled=False,
        destination_root="Z:\\",
        exclude_file_patterns=("*.tmp", "~$*"),
        exclude_dir_names=("$RECYCLE.BIN",),
        concurrency_level=8,
        retry_count=1,
        retry_wait_seconds=3,
    )
    values.update(overrides)
    return RunConfig(**values)


class RecordingRunner:
    def __init__(self, returncode=0, stderr="", exc=None):
        self.returncode = returncode
        self.stderr = stderr
        self.exc = exc
        self.calls = []

    def __call__(self, args, **kwargs):
        self.calls.append((args, kwargs))
        if self.exc is not None:
            raise self.exc
        return subprocess.CompletedProcess(args, self.returncode, "", self.stderr)


class TestBuildCopyArgs:

    def test_core_flags(self):
        args = build_copy_args("robocopy", "D:\\Music", "Z:\\Music", make_config(), Path("run_001.log"))
        assert args[:3] == ["robocopy", "D:\\Music", "Z:\\Music"]
        for flag in ("/MT:8", "/MIR", "/V", "/TS", "/FP", "/BYTES", "/R:1", "/W:3"):
            assert flag in args
        assert f"/UNILOG+:{Path('run_001.log')}" in args
        assert "/L" not in args

    def test_one_exclusion_flag_per_entry(self):
        args = build_copy_args("robocopy", "D:\\a", "Z:\\a", make_config(), Path("l.log"))
        assert args.count("/XF") == 2
        assert args.count("/XD") == 1
        xf = args.index("/XF")
        assert args[xf + 1] == "*.tmp"
        assert args[args.index("/XD") + 1] == "$RECYCLE.BIN"

    def test_simulate_adds_list_only(self):
        args = build_copy_args("robocopy", "D:\\a", "Z:\\a", make_config(simulate_only=True), Path("l.log"))
        assert args[-1] == "/L"

    def test_concurrency_at_least_one(self):
        args = build_copy_args("robocopy", "D:\\a", "Z:\\a", make_config(concurrency_level=0), Path("l.log"))
        assert "/MT:1" in args


class TestCopyInvoker:

    def test_runs_with_argument_list(self, tmp_path):
        runner = RecordingRunner(returncode=3)
        dest = tmp_path / "dest" / "My Music"
        src = "D:\\My Music\\Jazz Standards "
        result = CopyInvoker(runner=runner).invoke(
            FolderEntry(src), str(dest), make_config(), tmp_path / "logs" / "inv_001.log"
        )

        assert result.exit_code == 3
        assert result.source_path == src
        assert result.dest_path == str(dest)
        assert result.invocation_log_path == tmp_path / "logs" / "inv_001.log"
        assert dest.is_dir()

        args, kwargs = runner.calls[0]
        assert isinstance(args, list)
        assert args[1] == src
        assert kwargs["shell"] is False

    def test_exit_status_returned_verbatim(self, tmp_path):
        runner = RecordingRunner(returncode=16)
        result = CopyInvoker(runner=runner).invoke(
            FolderEntry("D:\\a"), str(tmp_path / "d"), make_config(), tmp_path / "l.log"
        )
        assert result.exit_code == 16

    def test_destination_create_failure_skips_tool(self, tmp_path):
        blocker = tmp_path / "afile"
        blocker.write_text("x")
        runner = RecordingRunner()
        with pytest.raises(DirectoryCreateError):
            CopyInvoker(runner=runner).invoke(
                FolderEntry("D:\\a"), str(blocker / "sub"), make_config(), tmp_path / "l.log"
            )
        assert runner.calls == []

    def test_log_directory_failure_skips_tool(self, tmp_path):
        blocker = tmp_path / "logs"
        blocker.write_text("x")
        runner = RecordingRunner()
        with pytest.raises(CopyToolFailure, match="log directory"):
            CopyInvoker(runner=runner).invoke(
                FolderEntry("D:\\a"), str(tmp_path / "d"), make_config(), blocker / "l.log"
            )
        assert runner.calls == []

    def test_launch_failure(self, tmp_path):
        runner = RecordingRunner(exc=FileNotFoundError("robocopy"))
        with pytest.raises(CopyToolFailure) as info:
            CopyInvoker(runner=runner).invoke(
                FolderEntry("D:\\a"), str(tmp_path / "d"), make_config(), tmp_path / "l.log"
            )
        assert info.value.exit_code is None

    def test_debug_line_with_path_length(self, tmp_path, log_messages):
        src = "D:\\Music\\Jazz "
        CopyInvoker(runner=RecordingRunner()).invoke(
            FolderEntry(src), str(tmp_path / "d"), make_config(), tmp_path / "l.log"
        )
        assert any(f"[{src}] length={len(src)}" in m for m in log_messages)
