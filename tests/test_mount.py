"""
Tests for mapping the network share with 'net use'.
"""

import subprocess

import pytest

from robomirror.errors import MountError
from robomirror.models import Credentials
from robomirror.mount import NetUseShareMounter, mounted_share

CREDS = Credentials("CORP\\backup", "s3cret")


class NetRunner:
    def __init__(self, returncodes=(0,), stderr=""):
        self.returncodes = list(returncodes)
        self.stderr = stderr
        self.calls = []

    def __call__(self, args, **kwargs):
        self.calls.append(args)
        code = self.returncodes.pop(0) if self.returncodes else 0
        return subprocess.CompletedProcess(args, code, "", self.stderr if code else "")


class TestNetUseShareMounter:

    def test_picks_highest_free_letter(self):
        runner = NetRunner()
        mounter = NetUseShareMounter(runner=runner, drive_in_use=lambda letter: letter in "ZY")
        root = mounter.acquire(CREDS, "\\\\nas\\backup")
        assert root == "X:\\"
        assert runner.calls[0] == [
            "net", "use", "X:", "\\\\nas\\backup", "s3cret", "/user:CORP\\backup", "/persistent:no",
        ]

    def test_no_free_letter(self):
        runner = NetRunner()
        mounter = NetUseShareMounter(runner=runner, drive_in_use=lambda letter: True)
        with pytest.raises(MountError, match="No free drive letter"):
            mounter.acquire(CREDS, "\\\\nas\\backup")
        assert runner.calls == []

    def test_auth_failure(self):
        runner = NetRunner(returncodes=[2], stderr="System error 1326 has occurred.")
        mounter = NetUseShareMounter(runner=runner, drive_in_use=lambda letter: False)
        with pytest.raises(MountError) as info:
            mounter.acquire(CREDS, "\\\\nas\\backup")
        assert "1326" in info.value.message
        assert "s3cret" not in info.value.message

    def test_release(self):
        runner = NetRunner()
        NetUseShareMounter(runner=runner, drive_in_use=lambda letter: False).release("X:\\")
        assert runner.calls[0] == ["net", "use", "X:", "/delete", "/y"]

    def test_release_failure_is_logged_not_raised(self, log_messages):
        runner = NetRunner(returncodes=[2], stderr="The network connection could not be found.")
        NetUseShareMounter(runner=runner, drive_in_use=lambda letter: False).release("X:\\")
        assert any("Releasing X:" in m for m in log_messages)


class TestMountedShare:

    def test_released_on_error(self):
        runner = NetRunner()
        mounter = NetUseShareMounter(runner=runner, drive_in_use=lambda letter: False)
        with pytest.raises(ValueError):
            with mounted_share(mounter, CREDS, "\\\\nas\\backup") as root:
                assert root == "Z:\\"
                raise ValueError("interrupted")
        assert runner.calls[-1] == ["net", "use", "Z:", "/delete", "/y"]
