"""
Tests for exit-code classification.
"""

from pathlib import Path

import pytest

from robomirror.classifier import classify, classify_exit_code, skipped_missing
from robomirror.models import FolderEntry, InvocationResult, OutcomeKind


class TestClassifyExitCode:

    @pytest.mark.parametrize(
        "code, expected",
        [
            (0, OutcomeKind.SYNCED_NO_CHANGE),
            (1, OutcomeKind.COPIED),
            (2, OutcomeKind.COPIED),
            (3, OutcomeKind.COPIED),
            (4, OutcomeKind.SYNCED_NO_CHANGE),
            (5, OutcomeKind.COPIED),
            (6, OutcomeKind.COPIED),
            (7, OutcomeKind.COPIED),
        ],
    )
    def test_success_codes(self, code, expected):
        assert classify_exit_code(code) is expected

    @pytest.mark.parametrize("code", [8, 9, 15, 16, 24, 255, 1000])
    def test_failure_codes(self, code):
        assert classify_exit_code(code) is OutcomeKind.FAILED

    @pytest.mark.parametrize("code", range(0, 5))
    def test_low_codes_never_fail(self, code):
        assert classify_exit_code(code) is not OutcomeKind.FAILED

    def test_negative_code_fails(self):
        assert classify_exit_code(-9) is OutcomeKind.FAILED


class TestClassify:

    def _result(self, code):
        return InvocationResult("D:\\Music\\Jazz", "Z:\\Music\\Jazz", code, Path("x.log"))

    def test_carries_paths_and_code(self):
        outcome = classify(self._result(1))
        assert outcome.kind is OutcomeKind.COPIED
        assert outcome.source_path == "D:\\Music\\Jazz"
        assert outcome.dest_path == "Z:\\Music\\Jazz"
        assert outcome.exit_code == 1

    def test_mismatch_noted(self):
        outcome = classify(self._result(4))
        assert outcome.kind is OutcomeKind.SYNCED_NO_CHANGE
        assert "mismatch" in outcome.detail

    def test_skipped_missing(self):
        outcome = skipped_missing(FolderEntry("D:\\gone"))
        assert outcome.kind is OutcomeKind.SKIPPED_MISSING
        assert outcome.dest_path is None
        assert outcome.exit_code is None
