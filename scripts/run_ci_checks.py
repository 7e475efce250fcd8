#!/usr/bin/env python3
# =============================================================================
# CFSA v1.0.0 -- CI CHECKS RUNNER
# File:   scripts/run_ci_checks.py
# =============================================================================
#
# PURPOSE
# -------
# Runs full CI gate in two sequential stages:
#   Stage 1: pytest (all tests + coverage enforcement >= 90%)
#   Stage 2: usage example smoke run
#
# Exit codes:
#   0 -- All stages passed.
#   1 -- Stage 1 (pytest) failed.
#   2 -- Stage 2 (usage example) failed.
#
# Usage:
#   python scripts/run_ci_checks.py
#
# Requires the test extra: pip install -e .[test]
# =============================================================================

from __future__ import annotations

import subprocess
import sys
import pathlib

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
_REPO_ROOT = pathlib.Path(__file__).parent.parent
_PYTHON    = sys.executable

_COVERAGE_FLOOR: int = 90


def _separator(char: str = "=", width: int = 72) -> str:
    return char * width


def _run(cmd: list[str], label: str) -> int:
    """
    Run a subprocess command, stream stdout/stderr live, return exit code.
    """
    print(_separator())
    print(f"CI STAGE: {label}")
    print(f"CMD:      {' '.join(cmd)}")
    print(_separator("-"))
    sys.stdout.flush()

    proc = subprocess.run(
        cmd,
        cwd=str(_REPO_ROOT),
    )
    return proc.returncode


def _fail(stage: str, rc: int) -> None:
    print(_separator())
    print(f"CI RESULT: FAIL  [stage={stage}  exit_code={rc}]")
    print(f"Merge BLOCKED: {stage} stage did not pass.")
    print(_separator())
    sys.stdout.flush()


def main() -> int:
    print(_separator())
    print("CFSA CI GATE -- starting")
    print(_separator())
    sys.stdout.flush()

    # ------------------------------------------------------------------
    # Stage 1: pytest + coverage (pytest-cov)
    # A non-zero exit code means tests failed or coverage < floor.
    # ------------------------------------------------------------------
    pytest_rc = _run(
        [
            _PYTHON, "-m", "pytest",
            "--cov=cfsa",
            "--cov-report=term-missing",
            f"--cov-fail-under={_COVERAGE_FLOOR}",
        ],
        f"pytest (tests + coverage >= {_COVERAGE_FLOOR}%)",
    )
    if pytest_rc != 0:
        _fail("pytest", pytest_rc)
        return 1

    print(_separator("-"))
    print("CI STAGE pytest: PASS")
    sys.stdout.flush()

    # ------------------------------------------------------------------
    # Stage 2: usage example
    # The example drives a full monitor cycle end to end.
    # ------------------------------------------------------------------
    example_rc = _run(
        [_PYTHON, str(_REPO_ROOT / "usage_example.py")],
        "usage example (end-to-end monitor cycle)",
    )
    if example_rc != 0:
        _fail("example", example_rc)
        return 2

    print(_separator("-"))
    print("CI STAGE example: PASS")

    # ------------------------------------------------------------------
    # All stages passed.
    # ------------------------------------------------------------------
    print(_separator())
    print("CI RESULT: PASS  [stages=pytest,example]")
    print("Merge permitted.")
    print(_separator())
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
