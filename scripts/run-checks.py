#!/usr/bin/env python3
"""Run the ugc-migrate checks locally: formatting, linting, types and tests."""

import argparse
import subprocess
import sys
import time
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent.resolve()

_USE_COLOR = sys.stdout.isatty()


def _color(code: str, text: str) -> str:
    if _USE_COLOR:
        return f"\033[{code}m{text}\033[0m"
    return text


# Check name -> command
CHECKS: dict[str, list[str]] = {
    "format": [sys.executable, "-m", "ruff", "format", "--check", "."],
    "lint": [sys.executable, "-m", "ruff", "check", "."],
    "types": [sys.executable, "-m", "pyright"],
    "tests": [sys.executable, "-m", "pytest"],
}


def run_check(cmd: list[str]) -> tuple[bool, float]:
    """Run a single check and return (passed, duration_seconds)."""
    start = time.monotonic()
    result = subprocess.run(cmd, cwd=PROJECT_ROOT)
    return result.returncode == 0, time.monotonic() - start


def main() -> None:
    parser = argparse.ArgumentParser(description="Run ugc-migrate checks locally.")
    parser.add_argument(
        "checks",
        nargs="*",
        help="Checks to run (default: all).",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop on first failure instead of running all checks.",
    )
    args = parser.parse_args()

    selected = args.checks or list(CHECKS)
    unknown = [name for name in selected if name not in CHECKS]
    if unknown:
        parser.error(f"unknown checks: {', '.join(unknown)}")
    failed: list[str] = []

    for name in selected:
        print(_color("1", f"==> {name}"), flush=True)
        passed, elapsed = run_check(CHECKS[name])
        status = _color("32", "PASS") if passed else _color("31", "FAIL")
        print(f"{status} {name} ({elapsed:.1f}s)\n")

        if not passed:
            failed.append(name)
            if args.fail_fast:
                break

    if failed:
        print(_color("31", f"Failed: {', '.join(failed)}"))
        sys.exit(1)
    print(_color("32", f"All {len(selected)} checks passed"))


if __name__ == "__main__":
    main()
