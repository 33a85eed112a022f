#!/usr/bin/env python3
"""Run formatting checks and the test suite for HyperRec.

Runs isort, black and pytest in sequence from the project root.

Usage:
    python scripts/lint_all.py [--check] [--skip-tests] [-k EXPR]

Options:
    --check: Only report formatting problems, don't rewrite files
    --skip-tests: Skip running pytest
    -k: Forwarded to pytest to select tests by keyword
"""

import argparse
import subprocess
import sys
from pathlib import Path
from typing import List

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

# Directories checked by the formatters
SOURCE_DIRS = ["hyperrec", "tests", "scripts"]


def run_command(cmd: List[str], description: str) -> bool:
    """Run a command from the project root and report the outcome.

    Args:
        cmd: Command to run as list of strings
        description: Human-readable description of what's being run

    Returns:
        True if the command exited with code 0
    """
    print(f"\n{'=' * 60}")
    print(f"Running: {description}")
    print(f"Command: {' '.join(cmd)}")
    print(f"{'=' * 60}\n")

    try:
        result = subprocess.run(cmd, cwd=PROJECT_ROOT, check=False)
    except FileNotFoundError as e:
        print(f"\n✗ {e}: is the tool installed? Try: pip install -e '.[dev]'\n")
        return False

    if result.returncode == 0:
        print(f"\n✓ {description} passed\n")
        return True

    print(f"\n✗ {description} failed (exit code: {result.returncode})\n")
    return False


def formatter_commands(check_mode: bool) -> List[tuple]:
    isort_cmd = ["isort", *SOURCE_DIRS]
    black_cmd = ["black", *SOURCE_DIRS]
    if check_mode:
        isort_cmd.extend(["--check-only", "--diff"])
        black_cmd.extend(["--check", "--diff"])
    return [
        (isort_cmd, "isort (import sorting)"),
        (black_cmd, "black (code formatting)"),
    ]


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Run formatting checks and tests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only check formatting (don't modify files)",
    )
    parser.add_argument(
        "--skip-tests",
        action="store_true",
        help="Skip running pytest",
    )
    parser.add_argument(
        "-k",
        dest="keyword",
        default=None,
        help="Only run tests matching this keyword expression",
    )
    args = parser.parse_args()

    print("\n" + "=" * 60)
    print("HyperRec Code Quality Checks")
    print("=" * 60)

    results = [run_command(cmd, desc) for cmd, desc in formatter_commands(args.check)]

    if not args.skip_tests:
        pytest_cmd = ["pytest", "tests/", "-v"]
        if args.keyword:
            pytest_cmd.extend(["-k", args.keyword])
        results.append(run_command(pytest_cmd, "pytest (tests)"))

    print("\n" + "=" * 60)
    if all(results):
        print("✓ All checks passed!")
        print("=" * 60 + "\n")
        return 0

    print(f"✗ {results.count(False)} check(s) failed. Please fix the issues above.")
    print("=" * 60 + "\n")
    return 1


if __name__ == "__main__":
    sys.exit(main())
