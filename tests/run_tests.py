#!/usr/bin/env python3
"""
Test runner for Smart File Sorter.

    python tests/run_tests.py                 # whole suite with coverage
    python tests/run_tests.py test_processor  # one module
    python tests/run_tests.py --no-cov -k watch
"""

import argparse
import os
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
COVERAGE_ARGS = [
    "--cov=smart_sorter",
    "--cov-report=term-missing",
    "--cov-report=html:htmlcov",
    "--cov-fail-under=70",
]


def build_command(modules, coverage=True, keyword=None):
    """Assemble the pytest command line."""
    targets = [
        f"tests/{name if name.endswith('.py') else name + '.py'}" for name in modules
    ] or ["tests/"]

    cmd = [sys.executable, "-m", "pytest", *targets, "--verbose", "--tb=short"]
    if keyword:
        cmd += ["-k", keyword]
    # Coverage thresholds only make sense for the whole suite
    if coverage and not modules:
        cmd += COVERAGE_ARGS
    return cmd


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the Smart File Sorter tests.")
    parser.add_argument("modules", nargs="*", help="test modules to run, e.g. test_rules")
    parser.add_argument("--no-cov", action="store_true", help="skip the coverage report")
    parser.add_argument("-k", dest="keyword", help="only run tests matching this expression")
    args = parser.parse_args(argv)

    os.chdir(PROJECT_ROOT)
    cmd = build_command(args.modules, coverage=not args.no_cov, keyword=args.keyword)

    try:
        subprocess.run(cmd, check=True)
    except subprocess.CalledProcessError as e:
        print(f"\n[ERROR] Tests failed with exit code {e.returncode}")
        return e.returncode

    print("\n[SUCCESS] All tests passed!")
    if "--cov=smart_sorter" in cmd:
        print("[INFO] Coverage report generated in htmlcov/")
    return 0


if __name__ == "__main__":
    sys.exit(main())
