import importlib.util
from pathlib import Path

import pytest


@pytest.fixture(scope="module")
def runner():
    spec = importlib.util.spec_from_file_location("run_tests", Path(__file__).parent / "run_tests.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_full_suite_with_coverage(runner):
    cmd = runner.build_command([])
    assert "tests/" in cmd
    assert "--cov=smart_sorter" in cmd


def test_no_cov_switch(runner):
    cmd = runner.build_command([], coverage=False)
    assert not [arg for arg in cmd if arg.startswith("--cov")]


def test_single_module_skips_coverage_threshold(runner):
    cmd = runner.build_command(["test_rules", "test_cli.py"], keyword="append")
    assert "tests/test_rules.py" in cmd
    assert "tests/test_cli.py" in cmd
    assert "--cov-fail-under=70" not in cmd
    assert cmd[cmd.index("-k") + 1] == "append"
