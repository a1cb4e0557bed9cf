# tests/conftest.py
"""Pytest configuration and shared fixtures."""

import pytest
from pathlib import Path
from typing import Dict, List, Sequence

from tests.mocks import MockLauncher

from scenario_runner.scenarios import Scenario, ScenarioAxis


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without subprocesses")
    config.addinivalue_line("markers", "integration: tests that run real commands")


def make_axis(source: str, scenarios: Dict[str, Dict[str, str]]) -> ScenarioAxis:
    """Build an axis from a mapping of scenario names to variables."""
    return ScenarioAxis(
        source=source,
        entries=tuple(Scenario(name=name, env=dict(env)) for name, env in scenarios.items()),
    )


def make_sized_axis(source: str, size: int) -> ScenarioAxis:
    """Build an axis of `size` scenarios named <source><i> with one variable each."""
    return make_axis(source, {f"{source}{i}": {source: str(i)} for i in range(size)})


NUMBERS = ["Number-One", "Number-Two", "Number-Three", "Number-Four"]
LETTERS = ["A", "B", "C", "D"]


@pytest.fixture
def numbers_axis() -> ScenarioAxis:
    """Four numbered scenarios."""
    return make_axis("numbers.ini", {name: {"NUMBER": str(i + 1)} for i, name in enumerate(NUMBERS)})


@pytest.fixture
def letters_axis() -> ScenarioAxis:
    """Four lettered scenarios."""
    return make_axis("letters.ini", {name: {"LETTER": name} for name in LETTERS})


@pytest.fixture
def numbers_file(tmp_path) -> Path:
    """Create numbers.ini."""
    path = tmp_path / "numbers.ini"
    lines: List[str] = []
    for i, name in enumerate(NUMBERS):
        lines.append(f"[{name}]")
        lines.append(f"NUMBER = {i + 1}")
        lines.append("")
    path.write_text("\n".join(lines))
    return path


@pytest.fixture
def letters_file(tmp_path) -> Path:
    """Create letters.ini."""
    path = tmp_path / "letters.ini"
    path.write_text("".join(f"[{name}]\nLETTER = {name}\n" for name in LETTERS))
    return path


@pytest.fixture
def languages_file(tmp_path) -> Path:
    """Create a scenario file with an English and a German scenario."""
    path = tmp_path / "languages.ini"
    path.write_text(
        "# Translations\n"
        "[English]\n"
        "test = test\n"
        "example = example\n"
        "\n"
        "[German]\n"
        "test = Test\n"
        "example = Beispiel\n"
    )
    return path


@pytest.fixture
def empty_file(tmp_path) -> Path:
    """Create a scenario file without scenarios."""
    path = tmp_path / "empty.ini"
    path.write_text("# nothing here\n")
    return path


@pytest.fixture
def mock_launcher() -> MockLauncher:
    """Provide a launcher that succeeds immediately."""
    return MockLauncher()


def expected_product(*names: Sequence[str], delimiter: str = ", ") -> List[str]:
    """Merged names in enumeration order, first list slowest."""
    result = [""]
    first = True
    for axis_names in names:
        if first:
            result = list(axis_names)
            first = False
        else:
            result = [f"{prefix}{delimiter}{name}" for prefix in result for name in axis_names]
    return result
