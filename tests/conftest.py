"""
Pytest configuration and shared fixtures for confload tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from confload.locator import Locator


class RecordingLogger:
    """Logger that keeps every message for assertions."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str, str]] = []

    def verbose(self, prefix: str, message: str) -> None:
        self.messages.append(("verbose", prefix, message))

    def debug(self, prefix: str, message: str) -> None:
        self.messages.append(("debug", prefix, message))

    def warning(self, prefix: str, message: str) -> None:
        self.messages.append(("warning", prefix, message))

    def warnings(self) -> list[str]:
        return [m for level, _, m in self.messages if level == "warning"]


class MemoryFetcher:
    """Fetcher serving canned payloads and recording every request.

    Locators not in ``sources`` raise LoadFailedError(404).
    """

    def __init__(self, sources: dict[str, bytes]) -> None:
        self.sources = sources
        self.fetched: list[str] = []

    def fetch(self, locator: Locator) -> bytes:
        from confload.exceptions import LoadFailedError

        url = str(locator)
        self.fetched.append(url)
        if url not in self.sources:
            raise LoadFailedError(404, locator)
        return self.sources[url]


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("test.yaml", {"key": "value"})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create


@pytest.fixture
def memory_fetcher():
    """
    Factory fixture for in-memory fetchers.

    Usage:
        fetcher = memory_fetcher({"file:///cfg/a.yaml": b"name: a"})
    """
    return MemoryFetcher
