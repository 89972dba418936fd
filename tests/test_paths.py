"""
Tests for confload.paths module.

Tests native <-> canonical path translation including:
- Drive-letter paths on Windows
- UNC paths on Windows
- Identity on other systems
"""

from __future__ import annotations

import pytest

from confload.paths import PathNormalizer


class TestWindows:
    """Tests for Windows path translation."""

    @pytest.fixture
    def normalizer(self) -> PathNormalizer:
        return PathNormalizer("nt")

    def test_drive_letter_to_canonical(self, normalizer):
        """Test that a drive-letter path gains a leading slash."""
        assert normalizer.to_canonical_path("C:\\a\\b") == "/C:/a/b"

    def test_drive_letter_to_native(self, normalizer):
        """Test that the leading slash is dropped for drive-letter paths."""
        assert normalizer.to_native_path("/C:/a/b") == "C:\\a\\b"

    def test_round_trip(self, normalizer):
        """Test that a drive-letter path survives canonical -> native."""
        native = "C:\\a\\b"
        assert normalizer.to_native_path(normalizer.to_canonical_path(native)) == native

    def test_relative_path_to_canonical(self, normalizer):
        """Test that relative paths only have their separators flipped."""
        assert normalizer.to_canonical_path("conf\\app.yaml") == "conf/app.yaml"

    def test_leading_separators_stripped(self, normalizer):
        """Test that leading separators are stripped without a drive letter."""
        assert normalizer.to_canonical_path("\\\\server\\share\\x") == "server/share/x"

    def test_unc_to_native(self, normalizer):
        """Test that non drive-letter paths become UNC paths."""
        assert normalizer.to_native_path("/server/share/x") == "\\\\server\\share\\x"

    def test_os_name_is_case_insensitive(self):
        """Test that 'Windows' is recognized as well as 'nt'."""
        assert PathNormalizer("Windows").is_windows
        assert PathNormalizer("nt").is_windows


class TestPosix:
    """Tests for non-Windows systems."""

    @pytest.mark.parametrize("os_name", ["posix", "linux", "darwin"])
    def test_both_directions_are_identity(self, os_name):
        """Test that no translation happens off Windows."""
        normalizer = PathNormalizer(os_name)

        assert not normalizer.is_windows
        assert normalizer.to_canonical_path("C:\\a\\b") == "C:\\a\\b"
        assert normalizer.to_native_path("/C:/a/b") == "/C:/a/b"
        assert normalizer.to_native_path("/etc/app.yaml") == "/etc/app.yaml"

    def test_defaults_to_running_os(self):
        """Test that the OS name defaults to os.name."""
        import os

        assert PathNormalizer().os_name == os.name
