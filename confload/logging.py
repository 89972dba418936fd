# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Logging interface for confload.

This module provides a configurable logging interface that library modules
use for output. The logger can be configured globally or passed as a
parameter to the resolver, fetchers and loader for better isolation.

The logger supports three output levels:
- Warning: Always printed to stderr (e.g., a response body failed to close)
- Verbose: Only printed when verbose mode is enabled
- Debug: Only printed when debug mode is enabled (implies verbose)

Example:
    Configure global logger:
        ```python
        from confload.logging import get_logger, set_global_logger

        set_global_logger(get_logger(verbose=True))
        ```

    Use with dependency injection:
        ```python
        from confload import IncludeLoader, YamlDocumentFactory
        from confload.logging import get_logger

        loader = IncludeLoader(YamlDocumentFactory(), logger=get_logger(debug=True))
        ```

Note:
    The default global logger is quiet: verbose and debug messages are
    dropped but warnings are still printed, so close failures on fetched
    resources are never lost.
"""

from __future__ import annotations

import sys
from typing import Protocol


class Logger(Protocol):
    """Protocol for logger implementations."""

    def verbose(self, prefix: str, message: str) -> None:
        """Print a verbose log message.

        Args:
            prefix: Message prefix (e.g., "FETCH", "INCLUDE").
            message: Log message.
        """
        ...

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug log message.

        Args:
            prefix: Message prefix (e.g., "HTTP", "RESOLVE").
            message: Log message.
        """
        ...

    def warning(self, prefix: str, message: str) -> None:
        """Print a warning for a non-fatal failure.

        Args:
            prefix: Message prefix (e.g., "HTTP", "STORAGE").
            message: Log message.
        """
        ...


class DefaultLogger:
    """Default logger implementation that prints to stdout/stderr."""

    def __init__(self, verbose: bool = False, debug: bool = False) -> None:
        """Initialize logger with verbosity settings.

        Args:
            verbose: If True, print verbose messages.
            debug: If True, print debug messages (implies verbose).
        """
        self._verbose = verbose or debug
        self._debug = debug

    def verbose(self, prefix: str, message: str) -> None:
        """Print a verbose log message (only when verbose mode is active)."""
        if self._verbose:
            print(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug log message (only when debug mode is active)."""
        if self._debug:
            print(f"[{prefix}] {message}")

    def warning(self, prefix: str, message: str) -> None:
        """Print a warning to stderr regardless of verbosity."""
        print(f"[{prefix}] Warning: {message}", file=sys.stderr)


class SilentLogger:
    """Logger that suppresses all output, warnings included."""

    def verbose(self, prefix: str, message: str) -> None:
        pass

    def debug(self, prefix: str, message: str) -> None:
        pass

    def warning(self, prefix: str, message: str) -> None:
        pass


_global_logger: Logger = DefaultLogger()


def get_logger(verbose: bool = False, debug: bool = False) -> Logger:
    """Get a logger instance with specified verbosity.

    Args:
        verbose: If True, logger will print verbose messages.
        debug: If True, logger will print debug messages (implies verbose).

    Returns:
        A logger instance configured with the specified verbosity.
    """
    return DefaultLogger(verbose=verbose, debug=debug)


def get_global_logger() -> Logger:
    """Get the global logger instance.

    Returns:
        The current global logger instance.
    """
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Set the global logger instance.

    Args:
        logger: Logger instance to use as the global logger.

    Note:
        This affects every component constructed without an explicit
        logger. Components look the global logger up at construction time.
    """
    global _global_logger
    _global_logger = logger
