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

"""Settings loading for confload.

The fetch and resolve layers are tuned by a small set of values (timeouts,
connection pool size, local-file fallback). They have built-in defaults and
can be overridden from a YAML file and from keyword arguments, in that
order:

    1. **Built-in defaults** (FetchSettings field defaults)
    2. **Settings file** (the ``fetch:`` mapping of a YAML file)
    3. **Keyword overrides** (``load_settings(..., overrides={...})``)

Merge Behavior:
    Every setting is a scalar, so layers merge key by key with "last wins"
    semantics. A key missing from a layer keeps the value from the layer
    below.

Settings File Format:
    ```yaml
    fetch:
      dial_timeout: 5
      read_timeout: 20
      local_fallback: false
    ```

Error Handling:
    - ConfigError: Settings file doesn't exist, YAML parse errors, a
        non-mapping root, unknown keys or values of the wrong type
    - All errors are chained with "from err" for better debugging

Example:
    Basic usage:
        ```python
        from pathlib import Path
        from confload.config import load_settings

        settings = load_settings(Path("confload.yaml"))
        print(settings.dial_timeout)
        ```
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from confload.exceptions import ConfigError
from confload.logging import Logger, get_global_logger

SETTINGS_KEY = "fetch"

DEFAULT_USER_AGENT = "confload/0.1 (+https://github.com/RogerCibrian/confload)"


# -------------------------------
# Data types
# -------------------------------


@dataclass(frozen=True)
class FetchSettings:
    """Tunables for fetching and resolving locators.

    Attributes:
        max_idle_connections: Size of the HTTP connection pool.
        dial_timeout: Seconds allowed to open a connection (TCP and TLS).
        keep_alive: TCP keep-alive idle time and probe interval in seconds.
        read_timeout: Seconds a connection may sit idle while reading.
        local_fallback: Retry a failed local file read as a ``file://``
            request through the HTTP transport instead of failing.
        user_agent: User-Agent header sent with HTTP requests.
        os_name: OS identifier for path translation. None means the
            running interpreter's ``os.name``.
    """

    max_idle_connections: int = 100
    dial_timeout: float = 30.0
    keep_alive: float = 30.0
    read_timeout: float = 90.0
    local_fallback: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    os_name: str | None = None


_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "max_idle_connections": (int,),
    "dial_timeout": (int, float),
    "keep_alive": (int, float),
    "read_timeout": (int, float),
    "local_fallback": (bool,),
    "user_agent": (str,),
    "os_name": (str, type(None)),
}


# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> Any:
    """
    Load a YAML file and return the parsed Python object.

    An empty file yields an empty dict.

    Raises:
      ConfigError - when the file does not exist or is invalid YAML
    """
    if not p.exists():
        raise ConfigError(f"settings file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    return {} if data is None else data


# -------------------------------
# Validation
# -------------------------------


def _validate(values: dict[str, Any]) -> None:
    known = {f.name for f in fields(FetchSettings)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(
            f"Unknown settings key(s): {', '.join(unknown)}. "
            f"Available: {', '.join(sorted(known))}"
        )

    for key, value in values.items():
        allowed = _FIELD_TYPES[key]
        # bool is an int subclass; only accept it where bool is expected
        if isinstance(value, bool) and bool not in allowed:
            raise ConfigError(f"Setting {key!r} must not be a boolean")
        if not isinstance(value, allowed):
            names = " or ".join(t.__name__ for t in allowed)
            raise ConfigError(
                f"Setting {key!r} must be {names}, got {type(value).__name__}"
            )


# -------------------------------
# Public API
# -------------------------------


def load_settings(
    path: Path | None = None,
    *,
    overrides: dict[str, Any] | None = None,
    logger: Logger | None = None,
) -> FetchSettings:
    """Load fetch settings from defaults, an optional file and overrides.

    Args:
        path: Optional YAML settings file. Its top-level ``fetch`` mapping
            is merged over the defaults; other top-level keys are ignored.
        overrides: Values merged last, keyed by FetchSettings field name.
        logger: Logger for verbose output. Defaults to the global logger.

    Returns:
        The effective settings.

    Raises:
        ConfigError: On a missing or invalid settings file, unknown keys or
            values of the wrong type.
    """
    logger = logger or get_global_logger()

    merged: dict[str, Any] = asdict(FetchSettings())

    if path is not None:
        path = Path(path)
        logger.verbose("CONFIG", f"Loading settings: {path}")
        doc = _load_yaml_file(path)
        if not isinstance(doc, dict):
            raise ConfigError(
                f"top-level YAML must be a mapping (dict): {path}"
            )
        section = doc.get(SETTINGS_KEY) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"'{SETTINGS_KEY}' must be a mapping (dict): {path}")
        _validate(section)
        merged = {**merged, **section}

    if overrides:
        _validate(overrides)
        merged = {**merged, **overrides}

    settings = FetchSettings(**merged)
    logger.debug("CONFIG", f"Effective settings: {settings}")
    return settings
