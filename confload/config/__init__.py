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

"""Settings for the confload fetch and resolve layers.

Settings come from built-in defaults, an optional YAML file and keyword
overrides, merged key by key in that order (last wins).

Public API:

- FetchSettings: Immutable settings value
- load_settings: Build FetchSettings from defaults, a file and overrides

Example:
    Basic usage:

        from pathlib import Path
        from confload.config import load_settings

        settings = load_settings(Path("confload.yaml"), overrides={"dial_timeout": 5})

"""

from .loader import FetchSettings, load_settings

__all__ = ["FetchSettings", "load_settings"]
