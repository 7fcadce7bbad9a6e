import os
from typing import Optional

import yaml

from seoaudit.exceptions import ConfigurationError


class OptionsFileStore:
    """Reads engine options from YAML files.

    A file holds a mapping of option names (snake_case or camelCase) to
    values, optionally nested under a top-level ``options`` key.
    """

    def __init__(self, *, options_dir: Optional[str] = None):
        self.options_dir = options_dir or os.getcwd()

    def _resolve_path(self, path: str) -> str:
        return path if os.path.isabs(path) else os.path.join(self.options_dir, path)

    def load(self, path: str) -> dict:
        full_path = self._resolve_path(path)
        if not os.path.isfile(full_path):
            raise ConfigurationError(f"Options file '{full_path}' not found")
        try:
            with open(full_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Options file '{full_path}' is not valid YAML: {e}") from e

        if data is None:
            return {}
        if isinstance(data, dict) and isinstance(data.get("options"), dict):
            data = data["options"]
        if not isinstance(data, dict):
            raise ConfigurationError(f"Options file '{full_path}' must contain a mapping")
        return data
