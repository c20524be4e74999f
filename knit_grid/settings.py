"""Persistence for render parameters.

This module handles loading and saving ``KnitParams`` to and from a JSON
file, mirroring the last values the user picked.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Tuple

from .config import CONFIG_FILE, DEFAULT_PARAMS, KnitParams, get_preset

logger = logging.getLogger(__name__)


class ParamsStore:
    """Owns the current ``KnitParams`` snapshot and its settings file."""

    def __init__(self, config_path: Path = CONFIG_FILE):
        """Initialize the store.

        Args:
            config_path: JSON file to read and write (defaults to
                ~/.knit_grid_params.json)
        """
        self.config_path = Path(config_path)
        self.params = DEFAULT_PARAMS

    def load(self) -> KnitParams:
        """Load params from disk, merged over the defaults.

        Unreadable or invalid files are logged and the defaults are used.
        """
        params = DEFAULT_PARAMS
        if self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("settings file does not hold a JSON object")
                merged = DEFAULT_PARAMS.to_dict()
                merged.update(data)
                params = KnitParams.from_dict(merged)
                logger.info("Loaded render params from %s", self.config_path)
            except (OSError, ValueError, TypeError) as e:
                logger.warning("Could not load params from %s: %s", self.config_path, e)
        self.params = params
        return params

    def save(self, params: Optional[KnitParams] = None) -> Tuple[bool, Optional[str]]:
        """Save params to disk.

        Returns:
            Tuple of (success, error_message)
        """
        params = params or self.params
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w") as f:
                json.dump(params.to_dict(), f, indent=2)
        except OSError as e:
            logger.warning("Could not save params to %s: %s", self.config_path, e)
            return False, str(e)
        self.params = params
        return True, None

    def _commit(self, params: KnitParams) -> KnitParams:
        ok, error = self.save(params)
        if not ok:
            raise OSError(f"Could not save params to {self.config_path}: {error}")
        return params

    def update(self, key: str, value) -> KnitParams:
        """Change one parameter, persist, and return the new snapshot.

        Raises:
            KeyError: If ``key`` is not a render parameter.
            OSError: If the settings file cannot be written; the current
                snapshot is left unchanged.
        """
        if key not in self.params.to_dict():
            raise KeyError(f"Unknown parameter: {key}")
        return self._commit(self.params.replace(**{key: value}))

    def apply_preset(self, name: str) -> KnitParams:
        return self._commit(get_preset(name))
