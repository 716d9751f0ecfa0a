"""
Configuration utilities for the simulation engine.
Engine-wide defaults live in EngineSettings; overrides can be loaded from
an engine_config.json file next to the calling application.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional, Tuple

from errors import InvalidConfiguration

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = 'engine_config.json'


@dataclass
class EngineSettings:
    """Defaults shared by the orchestrator and scenario analysis"""
    default_iterations: int = 10_000
    progress_interval: int = 1_000  # Report progress every N iterations
    confidence_levels: Tuple[float, ...] = (0.90, 0.95, 0.99)
    var_confidence: float = 0.95
    risk_free_rate: float = 0.0  # Annual, used for Sharpe/Sortino
    significance_level: float = 0.05
    validation_bins: int = 10
    engine_version: str = "1.0.0"

    def __post_init__(self):
        self.confidence_levels = tuple(float(level) for level in self.confidence_levels)
        self._validate()

    def _validate(self):
        """Validate settings values"""
        if not isinstance(self.default_iterations, int) or self.default_iterations < 1:
            raise InvalidConfiguration(
                f"default_iterations must be a positive integer, got {self.default_iterations!r}")
        if not isinstance(self.progress_interval, int) or self.progress_interval < 1:
            raise InvalidConfiguration(
                f"progress_interval must be a positive integer, got {self.progress_interval!r}")
        for level in self.confidence_levels:
            if not 0 < level < 1:
                raise InvalidConfiguration(f"Confidence levels must be in (0, 1), got {level}")
        if not 0 < self.var_confidence < 1:
            raise InvalidConfiguration(f"var_confidence must be in (0, 1), got {self.var_confidence}")
        if not 0 < self.significance_level < 1:
            raise InvalidConfiguration(
                f"significance_level must be in (0, 1), got {self.significance_level}")
        if not isinstance(self.validation_bins, int) or self.validation_bins < 2:
            raise InvalidConfiguration(f"validation_bins must be at least 2, got {self.validation_bins!r}")


def get_default_settings() -> EngineSettings:
    """Get engine settings with every default applied"""
    return EngineSettings()


def settings_from_dict(config: Dict[str, Any]) -> EngineSettings:
    """Build EngineSettings from a dictionary, ignoring unknown keys"""
    known = {f.name for f in fields(EngineSettings)}
    unknown = sorted(set(config) - known)
    if unknown:
        logger.warning("Ignoring unknown engine settings: %s", ", ".join(unknown))
    return EngineSettings(**{key: value for key, value in config.items() if key in known})


def load_engine_settings(path: Optional[str] = None) -> EngineSettings:
    """
    Load engine settings from a JSON file.

    Args:
        path: JSON file to read. Defaults to engine_config.json in the
            working directory; a missing default file yields defaults.

    Returns:
        EngineSettings object
    """
    filepath = path or DEFAULT_CONFIG_FILE
    if not os.path.exists(filepath):
        if path is not None:
            raise InvalidConfiguration(f"Engine config file not found: {filepath}")
        logger.debug("No %s found, using default engine settings", filepath)
        return get_default_settings()

    with open(filepath, 'r') as f:
        try:
            config = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidConfiguration(f"Invalid JSON in {filepath}: {e}") from e

    if not isinstance(config, dict):
        raise InvalidConfiguration(f"{filepath} must contain a JSON object")

    logger.debug("Loaded %d engine settings from %s", len(config), filepath)
    return settings_from_dict(config)


def save_engine_settings(settings: EngineSettings, path: str = DEFAULT_CONFIG_FILE) -> None:
    """Save engine settings to a JSON file"""
    config = asdict(settings)
    config['confidence_levels'] = list(config['confidence_levels'])
    with open(path, 'w') as f:
        json.dump(config, f, indent=2)
    logger.debug("Saved engine settings to %s", path)
