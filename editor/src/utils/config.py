"""Engine configuration stored as JSON in the user's config directory"""

import os
import json
import logging
from dataclasses import dataclass, asdict, fields

from constants import (
    CONFIG_DIR, CONFIG_FILENAME,
    DEFAULT_INDENT_STEP, DEFAULT_CLONE_OFFSET_X, DEFAULT_CLONE_OFFSET_Y,
    DEFAULT_ROOT_NAME, DEFAULT_BASE_NAME,
)
from utils.logger import loggerRaise

_logger = logging.getLogger('EngineConfig')


@dataclass
class EngineConfig:
    """Tunable engine settings

    indent_step is the layers-panel indentation per depth level in pixels;
    the drag algorithm converts horizontal drag distance with it.
    """
    indent_step: float = DEFAULT_INDENT_STEP
    clone_offset_x: float = DEFAULT_CLONE_OFFSET_X
    clone_offset_y: float = DEFAULT_CLONE_OFFSET_Y
    root_name: str = DEFAULT_ROOT_NAME
    base_name: str = DEFAULT_BASE_NAME

    def __post_init__(self):
        if self.indent_step <= 0:
            raise ValueError(f"indent_step must be positive, got {self.indent_step}")

    @property
    def clone_offset(self):
        return (self.clone_offset_x, self.clone_offset_y)

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        """Build from a dictionary, ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


def default_config_path():
    return os.path.join(CONFIG_DIR, CONFIG_FILENAME)


def load_config(path=None):
    """Load engine settings

    Args:
        path: JSON file (defaults to the user config directory)

    Returns:
        EngineConfig (defaults when the file does not exist)
    """
    path = path or default_config_path()
    if not os.path.exists(path):
        _logger.debug(f"No config at {path}, using defaults")
        return EngineConfig()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Config root must be an object, got {type(data).__name__}")
        return EngineConfig.from_dict(data)
    except Exception as e:
        loggerRaise(e, f"Error loading config from {path}")


def save_config(config, path=None):
    """Write engine settings as JSON, creating the directory if needed"""
    path = path or default_config_path()
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(config.to_dict(), f, indent=2)
        _logger.debug(f"Saved config to {path}")
    except Exception as e:
        loggerRaise(e, "Error saving config")
