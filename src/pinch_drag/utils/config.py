"""
Configuration loading.

Reads ``config/config.yaml`` and builds the typed configuration of every
component through its ``from_dict`` classmethod. Every key is optional;
missing sections fall back to the component defaults.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import yaml

from ..capture.camera import CameraConfig
from ..control.grab_state_machine import GrabStateMachineConfig
from ..control.object_registry import DraggableObject
from ..core.scheduler import SchedulerConfig
from ..detection.settings import HandDetectorConfig
from ..recognition.pinch_classifier import PinchClassifierConfig
from .visualization import VisualizerConfig

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
DEFAULT_CONFIG_PATH = os.path.join(_BASE_DIR, "config", "config.yaml")

DEFAULT_OBJECTS = [
    {"id": "banana", "asset_ref": "banana.png", "x": 100, "y": 100},
    {"id": "strawberry", "asset_ref": "strawberry.png", "x": 300, "y": 150},
    {"id": "watermelon", "asset_ref": "watermelon.png", "x": 200, "y": 300},
]


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    file: Optional[str] = None
    max_size_mb: int = 10
    backup_count: int = 3

    @classmethod
    def from_dict(cls, config: dict) -> "LoggingConfig":
        return cls(
            level=config.get("level", "INFO"),
            file=config.get("file"),
            max_size_mb=config.get("max_size_mb", 10),
            backup_count=config.get("backup_count", 3),
        )


@dataclass
class AppConfig:
    """Application configuration container."""
    camera: CameraConfig = field(default_factory=CameraConfig)
    mediapipe: HandDetectorConfig = field(default_factory=HandDetectorConfig)
    recognition: PinchClassifierConfig = field(default_factory=PinchClassifierConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    grab: GrabStateMachineConfig = field(default_factory=GrabStateMachineConfig)
    visualization: VisualizerConfig = field(default_factory=VisualizerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    objects: List[DraggableObject] = field(
        default_factory=lambda: [DraggableObject.from_dict(d) for d in DEFAULT_OBJECTS]
    )


def load_config(config_path: Optional[str] = None) -> dict:
    """Load configuration from YAML file. A missing file yields an empty dict."""
    config_path = config_path or DEFAULT_CONFIG_PATH
    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file not found: %s, using defaults", config_path)
        return {}

    if not isinstance(data, dict):
        raise ValueError(f"Config root must be a mapping, got {type(data).__name__}")
    logger.info("Loaded config from %s", config_path)
    return data


def _drop_nulls(value):
    if isinstance(value, dict):
        return {k: _drop_nulls(v) for k, v in value.items() if v is not None}
    return value


def _section(config_dict: dict, name: str) -> dict:
    """A config section with null keys removed; a null or missing section is empty."""
    section = config_dict.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping, got {type(section).__name__}")
    return _drop_nulls(section)


def create_app_config(config_dict: dict) -> AppConfig:
    """Create AppConfig from configuration dictionary.

    A null section or key falls back to its default.

    Raises:
        ValueError: a value is out of range or of the wrong type, or an
            object entry is malformed
    """
    objects = config_dict.get("objects")
    if objects is None:
        objects = DEFAULT_OBJECTS
    elif not isinstance(objects, list):
        raise ValueError(f"'objects' must be a list, got {type(objects).__name__}")

    try:
        return AppConfig(
            camera=CameraConfig.from_dict(_section(config_dict, "camera")),
            mediapipe=HandDetectorConfig.from_dict(_section(config_dict, "mediapipe")),
            recognition=PinchClassifierConfig.from_dict(_section(config_dict, "recognition")),
            scheduler=SchedulerConfig.from_dict(_section(config_dict, "scheduler")),
            grab=GrabStateMachineConfig.from_dict(_section(config_dict, "grab")),
            visualization=VisualizerConfig.from_dict(_section(config_dict, "visualization")),
            logging=LoggingConfig.from_dict(_section(config_dict, "logging")),
            objects=[DraggableObject.from_dict(_drop_nulls(d)) for d in objects],
        )
    except TypeError as e:
        raise ValueError(f"Invalid config value: {e}") from e
