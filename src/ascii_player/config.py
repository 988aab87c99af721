"""
ascii-player Configuration
==========================

This module handles configuration loading for the player.

Configuration Sources (in order of precedence):
    1. Command-line flags (highest priority, applied by main)
    2. Environment variables
    3. config.yaml file
    4. Default values (lowest priority)

Environment Variable Mapping:
    ASCII_PLAYER_FILE          -> source.file_path
    ASCII_PLAYER_FALLBACK_FPS  -> source.fallback_fps
    ASCII_PLAYER_ROWS          -> grid.rows
    ASCII_PLAYER_COLUMNS       -> grid.columns
    ASCII_PLAYER_CELL_ASPECT   -> grid.cell_aspect
    ASCII_PLAYER_RAMP          -> glyphs.ramp
    ASCII_PLAYER_RAMP_ORDER    -> glyphs.order
    ASCII_PLAYER_GAMMA         -> conversion.gamma
    ASCII_PLAYER_LOG_LEVEL     -> logging.level

Example:
    from ascii_player.config import load_config, setup_logging
    
    settings = load_config()
    setup_logging(settings)
    print(settings.grid.rows, settings.glyphs.ramp)
"""

import os
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from ascii_player.convert.downsample import DEFAULT_CELL_ASPECT
from ascii_player.convert.glyphs import DEFAULT_RAMP, RampOrder


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class SourceConfig(BaseModel):
    """Video source configuration."""
    
    file_path: Optional[str] = Field(
        default=None,
        description="Path of the video file to play",
    )
    fallback_fps: float = Field(
        default=30.0,
        gt=0,
        description="Frame rate used when the container declares none",
    )


class GridConfig(BaseModel):
    """Character grid configuration."""
    
    rows: Optional[int] = Field(
        default=None,
        ge=1,
        description="Target character rows (None = fit terminal)",
    )
    columns: Optional[int] = Field(
        default=None,
        ge=1,
        description="Target character columns (None = fit terminal)",
    )
    cell_aspect: float = Field(
        default=DEFAULT_CELL_ASPECT,
        gt=0,
        le=4.0,
        description="Width / height of one terminal cell",
    )


class GlyphConfig(BaseModel):
    """Glyph ramp configuration."""
    
    ramp: str = Field(
        default=DEFAULT_RAMP,
        description="Ramp characters in the declared order",
    )
    order: RampOrder = Field(
        default=RampOrder.DARK_TO_LIGHT,
        description="Whether the ramp is written dark_to_light or light_to_dark",
    )
    
    @field_validator("ramp")
    @classmethod
    def _ramp_has_contrast(cls, value: str) -> str:
        if len(set(value)) < 2:
            raise ValueError("ramp needs at least two distinct characters")
        if "\n" in value or "\r" in value:
            raise ValueError("ramp must not contain line breaks")
        return value


class ConversionConfig(BaseModel):
    """Brightness conversion configuration."""
    
    gamma: float = Field(
        default=1.0,
        gt=0,
        le=10.0,
        description="Tone curve exponent applied to cell brightness",
    )


class PlaybackConfig(BaseModel):
    """Playback pacing configuration."""
    
    log_every_n_frames: int = Field(
        default=120,
        ge=0,
        description="Log pacing drift every N frames (0 = never)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""
    
    level: str = Field(default="WARNING", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for ascii-player.
    
    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """
    
    source: SourceConfig = Field(default_factory=SourceConfig)
    grid: GridConfig = Field(default_factory=GridConfig)
    glyphs: GlyphConfig = Field(default_factory=GlyphConfig)
    conversion: ConversionConfig = Field(default_factory=ConversionConfig)
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> Settings:
    """
    Load configuration from YAML file and environment variables.
    
    Priority (highest to lowest):
        1. overrides (command-line flags)
        2. Environment variables
        3. YAML config file
        4. Default values
    
    Args:
        config_path: Path to config.yaml. If None, searches common locations.
        overrides: Section -> {field: value} applied last; None values are ignored
    
    Returns:
        Settings: Loaded configuration
    
    Raises:
        pydantic.ValidationError: If the merged values are invalid
        ValueError: If the config file is not a mapping of sections
        yaml.YAMLError: If the config file is not valid YAML
    """
    # Find config file
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path.home() / ".config" / "ascii-player" / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break
    
    # Load from YAML if exists
    config_data: Dict[str, Any] = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
        if not isinstance(config_data, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping of sections")
    elif config_path:
        logger.warning(f"Config file {config_path} not found, using defaults")
    else:
        logger.debug("No config file found, using defaults and environment variables")
    
    # A section with every key commented out loads as None
    for section, values in list(config_data.items()):
        if values is None:
            config_data[section] = {}
        elif not isinstance(values, dict):
            raise ValueError(f"Config section '{section}' must be a mapping, got {values!r}")
    
    # Apply environment variable overrides
    _apply_env_overrides(config_data)
    
    # Apply command-line overrides
    for section, values in (overrides or {}).items():
        for key, value in values.items():
            if value is not None:
                config_data.setdefault(section, {})[key] = value
    
    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """
    Apply environment variable overrides to config data.
    
    Values are stored as raw strings; Settings validation converts and
    rejects them like any other input.
    """
    
    # Source settings
    if env_file := os.environ.get("ASCII_PLAYER_FILE"):
        config_data.setdefault("source", {})["file_path"] = env_file
    if env_fps := os.environ.get("ASCII_PLAYER_FALLBACK_FPS"):
        config_data.setdefault("source", {})["fallback_fps"] = env_fps
    
    # Grid settings
    if env_rows := os.environ.get("ASCII_PLAYER_ROWS"):
        config_data.setdefault("grid", {})["rows"] = env_rows
    if env_cols := os.environ.get("ASCII_PLAYER_COLUMNS"):
        config_data.setdefault("grid", {})["columns"] = env_cols
    if env_aspect := os.environ.get("ASCII_PLAYER_CELL_ASPECT"):
        config_data.setdefault("grid", {})["cell_aspect"] = env_aspect
    
    # Glyph settings
    if env_ramp := os.environ.get("ASCII_PLAYER_RAMP"):
        config_data.setdefault("glyphs", {})["ramp"] = env_ramp
    if env_order := os.environ.get("ASCII_PLAYER_RAMP_ORDER"):
        config_data.setdefault("glyphs", {})["order"] = env_order
    
    # Conversion settings
    if env_gamma := os.environ.get("ASCII_PLAYER_GAMMA"):
        config_data.setdefault("conversion", {})["gamma"] = env_gamma
    
    # Logging settings
    if env_log := os.environ.get("ASCII_PLAYER_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """
    Configure logging based on settings.
    
    Logs always go to stderr; stdout is the display surface.
    """
    log_level = getattr(logging, settings.logging.level.upper(), logging.WARNING)
    
    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    
    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
