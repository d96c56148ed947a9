"""
Configuration loader for the timeline engine.

This module handles loading and parsing of the YAML configuration file that
tunes animation speed, default action durations and logging buffers.
"""
import os
import yaml
from dataclasses import dataclass, replace
from typing import Optional, Any
from pathlib import Path

# Hard limits for the animation speed multiplier; configured bounds stay inside them
SPEED_FLOOR = 0.1
SPEED_CEILING = 5.0


@dataclass(frozen=True)
class TimelineConfig:
    """Resolved timeline settings."""
    default_speed: float = 1.0
    min_speed: float = 0.1
    max_speed: float = 5.0
    frame_interval_ms: float = 16.0
    default_action_duration_ms: int = 1000
    default_visibility_duration_ms: int = 500
    log_level: str = "INFO"
    max_log_messages: int = 1000
    battle_log_size: int = 500
    debug_events: bool = False

    def speed_bounds(self) -> tuple[float, float]:
        """Configured speed bounds, narrowed to the supported range."""
        low = max(SPEED_FLOOR, min(self.min_speed, SPEED_CEILING))
        high = min(SPEED_CEILING, max(self.max_speed, low))
        return low, high

    def clamp_speed(self, speed: float) -> float:
        """Clamp an animation speed multiplier to the configured bounds."""
        low, high = self.speed_bounds()
        return max(low, min(high, speed))


# Where each setting lives in the YAML file
_SECTION_KEYS: dict[str, dict[str, str]] = {
    'animation': {
        'default_speed': 'default_speed',
        'min_speed': 'min_speed',
        'max_speed': 'max_speed',
        'frame_interval_ms': 'frame_interval_ms',
    },
    'durations': {
        'action_ms': 'default_action_duration_ms',
        'visibility_ms': 'default_visibility_duration_ms',
    },
    'logging': {
        'level': 'log_level',
        'max_messages': 'max_log_messages',
        'battle_log_size': 'battle_log_size',
        'debug_events': 'debug_events',
    },
}

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class TimelineConfigLoader:
    """Loads and manages timeline configuration from YAML files."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or "assets/config/timeline.yaml"
        self._config: dict[str, Any] = {}
        self._settings: TimelineConfig = TimelineConfig()
        self._active_profile: str = "default"
        self._loaded_from_file = False

    def load_config(self) -> bool:
        """
        Load configuration from the YAML file.

        Returns:
            bool: True if config was loaded successfully
        """
        try:
            # Handle both absolute and relative paths
            if not os.path.isabs(self.config_path):
                # Assume relative to project root
                project_root = Path(__file__).parent.parent.parent
                config_file = project_root / self.config_path
            else:
                config_file = Path(self.config_path)

            if not config_file.exists():
                print(f"Warning: Timeline config file not found: {config_file}")
                self._load_fallback_config()
                return False

            with open(config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
            if not isinstance(loaded, dict):
                raise ValueError("Top level of the timeline config must be a mapping")
            self._config = loaded

            # Get active profile from config
            config_section = self._config.get('config', {}) or {}
            self._active_profile = config_section.get('active_profile', 'default')

            self._parse_settings()
            self._loaded_from_file = True
            return True

        except Exception as e:
            print(f"Error loading timeline config: {e}")
            self._load_fallback_config()
            return False

    def _parse_settings(self) -> None:
        """Build settings from the loaded config and the active profile."""
        sections = {
            name: dict(self._config.get(name, {}) or {})
            for name in _SECTION_KEYS
        }

        # Apply profile overrides if applicable
        profiles = self._config.get('profiles', {}) or {}
        if self._active_profile != 'default' and self._active_profile in profiles:
            overrides = (profiles[self._active_profile] or {}).get('overrides', {}) or {}
            for section_name, values in overrides.items():
                if section_name in sections and isinstance(values, dict):
                    sections[section_name].update(values)

        defaults = TimelineConfig()
        values: dict[str, Any] = {}
        for section_name, mapping in _SECTION_KEYS.items():
            for key, attr in mapping.items():
                if key not in sections[section_name]:
                    continue
                raw = sections[section_name][key]
                converted = self._convert(raw, getattr(defaults, attr))
                if converted is None:
                    print(f"Warning: Invalid value for {section_name}.{key}: {raw!r}")
                    continue
                values[attr] = converted

        self._settings = replace(defaults, **values)

    @staticmethod
    def _convert(raw: Any, default: Any) -> Any:
        """Convert a raw YAML value to the type of a setting, or None."""
        target = type(default)
        try:
            if target is bool:
                return raw if isinstance(raw, bool) else None
            if target is str:
                return str(raw).upper()
            return target(raw)
        except (TypeError, ValueError):
            return None

    def get_settings(self) -> TimelineConfig:
        """
        Get the resolved timeline settings.

        Returns:
            TimelineConfig: Settings with profile overrides applied
        """
        return self._settings

    def get_available_profiles(self) -> list[str]:
        """
        Get list of available profiles.

        Returns:
            list[str]: List of profile names
        """
        profiles = self._config.get('profiles', {}) or {}
        return ['default'] + [name for name in profiles.keys() if name != 'default']

    def get_active_profile(self) -> str:
        return self._active_profile

    def set_active_profile(self, profile_name: str) -> bool:
        """
        Set the active profile.

        Args:
            profile_name: Name of the profile to activate

        Returns:
            bool: True if profile was set successfully
        """
        if profile_name not in self.get_available_profiles():
            return False

        self._active_profile = profile_name
        self._parse_settings()  # Reparse with new profile
        return True

    def _load_fallback_config(self) -> None:
        """Load built-in defaults if file loading fails."""
        self._config = {}
        self._active_profile = 'default'
        self._settings = TimelineConfig()
        self._loaded_from_file = False
        print("Loaded fallback timeline configuration")

    def reload_config(self) -> bool:
        """Reload the configuration from the file."""
        return self.load_config()

    def validate_config(self) -> dict[str, Any]:
        """
        Validate the loaded configuration.

        Returns:
            Dict: Validation results including errors and warnings
        """
        errors = []
        warnings = []
        settings = self._settings

        if not self._loaded_from_file:
            warnings.append("Using built-in defaults, no config file loaded")

        # Check for unknown sections and keys
        known_sections = set(_SECTION_KEYS) | {'config', 'profiles'}
        for section_name, section in self._config.items():
            if section_name not in known_sections:
                warnings.append(f"Unknown section in config: {section_name}")
            elif section_name in _SECTION_KEYS and isinstance(section, dict):
                for key in section:
                    if key not in _SECTION_KEYS[section_name]:
                        warnings.append(f"Unknown key in config: {section_name}.{key}")

        if self._active_profile not in self.get_available_profiles():
            errors.append(f"Active profile not defined: {self._active_profile}")

        # Check value ranges
        if settings.min_speed <= 0:
            errors.append("animation.min_speed must be positive")
        if settings.min_speed > settings.max_speed:
            errors.append("animation.min_speed is greater than animation.max_speed")
        if not settings.min_speed <= settings.default_speed <= settings.max_speed:
            warnings.append("animation.default_speed is outside the speed bounds and will be clamped")
        if settings.min_speed < SPEED_FLOOR or settings.max_speed > SPEED_CEILING:
            warnings.append(
                f"Speed bounds are limited to {SPEED_FLOOR}-{SPEED_CEILING}, values outside will be clamped"
            )
        if settings.frame_interval_ms <= 0:
            errors.append("animation.frame_interval_ms must be positive")
        if settings.default_action_duration_ms < 0 or settings.default_visibility_duration_ms < 0:
            errors.append("Default durations cannot be negative")
        if settings.log_level not in VALID_LOG_LEVELS:
            errors.append(f"Unknown log level: {settings.log_level}")
        if settings.max_log_messages <= 0 or settings.battle_log_size <= 0:
            errors.append("Log buffer sizes must be positive")

        return {
            'valid': len(errors) == 0,
            'errors': errors,
            'warnings': warnings,
            'active_profile': self._active_profile,
        }


def load_timeline_config(config_path: Optional[str] = None) -> TimelineConfig:
    """Load settings from a config file, falling back to defaults."""
    loader = TimelineConfigLoader(config_path)
    loader.load_config()
    return loader.get_settings()
