"""
Persisted user configuration for the command line tool.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional

from dircompare.core.diff.text_diff import CONTEXT_COLLAPSE_THRESHOLD, CONTEXT_KEEP_LINES


@dataclass
class ComparisonSettings:
    """Settings for folder and file comparison."""
    exclude_names: list[str] = field(default_factory=list)
    show_all_context: bool = False
    context_threshold: int = CONTEXT_COLLAPSE_THRESHOLD
    context_keep: int = CONTEXT_KEEP_LINES


@dataclass
class LoggingSettings:
    """Logging settings."""
    level: str = "INFO"
    log_file: str = ""


@dataclass
class ApplicationSettings:
    """Main application settings container."""
    comparison: ComparisonSettings = field(default_factory=ComparisonSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


class SettingsManager:
    """Reads and writes the JSON settings file."""

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = Path(settings_path) if settings_path else self._get_default_path()
        self._settings: Optional[ApplicationSettings] = None

    @staticmethod
    def _get_default_path() -> Path:
        """Get the default settings file path."""
        if os.name == 'nt':
            app_data = os.environ.get('APPDATA', os.path.expanduser('~'))
            return Path(app_data) / 'DirCompare' / 'settings.json'
        config_home = os.environ.get('XDG_CONFIG_HOME',
                                     os.path.expanduser('~/.config'))
        return Path(config_home) / 'dircompare' / 'settings.json'

    @property
    def settings(self) -> ApplicationSettings:
        """Settings, loaded lazily on first access."""
        if self._settings is None:
            self._settings = self.load()
        return self._settings

    def load(self) -> ApplicationSettings:
        """Load settings from disk, falling back to defaults."""
        if not self.settings_path.exists():
            return ApplicationSettings()

        try:
            with open(self.settings_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return self._from_dict(data)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logging.warning(f"SettingsManager - Could not load {self.settings_path}: {e}")
            return ApplicationSettings()

    def save(self, settings: Optional[ApplicationSettings] = None) -> bool:
        """Write settings as JSON; returns False if the file cannot be written."""
        settings = settings or self._settings
        if settings is None:
            return False

        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.settings_path, 'w', encoding='utf-8') as f:
                json.dump(asdict(settings), f, indent=2)
            self._settings = settings
            return True
        except OSError as e:
            logging.error(f"SettingsManager - Could not save {self.settings_path}: {e}")
            return False

    def reset(self) -> ApplicationSettings:
        """Restore and persist the defaults."""
        self._settings = ApplicationSettings()
        self.save()
        return self._settings

    def add_exclude_names(self, names: list[str]) -> None:
        """Persist additional excluded names, keeping existing order."""
        comparison = self.settings.comparison
        for name in names:
            name = name.strip()
            if name and name not in comparison.exclude_names:
                comparison.exclude_names.append(name)
        self.save()

    def _from_dict(self, data: dict) -> ApplicationSettings:
        """Build settings from parsed JSON, taking defaults for missing keys."""
        defaults = ComparisonSettings()
        comparison_data = data.get('comparison', {})
        logging_data = data.get('logging', {})

        comparison = ComparisonSettings(
            exclude_names=[str(name) for name in comparison_data.get('exclude_names', [])],
            show_all_context=bool(comparison_data.get('show_all_context', False)),
            context_threshold=int(comparison_data.get('context_threshold', defaults.context_threshold)),
            context_keep=int(comparison_data.get('context_keep', defaults.context_keep)),
        )
        if comparison.context_keep < 0 or comparison.context_threshold < 2 * comparison.context_keep:
            raise ValueError(
                f"context_threshold ({comparison.context_threshold}) must be at least "
                f"twice context_keep ({comparison.context_keep}), which must not be negative"
            )

        logging_settings = LoggingSettings(
            level=str(logging_data.get('level', 'INFO')).upper(),
            log_file=str(logging_data.get('log_file', '')),
        )

        return ApplicationSettings(comparison=comparison, logging=logging_settings)
