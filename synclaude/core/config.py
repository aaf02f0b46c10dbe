"""Configuration management for Synclaude.

Settings live in ``~/.config/synclaude/config.json`` as a camelCase JSON
object. Every change goes through :meth:`ConfigManager.update`, which
validates the merged object before anything touches the disk. The previous
file is copied to ``config.json.backup`` before each overwrite.
"""

import json
import os
import re
import shutil
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from synclaude.core.errors import (
    ConfigSaveError,
    ConfigValidationError,
    describe_validation_error,
)
from synclaude.utils.fs import FileState, is_file_fresh, read_text_classified
from synclaude.utils.json_utils import safe_parse_json, write_json_atomic
from synclaude.utils.log import get_logger


logger = get_logger()

CONFIG_FILENAME = "config.json"
CACHE_FILENAME = "models_cache.json"
BACKUP_SUFFIX = ".backup"

DEFAULT_BASE_URL = "https://api.synthetic.new"
DEFAULT_ANTHROPIC_BASE_URL = "https://api.synthetic.new/anthropic"
DEFAULT_CATALOG_URL = "https://api.synthetic.new/openai/v1/models"

MIN_CACHE_HOURS = 1
MAX_CACHE_HOURS = 168

_FIRST_RUN_PATTERN = re.compile(r'"(?:firstRunCompleted|first_run_completed)"\s*:\s*true\b')


def default_config_dir() -> Path:
    """Return the default configuration root."""
    return Path.home() / ".config" / "synclaude"


class Settings(BaseModel):
    """User settings stored in config.json."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        strict=True,
        extra="ignore",
    )

    api_key: str = Field(default="", description="Synthetic API key")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Synthetic API base URL")
    anthropic_base_url: str = Field(
        default=DEFAULT_ANTHROPIC_BASE_URL,
        description="Anthropic-compatible API endpoint",
    )
    catalog_url: str = Field(
        default=DEFAULT_CATALOG_URL,
        description="OpenAI-compatible models endpoint",
    )
    cache_duration_hours: int = Field(
        default=24,
        ge=MIN_CACHE_HOURS,
        le=MAX_CACHE_HOURS,
        description="Model cache duration in hours",
    )
    selected_entry: str = Field(default="", description="Last selected model id")
    first_run_completed: bool = Field(
        default=False,
        description="Whether first-time setup has been completed",
    )
    auto_update_check: bool = Field(default=True, description="Automatically check for updates")
    last_update_check: str = Field(default="", description="Timestamp of last update check")

    def to_json_dict(self) -> Dict[str, Any]:
        """Serialize with the on-disk camelCase keys."""
        return self.model_dump(by_alias=True)


def resolve_setting_key(key: str) -> Optional[str]:
    """Map a camelCase or snake_case key to its Settings field name."""
    if key in Settings.model_fields:
        return key
    for name, field in Settings.model_fields.items():
        if field.alias == key:
            return name
    return None


def _normalize_changes(changes: Mapping[str, Any]) -> Dict[str, Any]:
    normalized: Dict[str, Any] = {}
    for key, value in changes.items():
        name = resolve_setting_key(key)
        if name is None:
            raise ConfigValidationError(f"Invalid configuration update: unknown setting '{key}'")
        normalized[name] = value
    return normalized


def _recover_first_run_flag(raw_text: str) -> bool:
    """Salvage a literal ``true`` first-run flag from a damaged settings file."""
    data = safe_parse_json(raw_text, log_error=False)
    if isinstance(data, dict):
        for key in ("firstRunCompleted", "first_run_completed"):
            if key in data:
                return data[key] is True
        return False
    return bool(_FIRST_RUN_PATTERN.search(raw_text))


def _restrict_to_owner(path: Path) -> None:
    """Best-effort chmod 0600; files here may hold the API key."""
    try:
        os.chmod(path, 0o600)
    except OSError as exc:
        logger.warning(
            "[config] Failed to set secure permissions: %s",
            exc,
            extra={"path": str(path)},
        )


class ConfigManager:
    """Owns one Settings object and its file."""

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        self.config_dir = Path(config_dir) if config_dir is not None else default_config_dir()
        self.config_path = self.config_dir / CONFIG_FILENAME
        self._config: Optional[Settings] = None

    @property
    def backup_path(self) -> Path:
        return self.config_path.with_name(self.config_path.name + BACKUP_SUFFIX)

    @property
    def cache_path(self) -> Path:
        return self.config_dir / CACHE_FILENAME

    @property
    def config(self) -> Settings:
        """Current settings, loaded from disk on first access."""
        return self.ensure_loaded()

    def ensure_loaded(self) -> Settings:
        if self._config is None:
            self._config = self.load()
        return self._config

    def load(self) -> Settings:
        """Read settings from disk. Never raises; falls back to defaults."""
        state, raw_text = read_text_classified(self.config_path)
        if state is FileState.MISSING:
            logger.debug(
                "[config] Config file not found; using defaults",
                extra={"path": str(self.config_path)},
            )
            settings = Settings()
        elif state is FileState.UNREADABLE or raw_text is None:
            settings = Settings()
        elif state is FileState.MALFORMED:
            settings = self._recover(raw_text)
        else:
            settings = self._parse_or_recover(raw_text)

        self._config = settings
        return settings

    def _parse_or_recover(self, raw_text: str) -> Settings:
        data = safe_parse_json(raw_text)
        if isinstance(data, dict):
            try:
                settings = Settings.model_validate(data)
            except ValidationError as exc:
                logger.warning(
                    "[config] Invalid configuration; falling back to defaults: %s",
                    describe_validation_error(exc),
                    extra={"path": str(self.config_path), "state": FileState.MALFORMED.value},
                )
            else:
                logger.debug("[config] Loaded configuration", extra={"path": str(self.config_path)})
                return settings
        else:
            logger.warning(
                "[config] Config file is not a JSON object; falling back to defaults",
                extra={"path": str(self.config_path), "state": FileState.MALFORMED.value},
            )

        return self._recover(raw_text)

    def _recover(self, raw_text: str) -> Settings:
        """Defaults, plus firstRunCompleted when the damaged text still says true."""
        if _recover_first_run_flag(raw_text):
            logger.info(
                "[config] Recovered firstRunCompleted flag from damaged config",
                extra={"path": str(self.config_path)},
            )
            return Settings(first_run_completed=True)
        return Settings()

    def _backup_existing(self) -> None:
        if not self.config_path.exists():
            return
        try:
            shutil.copyfile(self.config_path, self.backup_path)
        except OSError as exc:
            logger.warning(
                "[config] Failed to create config backup: %s: %s",
                type(exc).__name__,
                exc,
                extra={"path": str(self.backup_path)},
            )
            return
        _restrict_to_owner(self.backup_path)

    def save(self, config: Optional[Settings] = None) -> bool:
        """Write settings to disk, keeping a backup of the previous file.

        Raises ConfigSaveError when the directory cannot be created or the
        file cannot be written. Backup and chmod failures are only logged.
        """
        to_save = config if config is not None else self._config
        if to_save is None:
            raise ConfigSaveError("No configuration to save")

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigSaveError(
                f"Failed to create config directory: {self.config_dir}", exc
            ) from exc

        self._backup_existing()

        try:
            write_json_atomic(self.config_path, to_save.to_json_dict(), prefix=".config_")
        except OSError as exc:
            raise ConfigSaveError(
                f"Failed to save configuration to {self.config_path}", exc
            ) from exc

        _restrict_to_owner(self.config_path)

        self._config = to_save
        logger.debug("[config] Saved configuration", extra={"path": str(self.config_path)})
        return True

    def update(self, changes: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> bool:
        """Merge changes over the current settings, validate, then save.

        Keys may be snake_case field names or their camelCase aliases. On a
        validation failure nothing is written and the in-memory settings
        stay as they were.
        """
        merged_changes = _normalize_changes({**(changes or {}), **kwargs})
        merged = {**self.config.model_dump(), **merged_changes}
        try:
            updated = Settings.model_validate(merged)
        except ValidationError as exc:
            raise ConfigValidationError(
                f"Invalid configuration update: {describe_validation_error(exc)}"
            ) from exc
        return self.save(updated)

    def reset(self) -> bool:
        """Replace the stored settings with defaults."""
        return self.save(Settings())

    def has_api_key(self) -> bool:
        return bool(self.config.api_key)

    def get_api_key(self) -> str:
        return self.config.api_key

    def set_api_key(self, api_key: str) -> bool:
        return self.update(api_key=api_key)

    def get_selected_entry(self) -> str:
        return self.config.selected_entry

    def set_selected_entry(self, entry_id: str) -> bool:
        return self.update(selected_entry=entry_id)

    def get_cache_duration(self) -> int:
        return self.config.cache_duration_hours

    def set_cache_duration(self, hours: int) -> bool:
        """Set the cache TTL; returns False for values outside 1-168 hours."""
        try:
            return self.update(cache_duration_hours=hours)
        except ConfigValidationError as exc:
            logger.warning("[config] Rejected cache duration: %s", exc, extra={"hours": hours})
            return False

    def is_cache_valid(self, cache_file: Path) -> bool:
        return is_file_fresh(Path(cache_file), self.config.cache_duration_hours)

    def is_first_run(self) -> bool:
        return not self.config.first_run_completed

    def mark_first_run_completed(self) -> bool:
        return self.update(first_run_completed=True)

    def has_saved_entry(self) -> bool:
        """True once a model was chosen and first-run setup finished."""
        return bool(self.config.selected_entry and self.config.first_run_completed)

    def get_saved_entry(self) -> str:
        if self.has_saved_entry():
            return self.config.selected_entry
        return ""

    def set_saved_entry(self, entry_id: str) -> bool:
        return self.update(selected_entry=entry_id, first_run_completed=True)


def dump_settings(settings: Settings, mask_secrets: bool = True) -> str:
    """Pretty JSON for display, with the API key masked by default."""
    data = settings.to_json_dict()
    if mask_secrets and data.get("apiKey"):
        key = data["apiKey"]
        data["apiKey"] = key[:4] + "…" if len(key) > 8 else "***"
    return json.dumps(data, indent=2, ensure_ascii=False)
