"""Persisted user preferences for the assistant."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

from ..utils.file_io import write_text

__all__ = ["Settings", "SettingsStore", "DEFAULT_SETTINGS_PATH"]

LOGGER = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".pairpilot" / "settings.json"
_FORMAT_VERSION = 1
_TRUTHY = frozenset({"1", "true", "yes", "on", "debug"})


def _as_bool(raw: str) -> bool:
    return raw.strip().lower() in _TRUTHY


# env var -> (field, converter)
_ENVIRONMENT: Mapping[str, tuple[str, Callable[[str], Any]]] = {
    "PAIRPILOT_TEXT_ENCODING": ("text_encoding", str),
    "PAIRPILOT_CHAT_MODE": ("chat_mode", str),
    "PAIRPILOT_MODEL": ("selected_model_name", str),
    "PAIRPILOT_MODEL_FAMILY": ("selected_model_family", str),
    "PAIRPILOT_LOG_DIR": ("log_dir", str),
    "PAIRPILOT_DEBUG_LOGGING": ("debug_logging", _as_bool),
    "PAIRPILOT_MODEL_REFRESH_INTERVAL": ("model_refresh_interval", float),
}


@dataclass(slots=True)
class Settings:
    """Preferences that survive restarts.

    ``chat_mode`` keeps whatever string the mode picker stored; it is
    interpreted by :meth:`pairpilot.ai.conversation.model_catalog.ChatMode.parse`.
    """

    text_encoding: str = "utf-8"
    model_refresh_interval: float = 60.0
    chat_mode: str = "Ask"
    selected_model_name: str | None = None
    selected_model_family: str | None = None
    debug_logging: bool = False
    log_dir: str | None = None

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(item.name for item in fields(cls))


class SettingsStore:
    """Reads and writes :class:`Settings` as a JSON document."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Stored settings, then ``overrides``, then environment variables.

        A missing or unreadable file yields the defaults; problems are logged.
        """
        settings = self._from_payload(self._read_payload())
        if overrides:
            settings = _merge(settings, overrides, source="runtime")
        environment = self._environment_values()
        if environment:
            settings = _merge(settings, environment, source="environment")
        return settings

    def save(self, settings: Settings) -> Path:
        document = dict(asdict(settings), version=_FORMAT_VERSION)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        write_text(self._path, json.dumps(document, indent=2, sort_keys=True))
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _read_payload(self) -> Dict[str, Any]:
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if isinstance(payload, dict):
            return payload
        LOGGER.warning("Settings file %s does not contain an object", self._path)
        return {}

    @staticmethod
    def _from_payload(payload: Mapping[str, Any]) -> Settings:
        known = Settings.field_names()
        try:
            return Settings(**{key: value for key, value in payload.items() if key in known})
        except TypeError as exc:
            LOGGER.warning("Settings payload contained unexpected data: %s", exc)
            return Settings()

    @staticmethod
    def _environment_values() -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for env_name, (field_name, convert) in _ENVIRONMENT.items():
            raw = os.environ.get(env_name)
            if raw is None:
                continue
            try:
                values[field_name] = convert(raw)
            except ValueError:
                LOGGER.warning("Ignoring environment override %s=%r", env_name, raw)
        return values


def _merge(settings: Settings, values: Mapping[str, Any], *, source: str) -> Settings:
    known = Settings.field_names()
    accepted = {key: value for key, value in values.items() if key in known and value is not None}
    if not accepted:
        return settings
    LOGGER.debug("Applying %s settings overrides: %s", source, sorted(accepted))
    return replace(settings, **accepted)
