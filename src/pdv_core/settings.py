"""Local settings: operator session, notification sounds and printer layout.

Settings are one :class:`AppSettings` object handed to whatever needs it.
:class:`SettingsStore` is the only place that reads or writes the JSON file.
Saved values are merged over the defaults, so a file written by an older
version still loads.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from pdv_core.exceptions import ConfigError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_SOUND_URL = "https://assets.mixkit.co/active_storage/sfx/2869/2869-preview.mp3"
DEFAULT_SETTINGS_FILE = "pdv_settings.json"


def _known(cls: type, data: Mapping[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass
class OperatorSession:
    """The operator logged in at this terminal.

    Attributes:
        id: Operator id.
        name: Display name.
        code: Login code.
        permissions: Permission flags, e.g. ``{"can_cancel": True}``.
        logged_in_at: ISO timestamp of the login.
    """

    id: str
    name: str
    code: str = ""
    permissions: dict[str, bool] = field(default_factory=dict)
    logged_in_at: str | None = None

    def has_permission(self, name: str) -> bool:
        return bool(self.permissions.get(name, False))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OperatorSession:
        if not data.get("id") or not data.get("name"):
            raise ValidationError("Operator session requires 'id' and 'name'")
        values = _known(cls, data)
        values["id"] = str(values["id"])
        values["permissions"] = {str(k): bool(v) for k, v in (data.get("permissions") or {}).items()}
        return cls(**values)


@dataclass
class SoundSettings:
    enabled: bool = True
    volume: float = 0.7
    sound_url: str = DEFAULT_SOUND_URL

    def __post_init__(self) -> None:
        if not 0.0 <= float(self.volume) <= 1.0:
            raise ValidationError(f"volume must be between 0 and 1, got {self.volume}")


@dataclass
class PrinterSettings:
    """Receipt layout for the thermal printer."""

    paper_width: str = "80mm"
    page_size: int = 300
    font_size: int = 14
    delivery_font_size: int = 14
    scale: float = 1
    margin_left: int = 0
    margin_top: int = 1
    margin_bottom: int = 1
    auto_print_delivery: bool = False


@dataclass
class AppSettings:
    operator: OperatorSession | None = None
    order_sound: SoundSettings = field(default_factory=SoundSettings)
    chat_sound: SoundSettings = field(default_factory=SoundSettings)
    printer: PrinterSettings = field(default_factory=PrinterSettings)

    def to_dict(self) -> dict:
        """Convert settings to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AppSettings:
        """Create settings from a dictionary, filling gaps with defaults."""
        operator = data.get("operator")
        return cls(
            operator=OperatorSession.from_dict(operator) if operator else None,
            order_sound=SoundSettings(**_known(SoundSettings, data.get("order_sound") or {})),
            chat_sound=SoundSettings(**_known(SoundSettings, data.get("chat_sound") or {})),
            printer=PrinterSettings(**_known(PrinterSettings, data.get("printer") or {})),
        )


class SettingsStore:
    """Load/save boundary for :class:`AppSettings`.

    Example:
        >>> store = SettingsStore(Path("pdv_settings.json"))
        >>> settings = store.login({"id": "op-1", "name": "Ana", "code": "01"})
        >>> store.load().operator.name
        'Ana'

    """

    def __init__(self, path: str | Path = DEFAULT_SETTINGS_FILE) -> None:
        self.path = Path(path)

    def load(self) -> AppSettings:
        """Read settings; a missing or corrupted file yields the defaults."""
        if not self.path.exists():
            return AppSettings()
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise TypeError("settings file does not hold an object")
            return AppSettings.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, ValidationError) as e:
            logger.warning("Ignoring corrupted settings file %s: %s", self.path, e)
            return AppSettings()

    def save(self, settings: AppSettings) -> None:
        """Write settings as JSON.

        Raises:
            ConfigError: If the file cannot be written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(settings.to_dict(), f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ConfigError(f"Cannot write settings file {self.path}: {e}") from e

    def login(self, operator: Mapping[str, Any] | OperatorSession) -> AppSettings:
        """Store ``operator`` as the current session (credentials are dropped)."""
        session = operator if isinstance(operator, OperatorSession) else OperatorSession.from_dict(operator)
        if session.logged_in_at is None:
            session.logged_in_at = datetime.now(timezone.utc).isoformat()
        settings = self.load()
        settings.operator = session
        self.save(settings)
        logger.info("Operator %s logged in", session.name)
        return settings

    def logout(self) -> AppSettings:
        settings = self.load()
        settings.operator = None
        self.save(settings)
        return settings
