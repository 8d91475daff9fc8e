"""Settings store: key/value application preferences."""
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from finance_tracker.config import DEFAULT_SETTINGS

from .connection import Database
from .errors import ValidationError
from .models import now_iso

logger = logging.getLogger(__name__)

TRUE_VALUES = {"true", "1", "yes", "on"}
FALSE_VALUES = {"false", "0", "no", "off"}


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _check_key(key: Any) -> str:
    if not isinstance(key, str) or not key.strip():
        raise ValidationError("Setting key is required and must be a non-empty string", field="key")
    return key


class SettingsStore:
    """SQLite storage for application settings.

    Values are stored as text. ``get_bool``/``get_number``/``get_string``
    interpret them and reject values of the wrong shape.
    """

    def __init__(self, db: Database):
        self.db = db

    def get(self, key: str) -> Optional[str]:
        """Get a setting value, or None if not set."""
        return self.db.execute("SELECT value FROM settings WHERE key = ?", (key,)).scalar()

    def set(self, key: str, value: Any) -> Dict[str, str]:
        """Insert or replace a setting. The value is stored as text."""
        _check_key(key)
        if value is None:
            raise ValidationError("Setting value cannot be None", field=key)

        text = _to_text(value)
        updated_at = now_iso()
        self.db.execute(
            """INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
               ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at""",
            (key, text, updated_at)
        )
        return {"key": key, "value": text, "updated_at": updated_at}

    def get_all(self) -> Dict[str, str]:
        """Get all settings as a key -> value mapping."""
        return {row["key"]: row["value"] for row in self.db.execute("SELECT key, value FROM settings")}

    def delete(self, key: str) -> None:
        """Delete a setting. Deleting a missing key is a no-op."""
        self.db.execute("DELETE FROM settings WHERE key = ?", (key,))

    def get_with_default(self, key: str, default: Any = None) -> Any:
        """Get a setting, falling back to ``default`` when missing or on any error."""
        try:
            value = self.get(key)
        except Exception as e:
            logger.warning(f"Failed to read setting {key!r}, using default: {e}")
            return default
        return value if value is not None else default

    def get_multiple(self, keys: Iterable[str]) -> Dict[str, str]:
        """Get several settings at once. Missing keys are left out."""
        keys = list(keys)
        if not keys:
            return {}
        placeholders = ",".join("?" * len(keys))
        result = self.db.execute(
            f"SELECT key, value FROM settings WHERE key IN ({placeholders})", keys
        )
        return {row["key"]: row["value"] for row in result}

    def set_multiple(self, values: Mapping[str, Any]) -> None:
        """Set several settings in one atomic write."""
        if not isinstance(values, Mapping):
            raise ValidationError("Settings must be provided as a mapping")
        for key, value in values.items():
            _check_key(key)
            if value is None:
                raise ValidationError("Setting value cannot be None", field=key)
        with self.db.transaction():
            for key, value in values.items():
                self.set(key, value)

    def initialize_defaults(self) -> List[str]:
        """Store the default settings that are not set yet. Returns the keys written."""
        written = []
        with self.db.transaction():
            for key, value in DEFAULT_SETTINGS.items():
                if self.get(key) is None:
                    self.set(key, value)
                    written.append(key)
        logger.info(f"Initialized {len(written)} default settings")
        return written

    # === Typed accessors ===

    def get_string(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.get(key)
        return value if value is not None else default

    def get_bool(self, key: str, default: Optional[bool] = None) -> Optional[bool]:
        """Read a setting as a boolean (true/false, 1/0, yes/no, on/off)."""
        value = self.get(key)
        if value is None:
            return default
        normalized = value.strip().lower()
        if normalized in TRUE_VALUES:
            return True
        if normalized in FALSE_VALUES:
            return False
        raise ValidationError(f"Setting {key!r} is not a boolean: {value!r}", field=key)

    def get_number(
        self, key: str, default: Optional[Union[int, float]] = None
    ) -> Optional[Union[int, float]]:
        """Read a setting as an int, or a float when it has a fractional part."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError:
            raise ValidationError(f"Setting {key!r} is not a number: {value!r}", field=key) from None
