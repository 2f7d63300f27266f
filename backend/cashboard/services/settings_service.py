"""
Application settings (company, financial, reports, system, security).

Settings are an explicit value: load_settings() returns a fresh dict of
sections, and callers that need a setting receive that dict as an argument.
Stored sections are merged over DEFAULT_SETTINGS on load; save_section()
replaces one section after validating every key against the default's type.
"""

from __future__ import annotations

import copy
from typing import Any

from ..extensions import db
from ..models import SystemSetting
from ..permissions import has_permission


DEFAULT_SETTINGS: dict[str, dict[str, Any]] = {
    "general": {
        "company_name": "Administración Dezuca",
        "company_email": "admin@dezuca.com",
        "company_phone": "+1 234 567 8900",
        "company_address": "123 Main Street, City, State 12345",
        "tax_id": "12-3456789",
        "logo": "",
    },
    "financial": {
        "currency": "USD",
        "currency_symbol": "$",
        "decimal_places": 2,
        "tax_rate": 8.5,
        "tax_inclusive": False,
    },
    "reports": {
        "date_format": "MM/DD/YYYY",
        "time_format": "12h",
        "default_date_range": "30d",
        "show_taxes": True,
        "group_by_store": True,
    },
    "system": {
        "timezone": "America/New_York",
        "language": "es",
        "notifications": True,
        "auto_backup": True,
        "session_timeout": 30,  # minutes of inactivity
    },
    "security": {
        "min_password_length": 8,
        "require_special_chars": True,
        "require_numbers": True,
        "max_login_attempts": 5,
        "lockout_duration": 15,  # minutes
    },
}

SECTIONS = tuple(DEFAULT_SETTINGS)

# (min, max) for numeric keys; None = unbounded on that side
_RANGES: dict[tuple[str, str], tuple[float | None, float | None]] = {
    ("financial", "decimal_places"): (0, 4),
    ("financial", "tax_rate"): (0, 100),
    ("system", "session_timeout"): (1, 24 * 60),
    ("security", "min_password_length"): (6, 128),
    ("security", "max_login_attempts"): (1, 100),
    ("security", "lockout_duration"): (1, 24 * 60),
}

_CHOICES: dict[tuple[str, str], set[str]] = {
    ("reports", "time_format"): {"12h", "24h"},
    ("reports", "default_date_range"): {"7d", "30d", "90d", "1y"},
}


class SettingsError(ValueError):
    pass


class SettingsValidationError(SettingsError):
    pass


class SettingsAuthorizationError(SettingsError):
    pass


class SettingsNotFoundError(SettingsError):
    pass


def load_settings() -> dict[str, dict[str, Any]]:
    settings = copy.deepcopy(DEFAULT_SETTINGS)
    for row in db.session.query(SystemSetting).all():
        if row.section in settings:
            stored = {k: v for k, v in (row.value_json or {}).items() if k in settings[row.section]}
            settings[row.section].update(stored)
    return settings


def get_section(section: str, settings: dict | None = None) -> dict[str, Any]:
    if section not in DEFAULT_SETTINGS:
        raise SettingsNotFoundError(f"Unknown settings section '{section}'")
    settings = settings if settings is not None else load_settings()
    return dict(settings[section])


def _validate_value(section: str, key: str, value: Any) -> Any:
    default = DEFAULT_SETTINGS[section][key]
    label = f"{section}.{key}"

    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise SettingsValidationError(f"{label} must be true or false")
        return value

    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise SettingsValidationError(f"{label} must be an integer")
    elif isinstance(default, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise SettingsValidationError(f"{label} must be a number")
        value = float(value)
    else:
        if not isinstance(value, str):
            raise SettingsValidationError(f"{label} must be a string")
        value = value.strip()
        choices = _CHOICES.get((section, key))
        if choices and value not in choices:
            raise SettingsValidationError(f"{label} must be one of: {', '.join(sorted(choices))}")
        return value

    low, high = _RANGES.get((section, key), (None, None))
    if low is not None and value < low:
        raise SettingsValidationError(f"{label} must be at least {low}")
    if high is not None and value > high:
        raise SettingsValidationError(f"{label} must be at most {high}")
    return value


def validate_section(section: str, data: Any) -> dict[str, Any]:
    if section not in DEFAULT_SETTINGS:
        raise SettingsNotFoundError(f"Unknown settings section '{section}'")
    if not isinstance(data, dict):
        raise SettingsValidationError("Settings section must be a JSON object")

    unknown = sorted(set(data) - set(DEFAULT_SETTINGS[section]))
    if unknown:
        raise SettingsValidationError(f"Unknown {section} settings: {', '.join(unknown)}")

    return {key: _validate_value(section, key, value) for key, value in data.items()}


def save_section(actor, section: str, data: Any) -> dict[str, dict[str, Any]]:
    """
    Validate and store one section, returning the full reloaded settings.

    Keys omitted from `data` keep their current value.
    """
    if not has_permission(actor, "settings:edit"):
        raise SettingsAuthorizationError("Permission denied: settings:edit")

    cleaned = validate_section(section, data)

    row = db.session.get(SystemSetting, section)
    if row is None:
        row = SystemSetting(section=section, value_json={})
        db.session.add(row)

    merged = dict(row.value_json or {})
    merged.update(cleaned)
    row.value_json = merged
    row.updated_by_user_id = getattr(actor, "id", None)
    db.session.commit()

    return load_settings()


def reset_section(actor, section: str) -> dict[str, dict[str, Any]]:
    if not has_permission(actor, "settings:edit"):
        raise SettingsAuthorizationError("Permission denied: settings:edit")
    if section not in DEFAULT_SETTINGS:
        raise SettingsNotFoundError(f"Unknown settings section '{section}'")

    row = db.session.get(SystemSetting, section)
    if row is not None:
        db.session.delete(row)
        db.session.commit()
    return load_settings()
