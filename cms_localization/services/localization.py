from __future__ import annotations

import logging
import warnings
from collections.abc import Mapping
from typing import Any

from cms_localization.core.config import AppSettings
from cms_localization.schemas.translation import Locale, UnsupportedLocaleError, parse_locale

logger = logging.getLogger(__name__)

_LEGACY_SUFFIXES: dict[Locale, tuple[str, str]] = {
    Locale.ES: ("Es", "En"),
    Locale.EN: ("En", "Es"),
}


def resolve_localized_field(record: Mapping[str, Any] | None, locale: Locale | str, field_name: str) -> str:
    """Return the display string for ``field_name``.

    Content is stored in a single source-language column and translated at
    read time, so the value is the same for every locale; ``locale`` is
    accepted for call-site symmetry. Missing records, fields and ``None``
    values resolve to an empty string.
    """
    if not isinstance(record, Mapping):
        return ""
    value = record.get(field_name)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    try:
        return str(value)
    except Exception:
        logger.warning("Could not render field %s as text", field_name, exc_info=True)
        return ""


def legacy_localized_content(record: Mapping[str, Any], locale: Locale | str) -> dict[str, Any]:
    """Resolve ``titleEs``/``titleEn`` style columns from the old schema.

    Deprecated: records now carry a single source-language column. Kept for
    rows that predate the migration; prefers the requested locale's column and
    falls back to the other language.
    """
    warnings.warn(
        "legacy_localized_content reads dual-language columns; use resolve_localized_field",
        DeprecationWarning,
        stacklevel=2,
    )
    try:
        preferred, fallback = _LEGACY_SUFFIXES[parse_locale(locale)]
    except UnsupportedLocaleError:
        preferred, fallback = _LEGACY_SUFFIXES[Locale.ES]

    def pick(base: str) -> str:
        value = record.get(f"{base}{preferred}") or record.get(f"{base}{fallback}")
        return str(value) if value else ""

    return {
        "title": pick("title"),
        "content": pick("content"),
        "excerpt": pick("excerpt"),
        "hasLocalizedVersion": bool(record.get(f"title{preferred}")),
    }


def should_auto_translate(settings: AppSettings) -> bool:
    return settings.auto_translation_enabled
