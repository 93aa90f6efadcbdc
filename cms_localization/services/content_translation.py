from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Final

from cms_localization.schemas.translation import (
    SOURCE_LOCALE,
    ContentType,
    Locale,
    parse_locale,
)
from cms_localization.services.eligibility import is_translatable
from cms_localization.services.translation import TranslationService

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]

TRANSLATABLE_FIELDS: Final[tuple[str, ...]] = (
    "title",
    "content",
    "excerpt",
    "altText",
    "caption",
    "description",
    "abstract",
    "overview",
    "objectives",
)

CONTENT_TYPE_FIELDS: Final[dict[ContentType, tuple[str, ...]]] = {
    ContentType.NEWS: ("title", "content", "excerpt"),
    ContentType.PROGRAM: ("title", "description", "overview", "objectives"),
    ContentType.LIBRARY: ("title", "description", "abstract", "altText", "caption"),
    ContentType.MEDIA: ("title", "altText", "caption", "description"),
}


class ContentTranslationService:
    """Translates the text fields of Spanish content records on read."""

    def __init__(
        self,
        translator: TranslationService,
        *,
        source_locale: Locale = SOURCE_LOCALE,
    ) -> None:
        self._translator = translator
        self._source_locale = source_locale

    @property
    def translator(self) -> TranslationService:
        return self._translator

    async def translate_if_needed(
        self,
        record: Record,
        target_locale: Locale | str,
        auto_translate: bool = True,
        *,
        fields: Iterable[str] = TRANSLATABLE_FIELDS,
    ) -> Record:
        """Return ``record`` with its text fields rendered in ``target_locale``.

        The input is returned untouched when auto-translation is off or the
        target is the source locale. Otherwise a shallow copy is returned in
        which only the listed fields may differ; fields that are absent,
        ineligible or fail to translate keep their source value.
        """
        target = parse_locale(target_locale)
        if not auto_translate or target == self._source_locale:
            return record

        result = dict(record)
        candidates = [
            field
            for field in dict.fromkeys(fields)
            if isinstance(record.get(field), str) and record[field].strip()
        ]
        translations = await asyncio.gather(
            *(self._translate_field(field, record[field], target) for field in candidates)
        )
        for field, translated in zip(candidates, translations):
            if translated and translated != record[field]:
                result[field] = translated
        return result

    async def translate_object_fields(
        self,
        record: Record,
        fields: Sequence[str],
        target_locale: Locale | str,
    ) -> Record:
        """Translate a caller-chosen list of fields, not just the known text fields."""
        return await self.translate_if_needed(record, target_locale, fields=fields)

    async def translate_news_object(
        self, record: Record, target_locale: Locale | str, auto_translate: bool = True
    ) -> Record:
        return await self.translate_content(ContentType.NEWS, record, target_locale, auto_translate)

    async def translate_program_object(
        self, record: Record, target_locale: Locale | str, auto_translate: bool = True
    ) -> Record:
        return await self.translate_content(
            ContentType.PROGRAM, record, target_locale, auto_translate
        )

    async def translate_library_object(
        self, record: Record, target_locale: Locale | str, auto_translate: bool = True
    ) -> Record:
        return await self.translate_content(
            ContentType.LIBRARY, record, target_locale, auto_translate
        )

    async def translate_media_object(
        self, record: Record, target_locale: Locale | str, auto_translate: bool = True
    ) -> Record:
        return await self.translate_content(ContentType.MEDIA, record, target_locale, auto_translate)

    async def translate_content(
        self,
        content_type: ContentType | str,
        record: Record,
        target_locale: Locale | str,
        auto_translate: bool = True,
    ) -> Record:
        fields = CONTENT_TYPE_FIELDS[ContentType(content_type)]
        return await self.translate_if_needed(
            record, target_locale, auto_translate, fields=fields
        )

    async def translate_records(
        self,
        records: Sequence[Record],
        target_locale: Locale | str,
        *,
        content_type: ContentType | str | None = None,
        auto_translate: bool = True,
    ) -> list[Record]:
        """Translate a page of records concurrently, preserving input order."""
        target = parse_locale(target_locale)
        if content_type is None:
            jobs = (self.translate_if_needed(record, target, auto_translate) for record in records)
        else:
            jobs = (
                self.translate_content(content_type, record, target, auto_translate)
                for record in records
            )
        return list(await asyncio.gather(*jobs))

    async def _translate_field(self, field: str, value: str, target: Locale) -> str:
        if not is_translatable(value):
            logger.debug("Field %s is not translatable; keeping source value", field)
            return value
        try:
            return await self._translator.translate_text(
                value,
                target_locale=target,
                source_locale=self._source_locale,
                field=field,
            )
        except Exception:
            logger.exception("Unexpected error translating field %s; keeping source value", field)
            return value


async def translate_if_needed(
    record: Record,
    target_locale: Locale | str,
    auto_translate: bool = True,
    *,
    translator: TranslationService,
) -> Record:
    """Function form of ``ContentTranslationService.translate_if_needed``."""
    return await ContentTranslationService(translator).translate_if_needed(
        record, target_locale, auto_translate
    )
