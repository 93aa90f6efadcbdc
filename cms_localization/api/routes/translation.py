from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from cms_localization.api.deps import (
    get_app_settings,
    get_content_translation_service,
    get_translation_service,
)
from cms_localization.core.config import AppSettings
from cms_localization.schemas.translation import (
    CacheClearResponse,
    ContentType,
    RecordBatchTranslationRequest,
    RecordBatchTranslationResponse,
    RecordTranslationRequest,
    TextTranslationRequest,
    TextTranslationResponse,
)
from cms_localization.services.content_translation import ContentTranslationService
from cms_localization.services.localization import should_auto_translate
from cms_localization.services.translation import TranslationService

router = APIRouter()


def _content_type(value: str) -> ContentType:
    try:
        return ContentType(value)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown content type: {value}",
        ) from exc


@router.post(
    "/records/{content_type}",
    response_model=dict[str, Any],
    status_code=status.HTTP_200_OK,
    summary="Render a content record in the requested locale.",
)
async def translate_record(
    content_type: str,
    payload: RecordTranslationRequest,
    service: ContentTranslationService = Depends(get_content_translation_service),
    settings: AppSettings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Return the record with its text fields translated when needed."""
    translated = await service.translate_content(
        _content_type(content_type),
        payload.record,
        payload.locale,
        should_auto_translate(settings),
    )
    return dict(translated)


@router.post(
    "/records/{content_type}/batch",
    response_model=RecordBatchTranslationResponse,
    status_code=status.HTTP_200_OK,
    summary="Render a page of content records in the requested locale.",
)
async def translate_record_batch(
    content_type: str,
    payload: RecordBatchTranslationRequest,
    service: ContentTranslationService = Depends(get_content_translation_service),
    settings: AppSettings = Depends(get_app_settings),
) -> RecordBatchTranslationResponse:
    """Translate every record concurrently; output order matches input order."""
    records = await service.translate_records(
        payload.records,
        payload.locale,
        content_type=_content_type(content_type),
        auto_translate=should_auto_translate(settings),
    )
    return RecordBatchTranslationResponse(
        locale=payload.locale,
        records=[dict(record) for record in records],
    )


@router.post(
    "/text",
    response_model=TextTranslationResponse,
    status_code=status.HTTP_200_OK,
    summary="Translate a single text fragment.",
)
async def translate_text(
    payload: TextTranslationRequest,
    translator: TranslationService = Depends(get_translation_service),
) -> TextTranslationResponse:
    translated = await translator.translate_text(
        payload.text,
        target_locale=payload.target_locale,
        source_locale=payload.source_locale,
    )
    return TextTranslationResponse(
        text=payload.text,
        translated_text=translated,
        translatable=translator.is_text_translatable(payload.text),
    )


@router.delete(
    "/cache",
    response_model=CacheClearResponse,
    status_code=status.HTTP_200_OK,
    summary="Drop every cached translation.",
)
async def clear_translation_cache(
    translator: TranslationService = Depends(get_translation_service),
) -> CacheClearResponse:
    return CacheClearResponse(cleared=await translator.clear_cache())
