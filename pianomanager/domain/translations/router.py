"""Translation management endpoints"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from ...auth import get_current_admin, get_current_user
from ...models import User
from .store import LANGUAGES, REFERENCE_LANGUAGE, CSVFormatError, TranslationStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/translations", tags=["Translations"])


class UpdateTranslationRequest(BaseModel):
    language: str
    key: str = Field(..., min_length=1)
    value: str


class BulkUpdateRequest(BaseModel):
    language: str
    translations: dict[str, str]


def get_translation_store() -> TranslationStore:
    return TranslationStore()


def _check_language(language: str) -> str:
    if language not in LANGUAGES:
        raise HTTPException(status_code=400, detail=f"Unsupported language: {language}")
    return language


@router.get("/languages")
async def get_languages(current_user: User = Depends(get_current_user)):
    return [
        {"code": code, "name": name, "isReference": code == REFERENCE_LANGUAGE}
        for code, name in LANGUAGES.items()
    ]


@router.get("/keys")
async def get_keys(
    current_user: User = Depends(get_current_user),
    store: TranslationStore = Depends(get_translation_store),
):
    """Keys of the reference language"""
    return store.reference_keys()


@router.get("/stats")
async def get_stats(
    current_user: User = Depends(get_current_user),
    store: TranslationStore = Depends(get_translation_store),
):
    return store.stats()


@router.get("/export")
async def export_translations(
    current_admin: User = Depends(get_current_admin),
    store: TranslationStore = Depends(get_translation_store),
):
    filename = f"translations_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
    logger.info(f"📊 Translation export requested by user {current_admin.id}")
    return StreamingResponse(
        iter([store.export_csv()]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename={filename}",
            "Cache-Control": "no-cache",
        },
    )


@router.post("/import")
async def import_translations(
    file: UploadFile = File(...),
    current_admin: User = Depends(get_current_admin),
    store: TranslationStore = Depends(get_translation_store),
):
    content = await file.read()
    try:
        result = store.import_csv(content.decode("utf-8"))
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV must be UTF-8 encoded")
    except CSVFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"🌐 Imported {result['imported']} translations by user {current_admin.id}")
    return result


@router.put("")
async def update_translation(
    data: UpdateTranslationRequest,
    current_admin: User = Depends(get_current_admin),
    store: TranslationStore = Depends(get_translation_store),
):
    store.update(_check_language(data.language), {data.key: data.value})
    return {"success": True, "message": "Translation updated"}


@router.put("/bulk")
async def update_translations(
    data: BulkUpdateRequest,
    current_admin: User = Depends(get_current_admin),
    store: TranslationStore = Depends(get_translation_store),
):
    count = store.update(_check_language(data.language), data.translations)
    return {"success": True, "count": count}


@router.get("/{language}")
async def get_translations(
    language: str,
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    store: TranslationStore = Depends(get_translation_store),
):
    """Translations of one language, optionally filtered by key or value"""
    return {"language": language, "translations": store.search(_check_language(language), search)}
