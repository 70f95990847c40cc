"""
inala/services/settings_service.py

Purpose: Platform-wide settings

- Stored settings are merged over built-in defaults
- Partial updates merge into the stored document
"""

import copy
from datetime import datetime
from typing import Dict, Any

from inala.db.mongo import get_collection, sanitize_document, GLOBAL_SETTINGS
from inala.core.logging import get_logger
from utils.constants import DEFAULT_GLOBAL_SETTINGS

logger = get_logger(__name__)

SETTINGS_DOC_ID = "global"


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


async def get_global_settings() -> Dict[str, Any]:
    """
    Returns the platform settings, falling back to defaults when the
    stored document is missing or unreadable.
    """
    try:
        stored = await get_collection(GLOBAL_SETTINGS).find_one({"id": SETTINGS_DOC_ID})
    except Exception as e:
        logger.error(f"Failed to read global settings, using defaults: {e}")
        stored = None

    if not stored:
        return copy.deepcopy(DEFAULT_GLOBAL_SETTINGS)
    return _merge(DEFAULT_GLOBAL_SETTINGS, sanitize_document(stored))


async def update_global_settings(changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merges changes into the stored settings (nested dicts merge too).
    """
    current = await get_global_settings()
    updated = _merge(current, {k: v for k, v in changes.items() if k != "id"})
    updated["id"] = SETTINGS_DOC_ID
    updated["updated_at"] = datetime.utcnow()

    await get_collection(GLOBAL_SETTINGS).replace_one({"id": SETTINGS_DOC_ID}, updated, upsert=True)
    logger.info("Global settings updated", extra={"keys": sorted(changes.keys())})

    return sanitize_document(updated)


async def get_system_logo() -> str:
    settings_doc = await get_global_settings()
    return settings_doc.get("erp_logo_url") or ""
