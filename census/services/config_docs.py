from __future__ import annotations

from typing import Any

from django.db import transaction

from census.models import ConfigDocument

WHATSAPP_CONFIG = 'whatsapp'


def deep_merge(base: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_config(name: str) -> dict[str, Any]:
    doc = ConfigDocument.objects.filter(name=name).first()
    return dict(doc.data) if doc else {}


def merge_config(name: str, data: dict[str, Any]) -> dict[str, Any]:
    """Merge ``data`` into the named document, creating it if needed."""
    with transaction.atomic():
        doc, _ = ConfigDocument.objects.select_for_update().get_or_create(name=name)
        doc.data = deep_merge(doc.data or {}, data)
        doc.save(update_fields=['data', 'updated_at'])
    return doc.data
