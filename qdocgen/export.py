"""JSON export of a built document model for downstream renderers."""

from __future__ import annotations

import json
from pathlib import Path

from .models import DocumentModel
from .vocabulary import VOCABULARY_VERSION

EXPORT_VERSION = 1


def dump_model(model: DocumentModel) -> str:
    payload = {
        "version": EXPORT_VERSION,
        "vocabulary": VOCABULARY_VERSION,
        **model.to_dict(),
    }
    return json.dumps(payload, indent=2, sort_keys=True)


def write_model(model: DocumentModel, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_model(model) + "\n", encoding="utf-8")
    return path


__all__ = ["EXPORT_VERSION", "dump_model", "write_model"]
