"""
Celery-worker: bundlad JS (base64) → shim-normalisering → JSX-rekonstruktion
→ Prettier → TransformedFile-poster med diff mot originalet.

- Varje fil konverteras isolerat. Fel i en fil (syntaxfel, oväntade undantag)
  blir filens `error`; övriga filer påverkas inte.
- Rotfilen är första filen vars text innehåller `createElement`.
- Formatering är best effort (se formatting.py); konverteringen lyckas även
  utan Prettier.

Konfiguration:
- CELERY_BROKER_URL / CELERY_RESULT_BACKEND, default redis://redis:6379/0.
- Pipeflaggor via settings.py (fil + WHATJSX_*-env), kan skrivas över per
  anrop med `settings`-argumentet.
"""

from __future__ import annotations

import logging
import os
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional

from celery import Celery

from .formatting import format_code
from .patcher import diff_stats, generate_patch
from .preprocess import normalize_shims
from .settings import PipelineSettings, load_settings, settings_from_dict
from .syntax import ParseError
from .transform import reconstruct_jsx
from .utils import _safe_print, decode_b64_text
from ..models import DiffStats, TransformedFile

# ─────────────────────────────────────────────────────────
# Miljö & konfiguration
# ─────────────────────────────────────────────────────────

BROKER_URL = (os.getenv("CELERY_BROKER_URL") or "redis://redis:6379/0").strip()
RESULT_BACKEND = (os.getenv("CELERY_RESULT_BACKEND") or BROKER_URL).strip()

app = Celery("whatjsx", broker=BROKER_URL, backend=RESULT_BACKEND)
app.conf.update(task_serializer="json", result_serializer="json", accept_content=["json"])
celery_app: Celery = app

log = logging.getLogger("whatjsx/convert")

ROOT_MARKER = "createElement"

# ─────────────────────────────────────────────────────────
# Enskild källa
# ─────────────────────────────────────────────────────────

def convert_source(source: str, settings: Optional[PipelineSettings] = None) -> Dict[str, str]:
    """
    Kör hela pipen på en källtext.
    Returnerar {"converted": text} eller {"error": meddelande} vid syntaxfel.
    """
    s = settings or load_settings()
    try:
        text = normalize_shims(source) if s.normalize_shims else source
        text = reconstruct_jsx(text, receivers=s.receivers)
    except ParseError as e:
        log.info("Syntaxfel", extra={"line": e.line, "column": e.column})
        return {"error": str(e)}

    if s.format_output:
        text = format_code(text, s.prettier)
    return {"converted": text}


def find_root_file_id(files: List[Dict[str, Any]]) -> Optional[str]:
    """Id för första filen som innehåller createElement-anrop, annars None."""
    for f in files:
        if ROOT_MARKER in (f.get("content") or ""):
            return f.get("id")
    return None


# ─────────────────────────────────────────────────────────
# Batch
# ─────────────────────────────────────────────────────────

def _transform_one(path: str, file_id: str, name: str, content: str, s: PipelineSettings) -> TransformedFile:
    record = TransformedFile(id=file_id, name=name, path=path, content=content, converted="")

    size = len(content.encode("utf-8"))
    if size > s.max_file_bytes:
        record.error = f"Filen är för stor ({size} bytes, max {s.max_file_bytes})"
        return record

    result = convert_source(content, s)
    if "error" in result:
        record.error = result["error"]
        return record

    shown = format_code(content, s.prettier) if s.format_output else content
    patch = generate_patch(shown, result["converted"], path)
    record.content = shown
    record.converted = result["converted"]
    record.diff = patch
    record.stats = DiffStats(**diff_stats(patch))
    return record


def transform_streamed(files: List[Dict[str, Any]], settings: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    s = settings_from_dict(settings) if settings is not None else load_settings()
    _safe_print("transform.start", {"files": len(files), "receivers": s.receivers})

    decoded: List[Dict[str, Any]] = []
    out: List[TransformedFile] = []
    for i, f in enumerate(files):
        path = str(f.get("path") or f"file-{i}.js")
        file_id = str(f.get("id") or path)
        name = str(f.get("name") or PurePosixPath(path).name)
        try:
            content = decode_b64_text(f.get("content_b64") or "")
        except ValueError as e:
            out.append(TransformedFile(id=file_id, name=name, path=path, content="", converted="", error=str(e)))
            continue

        decoded.append({"id": file_id, "content": content})
        try:
            out.append(_transform_one(path, file_id, name, content, s))
        except Exception as e:
            log.exception("Konvertering misslyckades för %s", path)
            out.append(TransformedFile(id=file_id, name=name, path=path, content=content, converted="", error=str(e)))

    root_id = find_root_file_id(decoded)
    for rec in out:
        rec.is_root = rec.id == root_id

    _safe_print("transform.done", {
        "files": len(out),
        "errors": sum(1 for r in out if r.error),
        "rootFileId": root_id,
    })
    return {
        "files": [r.model_dump(by_alias=True) for r in out],
        "rootFileId": root_id,
    }


@app.task(name="whatjsx.tasks.convert.transform_files")
def transform_files(files: List[Dict[str, Any]], settings: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Celery-task. `files`: [{"path", "content_b64", "id"?, "name"?}, ...].
    Returnerar {"files": [TransformedFile...], "rootFileId": id | None}.
    """
    return transform_streamed(files, settings)


__all__ = [
    "app",
    "celery_app",
    "convert_source",
    "find_root_file_id",
    "transform_files",
    "transform_streamed",
]
