# whatjsx/tasks/utils.py
"""
Gemensamma hjälpfunktioner för Celery-workern:

* JSON-loggrader per händelse (_safe_print)
* Avkodning av strömmade filer (base64 → text)
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

# ─────────────────────────── 0) Logghjälp ───────────────────────────

def _safe_print(tag: str, payload: Any) -> None:
    try:
        print(f"[{tag}]", json.dumps(payload, ensure_ascii=False, default=str), flush=True)
    except (TypeError, ValueError):
        print(f"[{tag}]", str(payload), flush=True)


# ─────────────────────────── 1) Filinnehåll ───────────────────────────

def decode_b64_text(content_b64: str) -> str:
    """
    base64 → UTF-8-text. Ogiltiga bytes ignoreras (bundles kan innehålla
    enstaka trasiga tecken). Höjer ValueError om base64-strängen är ogiltig.
    """
    try:
        raw = base64.b64decode(content_b64, validate=False)
    except binascii.Error as e:
        raise ValueError(f"Ogiltig base64: {e}") from e
    return raw.decode("utf-8", errors="ignore")


def encode_b64_text(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")
