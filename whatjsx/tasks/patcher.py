"""
tasks/patcher.py
────────────────────────────────────────────────────────────────────────────
* Skapar unified-diff-strängar (generate_patch) mellan original och JSX
* Räknar tillagda/borttagna rader ur en diff (diff_stats)

Kräver: unidiff>=0.7
"""

from __future__ import annotations

import difflib
from typing import Dict

from unidiff import PatchSet
from unidiff.errors import UnidiffParseError

# ────────────────────────── 1. Diff-generator ─────────────────────────────
def generate_patch(original: str, updated: str, filename: str) -> str:
    """
    Returnerar en unified diff-sträng mellan två kodsträngar.
    `filename` används bara för rubrikerna i diffen.
    """
    diff_iter = difflib.unified_diff(
        original.splitlines(keepends=True),
        updated.splitlines(keepends=True),
        fromfile=f"a/{filename}",
        tofile=f"b/{filename}",
        n=3,
    )
    lines = list(diff_iter)
    # Sista raden utan radslut skulle slås ihop med nästa rubrik
    return "".join(l if l.endswith("\n") else l + "\n" for l in lines)


# ────────────────────────── 2. Diff-statistik ─────────────────────────────
def diff_stats(patch_str: str) -> Dict[str, int]:
    """{"added": n, "removed": m} för en diff. Tom diff → nollor."""
    if not patch_str:
        return {"added": 0, "removed": 0}
    try:
        patch = PatchSet(patch_str)
    except UnidiffParseError as e:
        raise ValueError(f"Ogiltig diff: {e}") from e
    return {
        "added": sum(f.added for f in patch),
        "removed": sum(f.removed for f in patch),
    }
