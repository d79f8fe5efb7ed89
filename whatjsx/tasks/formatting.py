# whatjsx/tasks/formatting.py
"""
Kodformatering (Prettier) som extern process.

Prettier körs via stdin/stdout så inga temporära filer behövs. Allt är best
effort: saknas binären, tar det för lång tid eller returnerar Prettier fel
lämnas texten orörd och en varning loggas. Ingen regex-fallback.

Binären letas upp i ordning:
  1) PRETTIER_BIN (env)
  2) <cwd>/node_modules/.bin/prettier(.cmd)
  3) `prettier` på PATH
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from .settings import PrettierSettings

log = logging.getLogger("whatjsx/formatting")

PRETTIER_BIN = (os.getenv("PRETTIER_BIN") or "").strip()
PRETTIER_TIMEOUT_S = int(os.getenv("PRETTIER_TIMEOUT_S", "30"))


def _run(cmd: List[str], stdin: str, timeout: int | None = None) -> Tuple[int, str, str]:
    p = subprocess.run(
        cmd,
        input=stdin,
        text=True,
        encoding="utf-8",
        capture_output=True,
        timeout=timeout,
    )
    return p.returncode, p.stdout, p.stderr


def _prettier_bin(base: Path | None = None) -> List[str] | None:
    """
    Returnera kommando för prettier om den finns, annars None.
    """
    if PRETTIER_BIN:
        return [PRETTIER_BIN]
    base = base or Path.cwd()
    unix_bin = base / "node_modules" / ".bin" / "prettier"
    win_bin = base / "node_modules" / ".bin" / "prettier.cmd"
    if unix_bin.exists():
        return [str(unix_bin)]
    if win_bin.exists():
        return [str(win_bin)]
    found = shutil.which("prettier")
    return [found] if found else None


def _prettier_args(opts: PrettierSettings, parser: str) -> List[str]:
    args = [
        "--parser", parser,
        "--print-width", str(opts.print_width),
        "--tab-width", str(opts.tab_width),
        "--trailing-comma", opts.trailing_comma,
    ]
    if opts.use_tabs:
        args.append("--use-tabs")
    if not opts.semi:
        args.append("--no-semi")
    if opts.single_quote:
        args.append("--single-quote")
    if not opts.bracket_spacing:
        args.append("--no-bracket-spacing")
    if opts.jsx_single_quote:
        args.append("--jsx-single-quote")
    return args


def format_code(code: str, settings: Optional[PrettierSettings] = None, parser: str = "babel") -> str:
    """
    Formaterar `code` med Prettier. Returnerar formaterad text, eller `code`
    oförändrad om något går fel.
    """
    cmd = _prettier_bin()
    if cmd is None:
        log.warning("Prettier hittades inte, lämnar koden oformaterad")
        return code

    opts = settings or PrettierSettings()
    try:
        rc, out, err = _run([*cmd, *_prettier_args(opts, parser)], code, timeout=PRETTIER_TIMEOUT_S)
    except subprocess.TimeoutExpired:
        log.warning("Prettier timeout efter %ss", PRETTIER_TIMEOUT_S)
        return code
    except OSError as e:
        log.warning("Prettier kunde inte startas: %s", e)
        return code
    except (UnicodeError, ValueError) as e:
        log.warning("Prettier fick ogiltig indata: %s", e)
        return code

    if rc != 0:
        log.warning("Prettier misslyckades (rc=%s): %s", rc, err[:2000])
        return code
    return out
