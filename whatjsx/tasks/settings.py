# whatjsx/tasks/settings.py
"""
Inställningar för konverteringspipen.

• Prettier-alternativ och pipeflaggor som pydantic-modeller (camelCase i JSON,
  samma nycklar som det sparade inställningsformatet).
• load_settings() slår ihop en JSON-fil med defaults; trasig eller saknad fil
  ger defaults + varning, aldrig ett fel.
• Miljövariabler (laddas via .env i tasks/__init__.py) skriver över filen.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

log = logging.getLogger("whatjsx/settings")

# ── Konfiguration via env ───────────────────────────────────────────────────
SETTINGS_PATH = Path(
    os.getenv("WHATJSX_SETTINGS", str(Path.home() / ".whatjsx" / "settings.json"))
).expanduser()

# "React" | "React,Preact" | "*" (valfri identifierare)
RECEIVERS_ENV = os.getenv("WHATJSX_RECEIVERS", "").strip()
FORMAT_ENV = os.getenv("WHATJSX_FORMAT", "").strip().lower()


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PrettierSettings(_CamelModel):
    print_width: int = Field(default=100, ge=20, le=400)
    tab_width: int = Field(default=2, ge=1, le=16)
    use_tabs: bool = False
    semi: bool = True
    single_quote: bool = True
    trailing_comma: Literal["none", "es5", "all"] = "es5"
    bracket_spacing: bool = True
    jsx_single_quote: bool = False


class PipelineSettings(_CamelModel):
    prettier: PrettierSettings = Field(default_factory=PrettierSettings)
    normalize_shims: bool = True
    format_output: bool = True
    # None = valfri `<Ident>.createElement`
    receivers: Optional[List[str]] = Field(default_factory=lambda: ["React"])
    max_file_bytes: int = Field(default=5_000_000, ge=1000)

    def dump(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def _env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(data)
    if RECEIVERS_ENV:
        out["receivers"] = None if RECEIVERS_ENV == "*" else [
            r.strip() for r in RECEIVERS_ENV.split(",") if r.strip()
        ]
    if FORMAT_ENV:
        out["formatOutput"] = FORMAT_ENV in ("1", "true", "yes")
    return out


def settings_from_dict(data: Dict[str, Any] | None) -> PipelineSettings:
    """
    Validerar ett (partiellt) inställnings-dict. Saknade nycklar, även inuti
    `prettier`, fylls från defaults.
    """
    return PipelineSettings.model_validate(data or {})


def load_settings(path: Path | str | None = None) -> PipelineSettings:
    p = Path(path).expanduser() if path else SETTINGS_PATH
    data: Dict[str, Any] = {}
    if p.exists():
        try:
            raw = json.loads(p.read_text(encoding="utf-8"))
            if isinstance(raw, dict):
                data = raw
            else:
                log.warning("Inställningsfilen är inte ett JSON-objekt: %s", p)
        except (OSError, ValueError) as e:
            log.warning("Kunde inte läsa inställningar från %s: %s", p, e)

    try:
        return settings_from_dict(_env_overrides(data))
    except ValidationError as e:
        log.warning("Ogiltiga inställningar i %s, använder defaults: %s", p, e)
        return settings_from_dict(_env_overrides({}))


def save_settings(settings: PipelineSettings, path: Path | str | None = None) -> bool:
    p = Path(path).expanduser() if path else SETTINGS_PATH
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(settings.dump(), indent=2), encoding="utf-8")
    except OSError as e:
        log.warning("Kunde inte spara inställningar till %s: %s", p, e)
        return False
    log.info("Inställningar sparade", extra={"path": str(p)})
    return True
