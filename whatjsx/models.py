from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StreamedFile(BaseModel):
    path: str = Field(..., description="Relativ sökväg från bundle-roten")
    content_b64: str = Field(..., description="Bas64-kodat filinnehåll")
    id: Optional[str] = None
    name: Optional[str] = None


class DiffStats(BaseModel):
    added: int = 0
    removed: int = 0


class TransformedFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    path: str
    content: str                    # originaltext (formaterad om formatering är på)
    converted: str                  # JSX-version; tom vid fel
    error: Optional[str] = None
    is_root: bool = Field(default=False, alias="isRoot")
    diff: str = ""                  # unified diff content → converted
    stats: DiffStats = Field(default_factory=DiffStats)
