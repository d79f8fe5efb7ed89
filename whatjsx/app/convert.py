from __future__ import annotations

# whatjsx/app/convert.py
from typing import Any, Dict, List, Optional

from celery.result import AsyncResult
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field, model_validator

from whatjsx.models import StreamedFile
from whatjsx.tasks.convert import celery_app, convert_source
from whatjsx.tasks.settings import PipelineSettings, load_settings, settings_from_dict

router = APIRouter(tags=["convert"])

# ==== Scheman ====

class ConvertRequest(BaseModel):
    source: str = Field(..., description="Bundlad JavaScript-källa")
    settings: Optional[Dict[str, Any]] = Field(default=None, description="Partiella pipeinställningar (camelCase)")

class ConvertResponse(BaseModel):
    converted: Optional[str] = None
    error: Optional[str] = None

class TransformManifest(BaseModel):
    files: List[StreamedFile]
    settings: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def _validate_files(self) -> "TransformManifest":
        if not self.files:
            raise ValueError("files krävs och får inte vara tom")
        return self

class TransformStartResponse(BaseModel):
    task_id: str

class TransformStatusResponse(BaseModel):
    status: str
    files: Optional[List[Dict[str, Any]]] = None
    rootFileId: Optional[str] = None
    error: Optional[str] = None

# ==== Endpoints ====

def _settings(raw: Optional[Dict[str, Any]]) -> PipelineSettings:
    if raw is None:
        return load_settings()
    try:
        return settings_from_dict(raw)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Ogiltiga inställningar: {e}")

@router.post("/convert", response_model=ConvertResponse, response_model_exclude_none=True)
def convert(req: ConvertRequest):
    """
    Synkron konvertering av en enskild källa.
    """
    return ConvertResponse(**convert_source(req.source, _settings(req.settings)))

@router.post("/transform", response_model=TransformStartResponse)
def start_transform(manifest: TransformManifest):
    """
    Startar asynkron batchkonvertering. Returnerar Celery task_id.
    """
    if manifest.settings is not None:
        _settings(manifest.settings)
    try:
        task = celery_app.send_task(
            "whatjsx.tasks.convert.transform_files",
            args=[[f.model_dump() for f in manifest.files], manifest.settings],
        )
    except Exception as e:  # pragma: no cover - broker nere
        raise HTTPException(status_code=500, detail=f"Kunde inte queue:a transform_files: {e}")
    return TransformStartResponse(task_id=task.id)

@router.get("/transform/{task_id}", response_model=TransformStatusResponse)
def get_transform(task_id: str):
    """
    Hämtar status samt resultat (om klart).
    """
    res: AsyncResult = AsyncResult(task_id, app=celery_app)

    state = res.state
    if state == "PENDING":
        return TransformStatusResponse(status="PENDING")
    if state in ("STARTED", "RETRY"):
        return TransformStatusResponse(status=state)
    if state == "FAILURE":
        # res.result kan vara exception-objekt
        err_str = str(res.result) if res.result else "Okänt fel"
        return TransformStatusResponse(status="FAILURE", error=err_str)
    if state == "SUCCESS":
        data = res.result or {}
        return TransformStatusResponse(status="SUCCESS", files=data.get("files"), rootFileId=data.get("rootFileId"))
    # Okända tillstånd
    return TransformStatusResponse(status=state)
