from __future__ import annotations

import logging

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from epistemic.controller import StudyController
from epistemic.export import DOCX_MEDIA_TYPE, render_docx
from epistemic.gemini_client import GeminiClient, _env
from epistemic.memory import SessionStore
from epistemic.recognition import ScanError, ScanSession
from epistemic.schemas import ScanRequest, StudySnapshot, ToggleSet, TopicRequest

logger = logging.getLogger(__name__)


_client: GeminiClient | None = None


def _gemini() -> GeminiClient:
    # Shared across requests; not cached until construction succeeds.
    global _client
    if _client is None:
        _client = GeminiClient()
    return _client


async def _generate(prompt: str) -> str | None:
    return await _gemini().generate_text(prompt)


async def _recognize(image: bytes, mime_type: str) -> str:
    return await _gemini().extract_text(image, mime_type)


def _make_controller(session_id: str) -> StudyController:
    discard = (_env("EPISTEMIC_DISCARD_STALE", "") or "").strip().lower() in {"1", "true", "yes"}
    controller = StudyController(_generate, discard_stale_results=discard)

    def log_transition(snap: StudySnapshot) -> None:
        logger.info("session=%s status=%s busy=%s", session_id, snap.response.status.value, snap.busy)

    controller.subscribe(log_transition)
    return controller


app = FastAPI(title="Epistemic Study Material API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

store = SessionStore(_make_controller, ttl_seconds=int(_env("EPISTEMIC_SESSION_TTL", "3600") or "3600"))


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.get("/sessions/{session_id}", response_model=StudySnapshot)
async def session_get(session_id: str) -> StudySnapshot:
    return store.get_or_create(session_id).snapshot()


@app.put("/sessions/{session_id}/topic", response_model=StudySnapshot)
async def session_set_topic(session_id: str, req: TopicRequest) -> StudySnapshot:
    controller = store.get_or_create(session_id)
    controller.set_topic(req.topic)
    return controller.snapshot()


@app.put("/sessions/{session_id}/toggles", response_model=StudySnapshot)
async def session_set_toggles(session_id: str, toggles: ToggleSet) -> StudySnapshot:
    controller = store.get_or_create(session_id)
    controller.set_toggles(toggles)
    return controller.snapshot()


@app.post("/sessions/{session_id}/submit", response_model=StudySnapshot)
async def session_submit(session_id: str, background: BackgroundTasks, wait: bool = True) -> StudySnapshot:
    """
    Submits the current topic and toggles. With wait=false the pending state is
    returned immediately and the generation call finishes after the response.
    """
    controller = store.get_or_create(session_id)
    request = controller.begin(controller.topic, controller.toggles)
    if request is not None:
        if wait:
            await controller.complete(request)
        else:
            background.add_task(controller.complete, request)
    return controller.snapshot()


@app.post("/sessions/{session_id}/scan", response_model=StudySnapshot)
async def session_scan(
    session_id: str, req: ScanRequest, background: BackgroundTasks, wait: bool = True
) -> StudySnapshot:
    controller = store.get_or_create(session_id)
    scan = ScanSession(_recognize, controller.receive_text)
    try:
        request = await scan.scan_base64(req.imageBase64, req.mimeType)
    except ScanError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Scan failed: {e}")

    if request is not None:
        if wait:
            await controller.complete(request)
        else:
            background.add_task(controller.complete, request)
    return controller.snapshot()


@app.post("/sessions/{session_id}/clear", response_model=StudySnapshot)
async def session_clear(session_id: str) -> StudySnapshot:
    controller = store.get_or_create(session_id)
    controller.clear()
    return controller.snapshot()


@app.get("/sessions/{session_id}/download.docx")
async def session_download_docx(session_id: str) -> StreamingResponse:
    snap = store.get_or_create(session_id).snapshot()
    bio = render_docx(snap)

    filename = "study-material.docx"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return StreamingResponse(bio, media_type=DOCX_MEDIA_TYPE, headers=headers)
