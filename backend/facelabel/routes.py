"""
API route handlers for the face label server.
"""
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, File, Query, Request, UploadFile
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from .errors import ImageDecodeError, InvalidLabelError, SmsError
from .registry import LabeledDescriptorRegistry
from .store import validate_label
from .tasks import run_in_worker
from .utils import bgr_from_bytes

logger = logging.getLogger(__name__)

router = APIRouter()


class SmsRequest(BaseModel):
    to: str
    message: str


def _page(request: Request, name: str) -> FileResponse:
    return FileResponse(request.app.state.public_dir / name, media_type="text/html")


def _registry(request: Request) -> LabeledDescriptorRegistry:
    return request.app.state.registry


# ---------- SMS ----------
@router.post("/send-sms")
async def send_sms(payload: SmsRequest, request: Request):
    """Relay a text message through Twilio."""
    try:
        await run_in_threadpool(request.app.state.sms.send, payload.to, payload.message)
    except SmsError as e:
        logger.error(f"Error sending SMS: {e}")
        return PlainTextResponse("Error sending SMS", status_code=500)
    return PlainTextResponse("SMS sent successfully")


# ---------- Uploads ----------
@router.post("/upload")
async def upload(request: Request, label: Optional[str] = Query(None), image: UploadFile = File(...)):
    """Store one photo under ``label``."""
    try:
        label = validate_label(label)
    except InvalidLabelError as e:
        logger.warning(f"Rejected upload: {e}")
        return PlainTextResponse("Invalid label", status_code=400)

    data = await image.read()
    try:
        path = await run_in_threadpool(request.app.state.store.save_upload, label, data)
    except OSError as e:
        logger.error(f"Error uploading image for label {label}: {e}")
        return PlainTextResponse("Error uploading image", status_code=500)

    logger.info(f"Upload route hit. File saved: {path}")
    if request.app.state.rebuild_on_upload:
        _registry(request).invalidate()
    return PlainTextResponse("Image uploaded")


# ---------- Pages ----------
@router.get("/")
async def index(request: Request):
    return _page(request, "index.html")


@router.get("/register")
async def register(request: Request):
    return _page(request, "register.html")


@router.get("/real-time-face-recognition")
async def real_time_face_recognition(request: Request):
    """Make sure the labeled descriptors are loaded before serving the page."""
    try:
        await _registry(request).get_or_build()
    except Exception as e:
        # The page still loads; /get-labeled-faces serves [] and the next visit retries
        logger.error(f"Labeled face descriptors could not be loaded: {e}")
    return _page(request, "real_time_face_recognition.html")


# ---------- Labeled descriptors ----------
@router.get("/get-labeled-faces")
async def get_labeled_faces(request: Request):
    logger.info("Sending labeled face descriptors to client.")
    return JSONResponse(_registry(request).to_wire_format())


@router.get("/labeled-faces/status")
async def labeled_faces_status(request: Request):
    """Report the cache state. ``built`` stays false after a build that found no faces; see ``build_count``."""
    return _registry(request).status()


@router.delete("/labeled-faces")
async def invalidate_labeled_faces(request: Request):
    _registry(request).invalidate()
    return {"invalidated": True}


async def _rebuild_in_background(registry: LabeledDescriptorRegistry):
    try:
        await registry.rebuild()
    except Exception:
        logger.exception("Background rebuild of labeled face descriptors failed")


@router.post("/labeled-faces/rebuild")
async def rebuild_labeled_faces(request: Request, background_tasks: BackgroundTasks):
    """Schedule a full rebuild; poll /labeled-faces/status for progress."""
    background_tasks.add_task(_rebuild_in_background, _registry(request))
    return {"status": "scheduled"}


# ---------- Descriptor extraction ----------
@router.post("/describe")
async def describe(request: Request, image: UploadFile = File(...)):
    """Return the descriptor of the face in an image so the client can match it locally."""
    data = await image.read()
    try:
        detection = await run_in_worker(_describe_bytes, request.app.state.extractor, data)
    except ImageDecodeError as e:
        logger.warning(f"Rejected image for /describe: {e}")
        return PlainTextResponse("Unsupported or corrupt image", status_code=415)

    return JSONResponse([detection.to_dict()] if detection is not None else [])


def _describe_bytes(extractor, data: bytes):
    """Decode and extract in one worker task."""
    return extractor.detect(bgr_from_bytes(data))
