"""
FastAPI service for labeled face descriptors.

Endpoints
---------
POST /upload?label=L            – store a photo under a label
GET  /get-labeled-faces         – labeled descriptors as JSON for client-side matching
GET  /real-time-face-recognition – build the registry (once) and serve the live page
POST /describe                  – descriptor of the face in one photo
POST /send-sms                  – relay a text message through Twilio

Run with ``uvicorn backend.facelabel.main:app --port 9000`` or ``facelabel-server``.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from . import config
from .extractor import DeepFaceExtractor
from .registry import LabeledDescriptorRegistry, RegistryBuilder
from .routes import router
from .sms import SmsSender
from .store import ImageStore
from .tasks import run_in_worker, start_workers

logger = logging.getLogger(__name__)


async def _load_models(extractor):
    try:
        await run_in_worker(extractor.load_models)
    except Exception:
        logger.exception("Face models could not be loaded")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.public_dir.mkdir(parents=True, exist_ok=True)
    app.state.store.root.mkdir(parents=True, exist_ok=True)
    start_workers()
    # Routes are served while the models load; extraction waits on the same load
    warmup = asyncio.create_task(_load_models(app.state.extractor))
    try:
        yield
    finally:
        if not warmup.done():
            warmup.cancel()


def create_app(
    store: Optional[ImageStore] = None,
    extractor=None,
    sms: Optional[SmsSender] = None,
    public_dir: Optional[Path] = None,
    rebuild_on_upload: bool = config.REBUILD_ON_UPLOAD,
) -> FastAPI:
    """Wire the store, extractor, registry and SMS sender into a FastAPI app."""
    store = store or ImageStore(config.UPLOADS_DIR)
    extractor = extractor or DeepFaceExtractor()
    public_dir = Path(public_dir or config.PUBLIC_DIR)

    app = FastAPI(title="Face Label Server", version="1.0.0", lifespan=lifespan)
    app.state.public_dir = public_dir
    app.state.store = store
    app.state.extractor = extractor
    app.state.registry = LabeledDescriptorRegistry(RegistryBuilder(store, extractor))
    app.state.sms = sms or SmsSender()
    app.state.rebuild_on_upload = rebuild_on_upload

    app.include_router(router)
    # Everything else under the public root (uploads, models, pages) is served as-is
    app.mount("/", StaticFiles(directory=public_dir, check_dir=False), name="public")
    return app


app = create_app()


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logger.info(f"Server is running on http://localhost:{config.PORT}")
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    main()
