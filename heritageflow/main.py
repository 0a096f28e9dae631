import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .controller import PlaybackController
from .layouts import build_view
from .llm_providers import GeminiClient
from .models import AppStatus, PresentationView
from .orchestrator import ContentOrchestrator
from .security import MAX_TOPIC_LENGTH, clean_topic, mask_api_key, safe_len

logger = logging.getLogger("heritageflow")


def build_controller(settings: Settings) -> PlaybackController:
    client = GeminiClient.from_settings(settings)
    orchestrator = ContentOrchestrator.from_settings(client, settings)
    return PlaybackController(orchestrator)


def create_app(controller: Optional[PlaybackController] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    # ---------- LOGGING ----------
    logging.basicConfig(level=settings.log_level, format="%(levelname)s: %(message)s")
    logger.info("GEMINI_BASE = %s", settings.gemini_base)
    logger.info("API key = %s", mask_api_key(settings.api_key) or "(not set)")
    # -----------------------------

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ctl = app.state.controller
        ctl.start()
        yield
        await ctl.aclose()

    app = FastAPI(title="HeritageFlow", version="1.0.0", lifespan=lifespan)
    app.state.controller = controller or build_controller(settings)

    # CORS: allow public use (restrict in production)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _controller(request: Request) -> PlaybackController:
        return request.app.state.controller

    def _view(ctl: PlaybackController) -> PresentationView:
        return build_view(ctl.snapshot())

    @app.get("/")
    async def root(request: Request):
        return {"service": "HeritageFlow", "status": _controller(request).status}

    @app.get("/presentation", response_model=PresentationView)
    async def presentation(request: Request):
        return _view(_controller(request))

    @app.post("/generate", response_model=PresentationView)
    async def generate(request: Request, topic: str = Form("", description="Heritage topic, e.g. 剪纸")):
        ctl = _controller(request)
        topic = clean_topic(topic)
        if not topic:
            raise HTTPException(422, detail="Please enter a topic.")
        if safe_len(topic) > MAX_TOPIC_LENGTH:
            raise HTTPException(422, detail=f"Topic too long (> {MAX_TOPIC_LENGTH} characters).")
        if ctl.status == AppStatus.GENERATING:
            raise HTTPException(409, detail="A presentation is already being generated.")

        await ctl.submit(topic)
        if ctl.status == AppStatus.ERROR:
            raise HTTPException(502, detail=ctl.error)
        return _view(ctl)

    @app.post("/navigate/next", response_model=PresentationView)
    async def navigate_next(request: Request):
        ctl = _controller(request)
        ctl.navigate_next()
        return _view(ctl)

    @app.post("/navigate/previous", response_model=PresentationView)
    async def navigate_previous(request: Request):
        ctl = _controller(request)
        ctl.navigate_previous()
        return _view(ctl)

    @app.post("/slides/jump/{index}", response_model=PresentationView)
    async def jump(request: Request, index: int):
        ctl = _controller(request)
        ctl.jump_to(index)
        return _view(ctl)

    @app.post("/slides/{slide_id}/refresh-image", response_model=PresentationView)
    async def refresh_image(request: Request, slide_id: str):
        ctl = _controller(request)
        await ctl.refresh_image(slide_id)
        return _view(ctl)

    @app.post("/keys", response_model=PresentationView)
    async def key(request: Request, key: str = Form(...)):
        ctl = _controller(request)
        ctl.handle_key(key)
        return _view(ctl)

    @app.post("/fullscreen", response_model=PresentationView)
    async def fullscreen(request: Request):
        ctl = _controller(request)
        ctl.toggle_fullscreen()
        return _view(ctl)

    @app.post("/reset", response_model=PresentationView)
    async def reset(request: Request):
        ctl = _controller(request)
        ctl.reset()
        return _view(ctl)

    @app.post("/export")
    async def export():
        raise HTTPException(501, detail="Export is not available yet.")

    return app


app = create_app()
