import asyncio
from collections import OrderedDict
import contextlib
import functools
import logging
import time
from typing import Awaitable, Callable
import uuid

from google import genai
from jinja2 import Environment, FileSystemLoader, select_autoescape
import openai
from rich.logging import RichHandler
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, RedirectResponse
from starlette.routing import Route

from dreamsweets import config
from dreamsweets.domain.concept_service import ConceptService
from dreamsweets.domain.image_service import ImageService
from dreamsweets.domain.models import Constraints, FormInputs, GenerationState
from dreamsweets.domain.orchestrator import (
    ConceptProvider,
    GenerationOrchestrator,
    ImageProvider,
)
from dreamsweets.html.generation import GenerationView
from dreamsweets.messages import messages_for


logger = logging.getLogger(__name__)


SESSION_COOKIE = "dreamsweets-session"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


class Session:
    """One browser session: its orchestrator and the attempt in flight."""

    def __init__(self, orchestrator: GenerationOrchestrator, now: float = 0.0) -> None:
        self.orchestrator = orchestrator
        self.tasks: set[asyncio.Task[GenerationState]] = set()
        self.last_seen = now

    @property
    def busy(self) -> bool:
        return bool(self.tasks)

    def _finished(self, task: asyncio.Task[GenerationState]) -> None:
        self.tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Generation attempt crashed", exc_info=exc)

    async def start(self, attempt: Awaitable[GenerationState]) -> None:
        task = asyncio.ensure_future(attempt)
        self.tasks.add(task)
        task.add_done_callback(self._finished)
        # Let the attempt commit its first transition before we redirect.
        await asyncio.sleep(0)


class Sessions:
    """Sessions by cookie, least recently used first.

    Idle sessions older than `ttl` are dropped, and the oldest idle ones go
    once there are more than `max_sessions`. A session with an attempt in
    flight is never dropped.
    """

    def __init__(
        self,
        factory: Callable[[], GenerationOrchestrator],
        *,
        max_sessions: int = 1000,
        ttl: float = 60 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.factory = factory
        self.max_sessions = max_sessions
        self.ttl = ttl
        self.clock = clock
        self._sessions: OrderedDict[str, Session] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def _evict(self, now: float, keep: str | None = None) -> None:
        for session_id, session in list(self._sessions.items()):
            if session.busy or session_id == keep:
                continue
            expired = now - session.last_seen > self.ttl
            if not expired and len(self._sessions) <= self.max_sessions:
                break
            logger.debug("Dropping session %s", session_id)
            del self._sessions[session_id]

    def find(self, session_id: str | None) -> Session | None:
        now = self.clock()
        self._evict(now)
        if session_id is None or session_id not in self._sessions:
            return None
        session = self._sessions[session_id]
        session.last_seen = now
        self._sessions.move_to_end(session_id)
        return session

    def get(self, session_id: str | None) -> tuple[str, Session]:
        session = self.find(session_id)
        if session_id is None or session is None:
            session_id = uuid.uuid4().hex
            session = Session(self.factory(), now=self.clock())
            self._sessions[session_id] = session
            self._evict(session.last_seen, keep=session_id)
        return session_id, session


def with_session(
    route: Callable[[Request, Session], Awaitable[HTMLResponse | RedirectResponse]],
):
    @functools.wraps(route)
    async def wrapper(request: Request) -> HTMLResponse | RedirectResponse:
        sessions: Sessions = request.app.state.sessions
        session_id, session = sessions.get(request.cookies.get(SESSION_COOKIE))
        resp = await route(request, session)
        if request.cookies.get(SESSION_COOKIE) != session_id:
            resp.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
        return resp

    return wrapper


def home() -> RedirectResponse:
    return RedirectResponse("/", status_code=303)


def create_app(
    *,
    settings: config.Config | None = None,
    concepts: ConceptProvider | None = None,
    images: ImageProvider | None = None,
) -> Starlette:
    settings = config.Config() if settings is None else settings
    messages = messages_for(settings.locale)
    templates = Environment(
        loader=FileSystemLoader(settings.html_dir),
        autoescape=select_autoescape(),
    )

    async def keys_ready() -> bool:
        return settings.keys_present

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        configure_logging(settings.log_level)
        if not settings.keys_present:
            # The clients refuse to start without a key. Every attempt will
            # stop at the key check instead.
            logger.warning("OPENAI_API_KEY or GOOGLE_API_KEY is not set")
        else:
            if app.state.concepts is None:
                app.state.concepts = ConceptService(
                    openai.AsyncClient(api_key=settings.openai_api_key),
                    model=settings.concept_model,
                    locale=settings.locale,
                )
            if app.state.images is None:
                app.state.images = ImageService(
                    genai.Client(api_key=settings.google_api_key),
                    model=settings.image_model,
                    aspect_ratio=settings.image_aspect_ratio,
                )
        logger.info("DreamSweets ready (%s)", settings.env.value)
        yield

    def orchestrator() -> GenerationOrchestrator:
        return GenerationOrchestrator(
            app.state.concepts,
            app.state.images,
            locale=settings.locale,
            key_check=keys_ready,
        )

    async def homepage(request: Request) -> HTMLResponse:
        sessions: Sessions = request.app.state.sessions
        session = sessions.find(request.cookies.get(SESSION_COOKIE))
        # Sessions start on the first form post.
        if session is None:
            state, inputs = GenerationState(), FormInputs()
        else:
            state = session.orchestrator.state
            inputs = session.orchestrator.inputs
        view = GenerationView(
            state,
            inputs,
            messages=messages,
            environment=templates,
            refresh_seconds=settings.refresh_seconds,
        )
        return HTMLResponse(view.render())

    @with_session
    async def generate(request: Request, session: Session) -> RedirectResponse:
        async with request.form() as form:
            keyword = str(form.get("keyword", ""))
            constraints = Constraints.from_form(
                str(form.get("target-cost", "")),
                str(form.get("target-price", "")),
            )
        await session.start(session.orchestrator.submit_keyword(keyword, constraints))
        return home()

    @with_session
    async def refine(request: Request, session: Session) -> RedirectResponse:
        async with request.form() as form:
            feedback = str(form.get("feedback", ""))
        await session.start(session.orchestrator.submit_feedback(feedback))
        return home()

    @with_session
    async def reset(request: Request, session: Session) -> RedirectResponse:
        session.orchestrator.reset()
        return home()

    app = Starlette(
        debug=True if settings.env == config.Env.local else False,
        routes=[
            Route("/", homepage),
            Route("/generate", generate, methods=["POST"]),
            Route("/refine", refine, methods=["POST"]),
            Route("/reset", reset, methods=["POST"]),
        ],
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.concepts = concepts
    app.state.images = images
    app.state.sessions = Sessions(
        orchestrator,
        max_sessions=settings.max_sessions,
        ttl=settings.session_ttl,
    )
    return app


app = create_app()
