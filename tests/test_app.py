import asyncio
import logging

import pytest
from starlette.applications import Starlette
from starlette.testclient import TestClient

from dreamsweets.app import SESSION_COOKIE, Session, Sessions, create_app
from dreamsweets.config import Config
from dreamsweets.domain.errors import SafetyRejected
from dreamsweets.domain.models import Constraints, GenerationState, Status
from dreamsweets.domain.orchestrator import GenerationOrchestrator
from dreamsweets.messages import CATALOG, Locale

from tests.fakes import FakeConcepts, FakeImages, make_concept, make_image


JA = CATALOG[Locale.ja]


def settings(**overrides: object) -> Config:
    values: dict[str, object] = {"openai_api_key": "sk-test", "google_api_key": "g-test"}
    values.update(overrides)
    return Config(**values)  # pyright: ignore[reportArgumentType]


def make_app(
    concepts: FakeConcepts, images: FakeImages, **overrides: object
) -> Starlette:
    return create_app(settings=settings(**overrides), concepts=concepts, images=images)


def test_homepage_starts_idle() -> None:
    app = make_app(FakeConcepts(), FakeImages())
    with TestClient(app) as client:
        resp = client.get("/")
    assert resp.status_code == 200
    assert SESSION_COOKIE not in resp.cookies
    assert JA.headline in resp.text
    assert len(app.state.sessions) == 0


def test_generate_refine_reset() -> None:
    concept = make_concept()
    fruity = make_concept("Fruity Sunset Tart")
    concepts = FakeConcepts(concept, fruity)
    images = FakeImages(make_image(), SafetyRejected("IMAGE_SAFETY"))
    app = make_app(concepts, images)

    with TestClient(app) as client:
        resp = client.post(
            "/generate",
            data={"keyword": "sunset", "target-cost": "300円", "target-price": ""},
        )
        assert resp.status_code == 200
        assert concept.title in resp.text
        assert concepts.calls[0] == (
            "generate",
            ("sunset", Constraints(target_cost="300円")),
        )

        resp = client.post("/refine", data={"feedback": "make it more fruity"})
        assert fruity.title in resp.text
        assert JA.safety_filtered in resp.text

        resp = client.post("/reset")
        assert JA.headline in resp.text
        assert fruity.title not in resp.text

    [session_id] = list(app.state.sessions._sessions)
    _, session = app.state.sessions.get(session_id)
    assert session.orchestrator.state.status is Status.idle


def test_text_failure_shows_error() -> None:
    app = make_app(FakeConcepts(RuntimeError("down")), FakeImages())
    with TestClient(app) as client:
        resp = client.post("/generate", data={"keyword": "sunset"})
    assert JA.text_failed in resp.text
    assert 'value="sunset"' in resp.text


def test_missing_keys_stop_generation() -> None:
    concepts = FakeConcepts(make_concept())
    app = make_app(concepts, FakeImages(), openai_api_key=None)
    with TestClient(app) as client:
        resp = client.post("/generate", data={"keyword": "sunset"})
    assert JA.missing_key in resp.text
    assert concepts.calls == []


def test_sessions_are_separate() -> None:
    app = make_app(FakeConcepts(make_concept()), FakeImages(make_image()))
    with TestClient(app) as first, TestClient(app) as second:
        first.post("/generate", data={"keyword": "sunset"})
        resp = second.get("/")
        assert JA.headline in resp.text
        assert len(app.state.sessions) == 1

        resp = second.post("/reset")
        assert JA.headline in resp.text
    assert len(app.state.sessions) == 2


def test_session_count_is_capped() -> None:
    app = make_app(FakeConcepts(), FakeImages(), max_sessions=3)
    with TestClient(app) as client:
        for _ in range(10):
            client.cookies.clear()
            client.post("/reset")
        latest = client.cookies[SESSION_COOKIE]
    assert len(app.state.sessions) == 3
    assert app.state.sessions.find(latest) is not None


class Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def idle_orchestrator() -> GenerationOrchestrator:
    return GenerationOrchestrator(FakeConcepts(), FakeImages())


def test_idle_sessions_expire() -> None:
    clock = Clock()
    sessions = Sessions(idle_orchestrator, ttl=60, clock=clock)
    old_id, _ = sessions.get(None)
    clock.now = 30
    recent_id, recent = sessions.get(None)

    clock.now = 70
    assert sessions.find(old_id) is None
    assert sessions.find(recent_id) is recent
    assert len(sessions) == 1

    # Touching a session keeps it alive.
    clock.now = 120
    assert sessions.get(recent_id) == (recent_id, recent)
    assert len(sessions) == 1


@pytest.mark.asyncio
async def test_busy_session_is_kept() -> None:
    concepts = FakeConcepts(make_concept())
    concepts.gate = asyncio.Event()
    sessions = Sessions(
        lambda: GenerationOrchestrator(concepts, FakeImages(make_image())),
        max_sessions=1,
        clock=Clock(),
    )
    busy_id, busy = sessions.get(None)
    await busy.start(busy.orchestrator.submit_keyword("sunset"))
    assert busy.busy

    sessions.get(None)
    assert len(sessions) == 2
    assert sessions.find(busy_id) is busy

    concepts.gate.set()
    [task] = busy.tasks
    await task
    await asyncio.sleep(0)
    assert not busy.busy

    newest_id, _ = sessions.get(None)
    assert len(sessions) == 1
    assert sessions.find(busy_id) is None
    assert sessions.find(newest_id) is not None


@pytest.mark.asyncio
async def test_crashed_attempt_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    orch = GenerationOrchestrator(FakeConcepts(make_concept()), FakeImages(make_image()))

    def explode(state: GenerationState) -> None:
        raise RuntimeError("listener down")

    orch.subscribe(explode)
    session = Session(orch)
    with caplog.at_level(logging.ERROR, logger="dreamsweets.app"):
        await session.start(orch.submit_keyword("sunset"))
        await asyncio.sleep(0)

    assert "Generation attempt crashed" in caplog.text
    assert "listener down" in caplog.text
    assert session.tasks == set()


def test_english_locale() -> None:
    app = make_app(FakeConcepts(), FakeImages(), locale="en")
    with TestClient(app) as client:
        resp = client.get("/")
    assert CATALOG[Locale.en].headline in resp.text
