from jinja2 import Environment, FileSystemLoader, select_autoescape
import pytest

from dreamsweets.config import HTML_DIR
from dreamsweets.domain.models import (
    Concept,
    FormInputs,
    GeneratedImage,
    GenerationState,
    Status,
)
from dreamsweets.html.generation import GenerationView
from dreamsweets.messages import CATALOG, Locale

from tests.fakes import make_concept


JA = CATALOG[Locale.ja]

TEMPLATES = Environment(loader=FileSystemLoader(HTML_DIR), autoescape=select_autoescape())


def view(state: GenerationState, inputs: FormInputs | None = None) -> GenerationView:
    return GenerationView(
        state,
        FormInputs() if inputs is None else inputs,
        messages=JA,
        environment=TEMPLATES,
    )


@pytest.mark.parametrize(
    "status,form,loading,refresh,result",
    (
        (Status.idle, True, False, False, False),
        (Status.error, True, False, False, False),
        (Status.checking_key, True, False, True, False),
        (Status.generating_text, False, True, True, False),
        (Status.generating_image, False, True, True, False),
    ),
)
def test_sections_follow_status(
    status: Status, form: bool, loading: bool, refresh: bool, result: bool
) -> None:
    got = view(GenerationState(status=status))
    assert got.show_form is form
    assert (got.loading_message is not None) is loading
    assert (got.refresh is not None) is refresh
    assert got.show_result is result


def test_idle_form() -> None:
    html = view(GenerationState()).render()
    assert 'action="/generate"' in html
    assert JA.headline in html
    assert "disabled" not in html
    assert 'http-equiv="refresh"' not in html


def test_checking_key_disables_submit() -> None:
    got = view(GenerationState(status=Status.checking_key))
    assert not got.form_enabled
    html = got.render()
    assert "disabled" in html
    assert 'http-equiv="refresh" content="2"' in html


def test_error_keeps_inputs() -> None:
    state = GenerationState(status=Status.error, top_level_error=JA.text_failed)
    html = view(state, FormInputs(keyword="sunset", target_cost="300円")).render()
    assert JA.text_failed in html
    assert 'value="sunset"' in html
    assert 'value="300円"' in html


@pytest.mark.parametrize(
    "status,message",
    (
        (Status.generating_text, JA.generating_text),
        (Status.generating_image, JA.generating_image),
    ),
)
def test_loading(status: Status, message: str, concept: Concept) -> None:
    html = view(GenerationState(status=status, concept=concept)).render()
    assert message in html
    assert 'http-equiv="refresh"' in html
    assert concept.title not in html


def test_completed_with_image(concept: Concept, image: GeneratedImage) -> None:
    state = GenerationState(status=Status.completed, concept=concept, image=image)
    html = view(state).render()
    assert image.data_uri in html
    assert concept.title in html
    assert concept.estimated_cost in html
    assert concept.recommended_price in html
    assert 'action="/refine"' in html
    assert 'action="/reset"' in html
    assert "Step 1: Crust" in html
    assert html.index("Step 1: Crust") < html.index("Step 2: Filling")
    assert html.index("Mango puree") < html.index("Butter")
    assert 'id="image-placeholder"' not in html


def test_completed_with_image_error(concept: Concept) -> None:
    state = GenerationState(
        status=Status.completed, concept=concept, image_error=JA.safety_filtered
    )
    html = view(state).render()
    assert 'id="image-placeholder"' in html
    assert JA.safety_filtered in html
    assert JA.text_still_generated in html
    assert "<img" not in html
    assert concept.title in html


def test_completed_without_image_or_error(concept: Concept) -> None:
    html = view(GenerationState(status=Status.completed, concept=concept)).render()
    assert JA.image_unavailable in html


def test_model_text_is_escaped() -> None:
    concept = make_concept(
        description="<script>alert(1)</script> **rich**",
        roadmap=[{"step": 1, "title": "<b>x</b>", "instruction": "<i>y</i>"}],
    )
    html = view(GenerationState(status=Status.completed, concept=concept)).render()
    assert "<script>" not in html
    assert "<strong>rich</strong>" in html
    assert "<b>x</b>" not in html
    assert "<i>y</i>" not in html
