from jinja2 import Environment
from markdown2 import (  # pyright: ignore[reportMissingTypeStubs]
    markdown,  # pyright: ignore[reportUnknownVariableType]
)
from markupsafe import Markup

from dreamsweets.domain.models import FormInputs, GenerationState, Status
from dreamsweets.messages import Messages


FORM_STATES = (Status.idle, Status.error, Status.checking_key)
EDITABLE_STATES = (Status.idle, Status.error)


def render_markdown(text: str) -> Markup:
    return Markup(
        markdown(text, safe_mode="escape")  # pyright: ignore[reportUnknownArgumentType]
    )


class GenerationView:
    """What the page shows for one snapshot. Holds no generation logic."""

    def __init__(
        self,
        state: GenerationState,
        inputs: FormInputs,
        *,
        messages: Messages,
        environment: Environment,
        refresh_seconds: int = 2,
        template_name: str = "index.html",
    ) -> None:
        self.state = state
        self.inputs = inputs
        self.messages = messages
        self.env = environment
        self.refresh_seconds = refresh_seconds
        self.name = template_name

    @property
    def show_form(self) -> bool:
        return self.state.status in FORM_STATES

    @property
    def form_enabled(self) -> bool:
        return self.state.status in EDITABLE_STATES

    @property
    def checking_key(self) -> bool:
        return self.state.status is Status.checking_key

    @property
    def top_level_error(self) -> str | None:
        if self.state.status is Status.error:
            return self.state.top_level_error
        return None

    @property
    def loading_message(self) -> str | None:
        match self.state.status:
            case Status.generating_text:
                return self.messages.generating_text
            case Status.generating_image:
                return self.messages.generating_image
            case _:
                return None

    @property
    def refresh(self) -> int | None:
        # The key check resolves without user input, so poll through it too.
        if self.state.is_loading or self.checking_key:
            return self.refresh_seconds
        return None

    @property
    def show_result(self) -> bool:
        return self.state.status is Status.completed and self.state.concept is not None

    @property
    def image_src(self) -> str | None:
        return self.state.image.data_uri if self.state.image is not None else None

    @property
    def image_error(self) -> str | None:
        return self.state.image_error

    @property
    def description(self) -> Markup | None:
        if self.state.concept is None:
            return None
        return render_markdown(self.state.concept.description)

    @property
    def steps(self) -> list[tuple[int, str, Markup]]:
        if self.state.concept is None:
            return []
        return [
            (s.step, s.title, render_markdown(s.instruction))
            for s in self.state.concept.roadmap
        ]

    def render(self) -> str:
        return self.env.get_template(self.name).render(
            view=self,
            concept=self.state.concept,
            inputs=self.inputs,
            t=self.messages,
        )
