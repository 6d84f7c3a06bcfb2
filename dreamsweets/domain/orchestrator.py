"""The generation state machine.

One `GenerationOrchestrator` owns one `GenerationState`. Intents come in
through `submit_keyword`, `submit_feedback` and `reset`; every transition
replaces the snapshot as a whole and notifies subscribers.

Each attempt takes a new generation token. A stage that resolves after its
attempt was superseded (a reset, or a newer attempt) is dropped rather than
committed, so a late response can never overwrite newer state.
"""

import logging
from typing import Awaitable, Callable, Protocol

from dreamsweets.domain.errors import SafetyRejected, SessionExpired
from dreamsweets.domain.models import (
    Concept,
    Constraints,
    FormInputs,
    GeneratedImage,
    GenerationState,
    Status,
)
from dreamsweets.messages import Locale, Messages, messages_for


logger = logging.getLogger(__name__)


Listener = Callable[[GenerationState], None]
KeyCheck = Callable[[], Awaitable[bool]]


class ConceptProvider(Protocol):
    async def generate_concept(
        self, keyword: str, constraints: Constraints | None = None
    ) -> Concept:
        ...

    async def refine_concept(self, previous: Concept, feedback: str) -> Concept:
        ...


class ImageProvider(Protocol):
    async def generate_image(self, image_prompt: str) -> GeneratedImage:
        ...


def image_error_message(error: Exception, messages: Messages) -> str:
    if isinstance(error, SessionExpired):
        return messages.session_expired
    if isinstance(error, SafetyRejected):
        return messages.safety_filtered
    return messages.image_failed


class GenerationOrchestrator:
    def __init__(
        self,
        concepts: ConceptProvider,
        images: ImageProvider,
        *,
        locale: Locale = Locale.ja,
        key_check: KeyCheck | None = None,
    ) -> None:
        self.concepts = concepts
        self.images = images
        self.messages = messages_for(locale)
        self.key_check = key_check
        self._state = GenerationState()
        self._inputs = FormInputs()
        self._token = 0
        self._listeners: list[Listener] = []

    @property
    def state(self) -> GenerationState:
        return self._state

    @property
    def inputs(self) -> FormInputs:
        return self._inputs

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _begin(self) -> int:
        self._token += 1
        return self._token

    def _commit(self, token: int, state: GenerationState) -> bool:
        if token != self._token:
            logger.info(
                "Dropping %s from attempt %d, current is %d",
                state.status.value,
                token,
                self._token,
            )
            return False
        logger.debug("%s -> %s", self._state.status.value, state.status.value)
        self._state = state
        for listener in list(self._listeners):
            listener(state)
        return True

    async def _keys_ready(self, token: int) -> bool:
        if self.key_check is None:
            return True
        self._commit(token, GenerationState(status=Status.checking_key))
        try:
            ready = await self.key_check()
        except Exception:
            logger.exception("Key check failed")
            ready = False
        if not ready:
            self._commit(
                token,
                GenerationState(
                    status=Status.error, top_level_error=self.messages.missing_key
                ),
            )
        return ready

    async def _generate_image(self, token: int, concept: Concept) -> None:
        try:
            image = await self.images.generate_image(concept.image_prompt)
        except Exception as e:
            logger.warning("Image generation failed: %r", e, exc_info=True)
            self._commit(
                token,
                GenerationState(
                    status=Status.completed,
                    concept=concept,
                    image_error=image_error_message(e, self.messages),
                ),
            )
            return
        self._commit(
            token,
            GenerationState(status=Status.completed, concept=concept, image=image),
        )

    async def submit_keyword(
        self,
        keyword: str,
        constraints: Constraints | None = None,
    ) -> GenerationState:
        keyword = keyword.strip()
        if not keyword or self._state.status not in (Status.idle, Status.error):
            logger.warning(
                "Ignoring keyword %r while %s", keyword, self._state.status.value
            )
            return self._state

        constraints = Constraints() if constraints is None else constraints
        self._inputs = FormInputs(
            keyword=keyword,
            target_cost=constraints.target_cost or "",
            target_price=constraints.target_price or "",
        )
        token = self._begin()

        if not await self._keys_ready(token):
            return self._state
        if not self._commit(token, GenerationState(status=Status.generating_text)):
            return self._state

        try:
            concept = await self.concepts.generate_concept(keyword, constraints)
        except Exception:
            logger.exception("Concept generation failed for %r", keyword)
            self._commit(
                token,
                GenerationState(
                    status=Status.error, top_level_error=self.messages.text_failed
                ),
            )
            return self._state

        if self._commit(
            token, GenerationState(status=Status.generating_image, concept=concept)
        ):
            await self._generate_image(token, concept)
        return self._state

    async def submit_feedback(self, feedback: str) -> GenerationState:
        feedback = feedback.strip()
        previous = self._state
        if (
            not feedback
            or previous.status is not Status.completed
            or previous.concept is None
        ):
            logger.warning("Ignoring feedback while %s", previous.status.value)
            return self._state

        token = self._begin()
        # The last good result stays in the snapshot while the chef works.
        self._commit(
            token,
            GenerationState(
                status=Status.generating_text,
                concept=previous.concept,
                image=previous.image,
            ),
        )

        try:
            concept = await self.concepts.refine_concept(previous.concept, feedback)
        except Exception:
            logger.exception("Refinement failed for %r", feedback)
            self._commit(
                token,
                GenerationState(
                    status=Status.completed,
                    concept=previous.concept,
                    image=previous.image,
                    image_error=self.messages.refine_failed,
                ),
            )
            return self._state

        if self._commit(
            token, GenerationState(status=Status.generating_image, concept=concept)
        ):
            await self._generate_image(token, concept)
        return self._state

    def reset(self) -> GenerationState:
        token = self._begin()
        self._inputs = FormInputs()
        self._commit(token, GenerationState())
        return self._state
