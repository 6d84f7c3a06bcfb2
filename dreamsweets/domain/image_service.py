import logging
from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from dreamsweets.domain.errors import (
    NoCandidates,
    NoImageData,
    SafetyRejected,
    SessionExpired,
    StoppedAbnormally,
)
from dreamsweets.domain.models import GeneratedImage
from dreamsweets.domain.prompts import ImagePrompt


logger = logging.getLogger(__name__)


DEFAULT_MODEL = "gemini-2.5-flash-image"
DEFAULT_ASPECT_RATIO = "4:3"
DEFAULT_MIME_TYPE = "image/png"

# Credential rejected, or the key's project no longer resolves.
SESSION_ERROR_CODES = frozenset({401, 403, 404})

SAFETY_REASONS = frozenset(
    {
        "SAFETY",
        "IMAGE_SAFETY",
        "PROHIBITED_CONTENT",
        "IMAGE_PROHIBITED_CONTENT",
        "BLOCKLIST",
        "SPII",
    }
)


def reason_name(reason: Any) -> str:
    return getattr(reason, "name", None) or str(reason)


def extract_image(response: types.GenerateContentResponse) -> GeneratedImage:
    """First inline image of the first candidate, or a classified failure."""
    candidates = response.candidates or []
    if not candidates:
        feedback = response.prompt_feedback
        if feedback is not None and feedback.block_reason is not None:
            raise SafetyRejected(reason_name(feedback.block_reason))
        raise NoCandidates("No candidates in response.")

    candidate = candidates[0]
    parts = candidate.content.parts if candidate.content is not None else None
    for part in parts or []:
        if part.inline_data is not None and part.inline_data.data:
            return GeneratedImage(
                mime_type=part.inline_data.mime_type or DEFAULT_MIME_TYPE,
                data=part.inline_data.data,
            )

    if candidate.finish_reason is not None:
        name = reason_name(candidate.finish_reason)
        if name in SAFETY_REASONS:
            raise SafetyRejected(name)
        if name != "STOP":
            raise StoppedAbnormally(name)

    raise NoImageData("No image data found in response.")


class ImageService:
    def __init__(
        self,
        client: genai.Client | None = None,
        *,
        model: str = DEFAULT_MODEL,
        aspect_ratio: str = DEFAULT_ASPECT_RATIO,
    ) -> None:
        self.client = genai.Client() if client is None else client
        self.model = model
        self.aspect_ratio = aspect_ratio

    @property
    def config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_modalities=["IMAGE"],
            image_config=types.ImageConfig(aspect_ratio=self.aspect_ratio),
        )

    async def generate_image(self, image_prompt: str) -> GeneratedImage:
        logger.info("Generating image with %s", self.model)
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=str(ImagePrompt(image_prompt)),
                config=self.config,
            )
        except genai_errors.ClientError as e:
            if e.code in SESSION_ERROR_CODES:
                raise SessionExpired(f"{e.code} {e.status}") from e
            raise
        return extract_image(response)
