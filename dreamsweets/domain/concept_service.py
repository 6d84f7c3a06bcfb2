import logging
from typing import Any

import openai
from openai.types.chat import (
    ChatCompletionMessageParam,
    ChatCompletionSystemMessageParam,
    ChatCompletionUserMessageParam,
)
from pydantic import ValidationError

from dreamsweets.domain.errors import EmptyResponse, SchemaViolation
from dreamsweets.domain.models import Concept, Constraints
from dreamsweets.domain.prompts import (
    CREATE_SYSTEM_INSTRUCTION,
    REFINE_SYSTEM_INSTRUCTION,
    CreateConceptPrompt,
    RefineConceptPrompt,
)
from dreamsweets.messages import Locale, Messages, messages_for


logger = logging.getLogger(__name__)


DEFAULT_MODEL = "gpt-4o-mini"


CONCEPT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {
            "type": "string",
            "description": "The creative and elegant name of the dessert.",
        },
        "description": {
            "type": "string",
            "description": "A mouth-watering, detailed description of the dessert concept.",
        },
        "imagePrompt": {
            "type": "string",
            "description": (
                "A highly detailed, photorealistic prompt in English to generate an "
                "image of this dessert. Focus on lighting, texture, and plating. "
                "Do not include text in the image."
            ),
        },
        "ingredients": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Ingredient name"},
                    "amount": {
                        "type": "string",
                        "description": "Quantity (e.g. 200g, 1 tsp)",
                    },
                },
                "required": ["name", "amount"],
                "additionalProperties": False,
            },
        },
        "roadmap": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "step": {
                        "type": "integer",
                        "description": "Step number, starting at 1 and increasing by 1",
                    },
                    "title": {"type": "string", "description": "Short title of the step"},
                    "instruction": {
                        "type": "string",
                        "description": "Detailed instruction for this step",
                    },
                },
                "required": ["step", "title", "instruction"],
                "additionalProperties": False,
            },
        },
        "estimatedCost": {
            "type": "string",
            "description": "Estimated production cost per serving.",
        },
        "recommendedPrice": {
            "type": "string",
            "description": "Recommended selling price per serving.",
        },
    },
    "required": [
        "title",
        "description",
        "imagePrompt",
        "ingredients",
        "roadmap",
        "estimatedCost",
        "recommendedPrice",
    ],
    "additionalProperties": False,
}


RESPONSE_FORMAT: dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "dessert_concept",
        "schema": CONCEPT_SCHEMA,
        "strict": True,
    },
}


def parse_concept(content: str | None) -> Concept:
    if not content:
        raise EmptyResponse("No concept generated.")
    try:
        return Concept.model_validate_json(content)
    except ValidationError as e:
        raise SchemaViolation(str(e)) from e


class ConceptService:
    """Creates and refines dessert concepts with a chat completion model."""

    def __init__(
        self,
        openai_client: openai.AsyncClient | None = None,
        *,
        model: str = DEFAULT_MODEL,
        locale: Locale = Locale.ja,
    ) -> None:
        self.openai_client = (
            openai.AsyncClient() if openai_client is None else openai_client
        )
        self.model = model
        self.messages: Messages = messages_for(locale)

    async def _complete(self, system: str, prompt: str) -> Concept:
        system_message: ChatCompletionSystemMessageParam = {
            "role": "system",
            "content": system,
        }
        user_message: ChatCompletionUserMessageParam = {
            "role": "user",
            "content": prompt,
        }
        messages: list[ChatCompletionMessageParam] = [system_message, user_message]

        resp = await self.openai_client.chat.completions.create(
            model=self.model,
            messages=messages,
            response_format=RESPONSE_FORMAT,  # pyright: ignore[reportArgumentType]
        )
        content = resp.choices[0].message.content if resp.choices else None
        return parse_concept(content)

    async def generate_concept(
        self,
        keyword: str,
        constraints: Constraints | None = None,
    ) -> Concept:
        constraints = Constraints() if constraints is None else constraints
        logger.info("Generating concept for %r", keyword)
        prompt = CreateConceptPrompt(keyword, constraints, self.messages)
        return await self._complete(CREATE_SYSTEM_INSTRUCTION, str(prompt))

    async def refine_concept(self, previous: Concept, feedback: str) -> Concept:
        logger.info("Refining %r with %r", previous.title, feedback)
        prompt = RefineConceptPrompt(previous, feedback, self.messages)
        return await self._complete(REFINE_SYSTEM_INSTRUCTION, str(prompt))
