import base64
from enum import Enum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Ingredient(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    amount: str


class RoadmapStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    step: int
    title: str
    instruction: str


class Concept(BaseModel):
    """A complete dessert idea. Built only from a full, valid payload."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    description: str
    image_prompt: str = Field(alias="imagePrompt")
    ingredients: tuple[Ingredient, ...] = Field(min_length=1)
    roadmap: tuple[RoadmapStep, ...] = Field(min_length=1)
    estimated_cost: str = Field(alias="estimatedCost")
    recommended_price: str = Field(alias="recommendedPrice")

    @model_validator(mode="after")
    def steps_follow_position(self) -> Self:
        numbers = [s.step for s in self.roadmap]
        expected = list(range(1, len(self.roadmap) + 1))
        if numbers != expected:
            raise ValueError(f"Roadmap steps must be numbered {expected}, got {numbers}.")
        return self

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class Constraints(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_cost: str | None = None
    target_price: str | None = None

    @classmethod
    def from_form(cls, target_cost: str | None, target_price: str | None) -> Self:
        return cls(
            target_cost=(target_cost or "").strip() or None,
            target_price=(target_price or "").strip() or None,
        )


class GeneratedImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    mime_type: str = "image/png"
    data: bytes

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('utf-8')}"


class Status(Enum):
    idle = "idle"
    checking_key = "checking_key"
    generating_text = "generating_text"
    generating_image = "generating_image"
    completed = "completed"
    error = "error"


class GenerationState(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Status = Status.idle
    concept: Concept | None = None
    image: GeneratedImage | None = None
    top_level_error: str | None = None
    image_error: str | None = None

    @model_validator(mode="after")
    def errors_match_status(self) -> Self:
        if self.top_level_error is not None and self.status is not Status.error:
            raise ValueError("A top level error needs the error status.")
        if self.image_error is not None and self.status is not Status.completed:
            raise ValueError("An image error needs the completed status.")
        return self

    @property
    def is_loading(self) -> bool:
        return self.status in (Status.generating_text, Status.generating_image)


class FormInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    keyword: str = ""
    target_cost: str = ""
    target_price: str = ""
