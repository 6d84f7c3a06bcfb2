from dreamsweets.domain.models import Concept, Constraints
from dreamsweets.messages import Messages


CREATE_SYSTEM_INSTRUCTION = """
You are a world-renowned pastry chef known for avant-garde and photogenic creations.
Provide detailed, expert-level instructions.
""".strip()


REFINE_SYSTEM_INSTRUCTION = """
You are a world-renowned pastry chef.
Modify the existing recipe based on the customer's feedback while maintaining
culinary excellence and feasibility.
""".strip()


CREATE_CONCEPT_PROMPT = """
Invent a novel and beautiful dessert based on the keyword "{keyword}".
Do not simply copy an existing recipe: be creative with the flavour pairings,
the textures and the presentation.
Provide an ingredient list and a roadmap of steps that can really be followed
to make it.
{constraints}
Write the roadmap the way a professional pastry chef teaches, including tips
and pitfalls for each step. Number the steps from 1 in order.
Estimate the production cost per serving from the ingredients and a
recommended selling price per serving that accounts for margin and market value.

Write the title, description, ingredients, roadmap, cost and price in {language}.
Express cost and price in {currency}.
Write imagePrompt in English: a highly detailed, photorealistic description
of the finished dessert focused on lighting, texture and plating, without any
text in the image.
""".strip()


REFINE_CONCEPT_PROMPT = """
Rework the current dessert idea below so it reflects the customer's feedback.

Current idea:
{concept}

Customer feedback:
{feedback}

Update the title, description, ingredients, roadmap, cost and price so they
are all consistent with each other and with the feedback. Number the steps
from 1 in order.
Rewrite imagePrompt in English in full detail so that every visual change is
certain to show up in the new image.

Write the title, description, ingredients, roadmap, cost and price in {language}.
Express cost and price in {currency}.
""".strip()


IMAGE_PROMPT = """
Generate a high-quality, photorealistic image of the following dessert: {prompt}.
Style: Professional food photography, macro details, appetizing plating, soft natural lighting.
""".strip()


def build_constraints(constraints: Constraints) -> str:
    s = ""
    if constraints.target_cost:
        s += f"Aim for a production cost of around {constraints.target_cost}.\n"
    if constraints.target_price:
        s += f"It should be possible to sell it for around {constraints.target_price}.\n"
    return s


class CreateConceptPrompt:
    def __init__(
        self,
        keyword: str,
        constraints: Constraints,
        messages: Messages,
    ) -> None:
        self.keyword = keyword
        self.constraints = constraints
        self.messages = messages

    def __str__(self) -> str:
        return CREATE_CONCEPT_PROMPT.format(
            keyword=self.keyword,
            constraints=build_constraints(self.constraints),
            language=self.messages.language,
            currency=self.messages.currency_hint,
        )


class RefineConceptPrompt:
    def __init__(self, concept: Concept, feedback: str, messages: Messages) -> None:
        self.concept = concept
        self.feedback = feedback
        self.messages = messages

    def __str__(self) -> str:
        return REFINE_CONCEPT_PROMPT.format(
            concept=self.concept.to_json(),
            feedback=self.feedback,
            language=self.messages.language,
            currency=self.messages.currency_hint,
        )


class ImagePrompt:
    def __init__(self, prompt: str) -> None:
        self.prompt = prompt

    def __str__(self) -> str:
        return IMAGE_PROMPT.format(prompt=self.prompt)
