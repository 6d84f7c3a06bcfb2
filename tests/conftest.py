import pytest

from dreamsweets.domain.models import Concept, GeneratedImage

from tests.fakes import make_concept, make_image


@pytest.fixture
def concept() -> Concept:
    return make_concept()


@pytest.fixture
def image() -> GeneratedImage:
    return make_image()
