import os

os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "3")

import pytest  # noqa: E402

from escapetime import RenderParameters  # noqa: E402


@pytest.fixture
def small_params():
    """A reduced resolution that keeps full pipeline runs fast."""
    return RenderParameters(width=64, height=48, max_iterations=200, workers=4)


@pytest.fixture
def tiny_rational_params():
    return RenderParameters(width=8, height=6, max_iterations=40, numeric="rational", workers=3)
