"""Tests for reelsmith.core.logging module."""

import pytest
import structlog

from reelsmith.core.config import settings
from reelsmith.core.logging import add_app_context, build_processors, get_logger, setup_logging


@pytest.mark.unit
def test_get_logger():
    """get_logger returns a usable structlog logger."""
    setup_logging()

    logger = get_logger("test")

    assert hasattr(logger, "info")
    assert hasattr(logger, "error")


@pytest.mark.unit
def test_add_app_context():
    """Events are stamped with the app name and environment."""
    event = add_app_context(None, "info", {"event": "hello"})

    assert event["app"] == settings.app_name
    assert event["env"] == settings.app_env


@pytest.mark.unit
def test_production_renders_json():
    """Production ends with the JSON renderer."""
    processors = build_processors(production=True, development=False)

    assert isinstance(processors[-1], structlog.processors.JSONRenderer)
    assert not any(
        isinstance(p, structlog.processors.CallsiteParameterAdder) for p in processors
    )


@pytest.mark.unit
def test_development_adds_callsite():
    """Development renders to the console with call-site details."""
    processors = build_processors(production=False, development=True)

    assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
    assert any(isinstance(p, structlog.processors.CallsiteParameterAdder) for p in processors)
