"""Pytest configuration and fixtures."""

import os
import pytest

from specengine.core import Settings, configure_logging, get_settings
from specengine.spec import SpecTree
from specengine.pipeline import LiveState, SpecPipeline


# ============================================================================
# Pytest Hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with environment variables."""
    os.environ["SPEC_LOG_LEVEL"] = "DEBUG"
    os.environ["SPEC_ENABLE_CACHE"] = "false"
    configure_logging(get_settings())


# ============================================================================
# Core Fixtures
# ============================================================================

@pytest.fixture
def settings():
    """Test settings."""
    return get_settings()


@pytest.fixture
def pipeline(settings):
    """Uncached pipeline."""
    return SpecPipeline(settings)


@pytest.fixture
def cached_pipeline():
    """Pipeline with memoization enabled."""
    return SpecPipeline(Settings(enable_cache=True, cache_size=8))


@pytest.fixture
def live_state():
    """Empty live-state handle."""
    return LiveState()


# ============================================================================
# Data Fixtures
# ============================================================================

@pytest.fixture
def weather_card_v1():
    """Single city card with one metric."""
    return {
        "root": "card1",
        "elements": {
            "card1": {"type": "Card", "props": {"title": "NYC"}, "children": ["m1"]},
            "m1": {"type": "Metric", "props": {"label": "Temp", "value": 20}},
        },
        "state": {},
    }


@pytest.fixture
def weather_card_v2(weather_card_v1):
    """Same shape, metric value updated."""
    return {
        "root": "card1",
        "elements": {
            "card1": {"type": "Card", "props": {"title": "NYC"}, "children": ["m1"]},
            "m1": {"type": "Metric", "props": {"label": "Temp", "value": 25}},
        },
        "state": {},
    }


@pytest.fixture
def missing_card_spec():
    """Grid references a card the model never emitted."""
    return {
        "root": "grid1",
        "elements": {
            "grid1": {"type": "Grid", "props": {"columns": "2"}, "children": ["weather-card"]},
            "weather-header": {"type": "Heading", "props": {"text": "Weather"}},
            "weather-metrics": {
                "type": "Stack",
                "props": {},
                "children": ["weather-temp"],
            },
            "weather-temp": {"type": "Metric", "props": {"label": "Temp", "value": 21}},
        },
        "state": {},
    }


@pytest.fixture
def dashboard_v1():
    """Two-city dashboard with a stateful tab selector."""
    return SpecTree.model_validate({
        "root": "page",
        "elements": {
            "page": {"type": "Stack", "props": {}, "children": ["title", "grid"]},
            "title": {"type": "Heading", "props": {"text": "Weather"}},
            "grid": {"type": "Grid", "props": {}, "children": ["ny", "ldn"]},
            "ny": {"type": "Card", "props": {"title": "New York"}, "children": ["ny-temp"]},
            "ny-temp": {"type": "Metric", "props": {"label": "Temp", "value": {"$state": "/ny/temp"}}},
            "ldn": {"type": "Card", "props": {"title": "London"}, "children": ["ldn-temp"]},
            "ldn-temp": {"type": "Metric", "props": {"label": "Temp", "value": {"$state": "/ldn/temp"}}},
        },
        "state": {"ny": {"temp": 20}, "ldn": {"temp": 14}, "activeRange": "5d"},
    })
