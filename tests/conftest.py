"""
Basic test fixtures for the battle map timeline test suite.

Provides simple fixtures for testing the timeline engine and its managers.
"""

import sys
import os
import pytest

# Add the project root to the Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from battlemap.core.clock import ManualClock
from battlemap.core.data import Vector2
from battlemap.core.engine.animation import ClockAnimationCoordinator
from battlemap.core.events import EventManager
from battlemap.game.managers.timeline_manager import TimelineManager
from battlemap.game.object_store import InMemoryObjectStore


class EventRecorder:
    """Universal subscriber that keeps every delivered event."""

    def __init__(self, event_manager: EventManager):
        self.events = []
        event_manager.subscribe_all(self, subscriber_name="EventRecorder")

    def __call__(self, event):
        self.events.append(event)

    def of_type(self, event_class):
        return [event for event in self.events if isinstance(event, event_class)]

    def clear(self):
        self.events.clear()


@pytest.fixture
def event_manager():
    """Create an event manager for testing."""
    return EventManager(enable_debug_logging=False)


@pytest.fixture
def recorder(event_manager):
    """Record every event published on the test event manager."""
    return EventRecorder(event_manager)


@pytest.fixture
def object_store():
    """Create a small map with three tokens."""
    store = InMemoryObjectStore()
    store.add_token("hero", Vector2(0, 0), name="Hero")
    store.add_token("ally", Vector2(50, 50), name="Ally")
    store.add_token("orc", Vector2(100, 100), name="Orc")
    return store


@pytest.fixture
def clock():
    """Create a manual clock so animations finish instantly."""
    return ManualClock()


@pytest.fixture
def animation(object_store, clock):
    """Create the default animation coordinator on the manual clock."""
    return ClockAnimationCoordinator(object_store, clock, frame_interval_ms=16)


@pytest.fixture
def manager(object_store, event_manager, clock):
    """Create a timeline manager driven by the manual clock."""
    return TimelineManager(object_store, event_manager, clock=clock)


@pytest.fixture
def sample_vector():
    """Create a sample Vector2 for testing."""
    return Vector2(2, 3)


@pytest.fixture
def sample_positions():
    """Create a list of sample positions for testing."""
    return [
        Vector2(0, 0),
        Vector2(1, 1),
        Vector2(2, 2),
        Vector2(3, 4)
    ]
