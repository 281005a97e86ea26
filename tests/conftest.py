"""Shared fixtures for snipsearch tests."""

import pytest

from snipsearch.core.schemas import Snippet


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def snippets():
    """Three snippets in different languages with distinct dates and usage."""
    return [
        Snippet(
            id=1,
            title="Vue Reactive Data",
            description="Reactive state with ref and reactive",
            language="javascript",
            code="const state = reactive({ count: 0 })",
            tags=["vue", "reactivity"],
            created_at=100,
            updated_at=100,
            usage_count=5,
        ),
        Snippet(
            id=2,
            title="Python Decorators",
            description="Wrap a function with another function",
            language="python",
            code="def deco(fn):\n    return fn",
            tags=["python", "functions"],
            created_at=200,
            updated_at=300,
            usage_count=12,
        ),
        Snippet(
            id=3,
            title="Go Error Handling",
            description="Idiomatic error returns",
            language="go",
            code="if err != nil { return err }",
            tags=["go", "errors"],
            created_at=150,
            updated_at=200,
            usage_count=1,
        ),
    ]
