"""Shared fixtures for hooksync unit tests."""

from __future__ import annotations

import typing as typ

import pytest

from hooksync.logging import set_verbosity

if typ.TYPE_CHECKING:
    import collections.abc as cabc


@pytest.fixture(autouse=True)
def reset_verbosity() -> cabc.Iterator[None]:
    """Restore the default verbosity after each test."""
    yield
    set_verbosity(0)
