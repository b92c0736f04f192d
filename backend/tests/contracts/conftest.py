"""
Pytest fixtures for contract tests.
"""

import pytest

from board_api.contracts.enums import build_default_enums
from board_api.contracts.registry import SchemaRegistry


@pytest.fixture
def fresh_registry():
    """An empty, unfrozen schema registry with the default enumerations."""
    return SchemaRegistry(build_default_enums())


@pytest.fixture
def schema_registry():
    """The global registry after all schema modules have registered."""
    from board_api.contracts import SCHEMAS
    return SCHEMAS
