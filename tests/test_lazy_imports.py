"""Tests for spindle.__init__ — lazy import registry covers all public names."""

import pytest

import spindle


@pytest.mark.parametrize("name", spindle.__all__)
def test_all_names_resolve(name: str) -> None:
    """Every name in __all__ must resolve via __getattr__ without error."""
    obj = getattr(spindle, name)
    assert obj is not None, f"spindle.{name} resolved to None"


def test_unknown_name_raises_attribute_error() -> None:
    """Accessing an unregistered name raises AttributeError."""
    with pytest.raises(AttributeError, match="no attribute"):
        spindle.__getattr__("ThisDoesNotExist")
