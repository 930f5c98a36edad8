import pytest
import numpy as np

from cco_lib.core import GrowthResult, GrowthStatus
from cco_lib.utils import CANONICAL_UNIT, from_si_length, unit_multiplier


def test_unit_names():
    """Test the supported unit names."""
    assert CANONICAL_UNIT == "m"
    assert unit_multiplier("m") == 1.0
    assert unit_multiplier("cm") == 100.0
    assert unit_multiplier("mm") == 1000.0
    assert unit_multiplier("um") == 1e6


def test_unit_multiplier_number():
    """Test that numbers are used as the multiplier."""
    assert unit_multiplier(250) == 250.0
    with pytest.raises(ValueError, match="positive"):
        unit_multiplier(0.0)


def test_unknown_unit():
    """Test that unknown unit names are rejected."""
    with pytest.raises(ValueError, match="Unknown unit 'in'"):
        unit_multiplier("in")


def test_from_si_length():
    """Test converting meters to another unit."""
    assert from_si_length(0.01, "mm") == pytest.approx(10.0)
    np.testing.assert_allclose(from_si_length(np.array([0.01, 0.02]), "cm"), [1.0, 2.0])


def test_growth_result_warning():
    """Test that a warning downgrades the status and survives serialization."""
    result = GrowthResult(status=GrowthStatus.SUCCESS, number_of_terminals=4)
    result.add_warning("Distance criterion relaxed 120 times")
    assert not result.is_success()
    restored = GrowthResult.from_dict(result.to_dict())
    assert restored.status == GrowthStatus.WARNING
    assert restored.warnings == ["Distance criterion relaxed 120 times"]
    assert restored.number_of_terminals == 4
