from decimal import Decimal

import pytest

from utils.money import from_minor_units, line_total_minor_units, sum_lines, to_minor_units


class TestMinorUnits:

    @pytest.mark.parametrize("amount,expected", [
        (Decimal("4.00"), 400),
        (Decimal("3.5"), 350),
        ("12.00", 1200),
        (7, 700),
        (Decimal("0.005"), 1),
    ])
    def test_to_minor_units(self, amount, expected):
        assert to_minor_units(amount) == expected

    def test_float_rejected(self):
        with pytest.raises(TypeError):
            to_minor_units(4.0)

    def test_from_minor_units(self):
        assert from_minor_units(1500) == Decimal("15.00")
        assert str(from_minor_units(5)) == "0.05"


class TestSumLines:

    def test_scenario_total(self):
        assert sum_lines([(Decimal("4.00"), 2), (Decimal("7.00"), 1)]) == Decimal("15.00")

    def test_no_drift_on_repeating_cents(self):
        assert sum_lines([(Decimal("0.10"), 1)] * 3) == Decimal("0.30")
        assert line_total_minor_units(Decimal("0.10"), 3) == 30

    def test_empty(self):
        assert sum_lines([]) == Decimal("0.00")
