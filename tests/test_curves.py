"""Tests for easing curves."""

import pytest

from injectx import curves
from injectx.curves import Cubic, Flipped, Interval


class TestEndpoints:
    @pytest.mark.parametrize(
        "curve",
        [curves.linear, curves.decelerate, curves.ease, curves.ease_in, curves.ease_out,
         curves.ease_in_out, curves.fast_out_slow_in, Interval(0.2, 0.6), curves.ease_in.flipped],
    )
    def test_maps_zero_and_one_exactly(self, curve):
        assert curve.transform(0.0) == 0.0
        assert curve.transform(1.0) == 1.0

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            curves.linear.transform(1.5)
        with pytest.raises(ValueError):
            curves.linear.transform(-0.1)


class TestShapes:
    def test_linear(self):
        assert curves.linear.transform(0.3) == 0.3

    def test_decelerate(self):
        assert curves.decelerate.transform(0.5) == pytest.approx(0.75)

    def test_ease_in_starts_slow(self):
        assert curves.ease_in.transform(0.5) < 0.5
        assert curves.ease_out.transform(0.5) > 0.5

    def test_ease_in_out_is_symmetric(self):
        assert curves.ease_in_out.transform(0.5) == pytest.approx(0.5, abs=0.01)

    def test_cubic_equality(self):
        assert Cubic(0.42, 0.0, 1.0, 1.0) == curves.ease_in
        assert hash(Cubic(0.42, 0.0, 1.0, 1.0)) == hash(curves.ease_in)

    def test_flipped_mirrors(self):
        t = 0.3
        assert Flipped(curves.ease_in).transform(t) == pytest.approx(1.0 - curves.ease_in.transform(1.0 - t))
        assert curves.ease_in.flipped.flipped is curves.ease_in

    def test_interval(self):
        interval = Interval(0.25, 0.75)
        assert interval.transform(0.1) == 0.0
        assert interval.transform(0.5) == pytest.approx(0.5)
        assert interval.transform(0.9) == 1.0

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            Interval(0.8, 0.2)
