"""Tests for the status model."""

import pytest

from injectx import COMBINED_DATA, IDLE, WAITING, Data, Error, Idle, Waiting


class TestPredicates:
    def test_idle(self):
        assert IDLE.is_idle
        assert not (IDLE.is_waiting or IDLE.has_error or IDLE.has_data)

    def test_waiting(self):
        assert WAITING.is_waiting
        assert not (WAITING.is_idle or WAITING.has_error or WAITING.has_data)

    def test_error_carries_cause(self):
        err = ValueError("boom")
        status = Error(err)
        assert status.has_error
        assert status.error is err
        assert status.data is None

    def test_data_carries_value(self):
        status = Data(3)
        assert status.has_data
        assert status.data == 3
        assert status.error is None

    def test_payload_free_variants_expose_nothing(self):
        assert IDLE.data is None and IDLE.error is None
        assert WAITING.data is None and WAITING.error is None


class TestValueSemantics:
    def test_equality(self):
        assert Idle() == IDLE
        assert Waiting() == WAITING
        assert Data([1]) == Data([1])
        assert Data(1) != Data(2)
        assert Data(1) != IDLE

    def test_error_equality_is_by_cause_identity(self):
        err = ValueError("x")
        assert Error(err) == Error(err)
        assert Error(err) != Error(ValueError("x"))

    def test_hash_consistent_with_equality(self):
        assert hash(Data(1)) == hash(Data(1))
        assert hash(Data([1])) == hash(Data([1]))  # unhashable payloads still hash
        assert len({IDLE, Idle(), WAITING}) == 2

    def test_immutable(self):
        with pytest.raises(AttributeError):
            Data(1).value = 2
        with pytest.raises(AttributeError):
            IDLE.anything = 1

    def test_repr(self):
        assert repr(Data(5)) == "Data(5)"
        assert repr(IDLE) == "Idle()"
        assert repr(Data(COMBINED_DATA)) == "Data(COMBINED_DATA)"
