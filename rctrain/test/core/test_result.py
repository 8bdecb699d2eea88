"""Tests for rctrain.core.result module."""

import pytest

from rctrain.core.result import Err, Ok, Result


class TestOk:
    """Tests for Ok type."""

    def test_create_ok(self) -> None:
        result = Ok(42)
        assert result.value == 42

    def test_ok_repr(self) -> None:
        assert repr(Ok("v1.0.0")) == "Ok('v1.0.0')"

    def test_ok_frozen(self) -> None:
        result = Ok(42)
        with pytest.raises(AttributeError):
            result.value = 0  # type: ignore[misc]

    def test_ok_equality(self) -> None:
        assert Ok(1) == Ok(1)
        assert Ok(1) != Err(1)


class TestErr:
    """Tests for Err type."""

    def test_create_err(self) -> None:
        assert Err("boom").error == "boom"

    def test_err_repr(self) -> None:
        assert repr(Err("boom")) == "Err('boom')"

    def test_isinstance_narrowing(self) -> None:
        result: Result[int, str] = Err("boom")
        assert isinstance(result, Err)
        assert not isinstance(result, Ok)


class TestPatternMatching:
    def test_match_ok(self) -> None:
        result: Result[int, str] = Ok(3)
        match result:
            case Ok(value):
                assert value == 3
            case Err(_):
                pytest.fail("expected Ok")

    def test_match_err(self) -> None:
        result: Result[int, str] = Err("nope")
        match result:
            case Ok(_):
                pytest.fail("expected Err")
            case Err(error):
                assert error == "nope"
