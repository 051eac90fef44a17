"""Tests for shipyard.core.result module."""

from __future__ import annotations

import pytest

from shipyard.core.result import Err, Ok, Result, is_err, is_ok


class TestOk:
    def test_value_and_flags(self) -> None:
        result = Ok(42)
        assert result.value == 42
        assert result.is_ok()
        assert not result.is_err()

    def test_unwrap(self) -> None:
        assert Ok("sha").unwrap() == "sha"
        assert Ok("sha").unwrap_or("other") == "sha"

    def test_map(self) -> None:
        assert Ok(2).map(lambda v: v * 3) == Ok(6)

    def test_repr(self) -> None:
        assert repr(Ok("x")) == "Ok('x')"

    def test_frozen(self) -> None:
        result = Ok(1)
        with pytest.raises(AttributeError):
            result.value = 2  # type: ignore[misc]


class TestErr:
    def test_error_and_flags(self) -> None:
        result = Err("boom")
        assert result.error == "boom"
        assert result.is_err()
        assert not result.is_ok()

    def test_unwrap_raises(self) -> None:
        with pytest.raises(ValueError, match="boom"):
            Err("boom").unwrap()

    def test_unwrap_or_returns_default(self) -> None:
        assert Err("boom").unwrap_or(7) == 7

    def test_map_is_noop(self) -> None:
        err: Err[str] = Err("boom")
        assert err.map(lambda v: v) is err


class TestTypeGuards:
    def test_is_ok(self) -> None:
        result: Result[int, str] = Ok(1)
        assert is_ok(result)
        assert not is_err(result)

    def test_is_err(self) -> None:
        result: Result[int, str] = Err("x")
        assert is_err(result)
        assert not is_ok(result)

    def test_pattern_matching(self) -> None:
        result: Result[int, str] = Ok(5)
        match result:
            case Ok(value):
                assert value == 5
            case Err(_):
                pytest.fail("expected Ok")
