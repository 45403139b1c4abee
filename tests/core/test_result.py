"""Result 类型单元测试"""
import pytest

from src.core.errors import AppError, NotFoundError, ValidationError
from src.core.result import (
    OkWithWarnings,
    all_results,
    and_then,
    err,
    from_awaitable,
    from_try,
    map_err,
    map_result,
    ok,
    ok_with_warnings,
    unwrap,
    unwrap_or,
)


class TestConstruction:
    def test_ok_and_err(self):
        assert ok(1).success is True
        assert ok(1).data == 1
        failure = err(NotFoundError())
        assert failure.success is False
        assert failure.error.code.value == "NOT_FOUND"

    def test_ok_with_warnings_is_success(self):
        result = ok_with_warnings({"id": "a"}, ["Nepodařilo se nahrát obrázky"])

        assert result.success is True
        assert result.warnings == ["Nepodařilo se nahrát obrázky"]
        assert result.to_dict()["warnings"] == ["Nepodařilo se nahrát obrázky"]

    def test_empty_warnings_are_omitted_from_dict(self):
        assert "warnings" not in ok_with_warnings(1).to_dict()

    def test_err_to_dict_uses_message(self):
        assert err(ValidationError("Špatně")).to_dict() == {"success": False, "error": "Špatně"}


class TestCombinators:
    def test_map_result_keeps_warnings(self):
        mapped = map_result(ok_with_warnings(2, ["w"]), lambda x: x * 10)

        assert isinstance(mapped, OkWithWarnings)
        assert mapped.data == 20
        assert mapped.warnings == ["w"]

    def test_map_result_passes_error_through(self):
        failure = err(NotFoundError())
        assert map_result(failure, lambda x: x) is failure

    def test_map_err(self):
        mapped = map_err(err("raw"), lambda e: AppError(f"wrapped {e}"))
        assert mapped.error.message == "wrapped raw"

    def test_and_then_short_circuits(self):
        calls = []
        failure = err(NotFoundError())

        result = and_then(failure, lambda x: calls.append(x) or ok(x))

        assert result is failure
        assert calls == []

    def test_all_results(self):
        assert all_results([ok(1), ok(2)]).data == [1, 2]
        first_error = NotFoundError("první")
        combined = all_results([ok(1), err(first_error), err(NotFoundError("druhá"))])
        assert combined.error is first_error


class TestUnwrap:
    def test_unwrap_ok(self):
        assert unwrap(ok("x")) == "x"

    def test_unwrap_err_raises(self):
        with pytest.raises(NotFoundError):
            unwrap(err(NotFoundError()))

    def test_unwrap_or(self):
        assert unwrap_or(err(NotFoundError()), "default") == "default"


class TestBoundaries:
    def test_from_try_wraps_exceptions(self):
        result = from_try(lambda: 1 / 0)

        assert result.success is False
        assert isinstance(result.error, AppError)

    @pytest.mark.asyncio
    async def test_from_awaitable(self):
        async def boom():
            raise ValueError("selhalo")

        async def fine():
            return 5

        assert (await from_awaitable(fine())).data == 5
        failure = await from_awaitable(boom())
        assert failure.error.message == "selhalo"
