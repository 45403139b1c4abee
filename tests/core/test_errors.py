"""
错误体系单元测试

测试覆盖：
1. 子类的错误码、状态码与默认消息
2. to_dict 序列化
3. get_error_message / to_app_error 归一化
"""
import pytest

from src.core.errors import (
    DEFAULT_ERROR_MESSAGE,
    AppError,
    AuthError,
    ErrorCode,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    RequestTimeoutError,
    StrapiError,
    UploadError,
    ValidationError,
    get_error_message,
    is_app_error,
    to_app_error,
)


class TestErrorSubclasses:
    @pytest.mark.parametrize(
        "error, code, status",
        [
            (ValidationError("Neplatné údaje"), ErrorCode.VALIDATION_FAILED, 400),
            (AuthError(), ErrorCode.UNAUTHORIZED, 401),
            (ForbiddenError(), ErrorCode.FORBIDDEN, 403),
            (NotFoundError(), ErrorCode.NOT_FOUND, 404),
            (NetworkError(), ErrorCode.NETWORK_ERROR, 503),
            (RequestTimeoutError(), ErrorCode.TIMEOUT, 504),
            (StrapiError("Bad gateway", 502), ErrorCode.STRAPI_ERROR, 502),
            (UploadError(), ErrorCode.UPLOAD_FAILED, 500),
        ],
    )
    def test_code_and_status(self, error, code, status):
        assert error.code == code
        assert error.status_code == status
        assert isinstance(error, AppError)

    def test_default_messages_are_czech(self):
        assert AuthError().message == "Nejste přihlášeni"
        assert ForbiddenError().message == "Nemáte oprávnění k této akci"
        assert NotFoundError().message == "Záznam nebyl nalezen"

    def test_to_dict(self):
        error = NotFoundError("Turnaj nebyl nalezen", {"id": "abc"})
        body = error.to_dict()

        assert body["name"] == "NotFoundError"
        assert body["message"] == "Turnaj nebyl nalezen"
        assert body["code"] == "NOT_FOUND"
        assert body["statusCode"] == 404
        assert body["details"] == {"id": "abc"}
        assert body["timestamp"]


class TestErrorHelpers:
    def test_get_error_message_prefers_app_error_message(self):
        assert get_error_message(ValidationError("Chybí jméno")) == "Chybí jméno"

    def test_get_error_message_plain_exception(self):
        assert get_error_message(RuntimeError("boom")) == "boom"

    def test_get_error_message_fallback(self):
        assert get_error_message(None) == DEFAULT_ERROR_MESSAGE
        assert get_error_message(RuntimeError()) == DEFAULT_ERROR_MESSAGE

    def test_to_app_error_keeps_app_errors(self):
        error = ForbiddenError()
        assert to_app_error(error) is error

    def test_to_app_error_wraps_unknown(self):
        wrapped = to_app_error(KeyError("x"))

        assert is_app_error(wrapped)
        assert wrapped.code == ErrorCode.UNKNOWN_ERROR
        assert wrapped.status_code == 500
        assert "KeyError" in wrapped.details["original_error"]
