from intelligent_tasks.errors import (
    ErrorResponse,
    RewriteError,
    ServiceError,
    error_response,
    success_response,
)


def test_error_response_serializes_details():
    error = ErrorResponse(code="TAG_NOT_FOUND", message="Nope", details={"tag": "TODO"})

    assert error.to_dict() == {
        "code": "TAG_NOT_FOUND",
        "message": "Nope",
        "details": {"tag": "TODO"},
    }


def test_service_error_defaults_details():
    exc = ServiceError("INVALID_TYPE", "Bad id")

    assert exc.code == "INVALID_TYPE"
    assert exc.error.to_dict() == {
        "code": "INVALID_TYPE",
        "message": "Bad id",
        "details": {},
    }


def test_rewrite_error_is_a_service_error():
    exc = RewriteError("LINE_OUT_OF_RANGE", "Out of range", {"line": 9})

    assert isinstance(exc, ServiceError)
    assert error_response(exc.error) == {
        "ok": False,
        "error": {
            "code": "LINE_OUT_OF_RANGE",
            "message": "Out of range",
            "details": {"line": 9},
        },
    }
    assert success_response({"x": 1}) == {"ok": True, "data": {"x": 1}}
