import json

from core.error_handler import _build_error_response


def test_build_error_response_production_hides_optional_fields():
    resp = _build_error_response(
        correlation_id="cid",
        error_type="pipeline_error",
        message="No AI provider is currently available",
        environment="production",
        error_code="no_provider",
        details={"reason": "all providers failed"},
        traceback_str="trace",
        exception_type="NoProviderAvailable",
        validation_errors={"x": 1},
        status_code=503,
    )
    # The JSONResponse produced here stores the rendered bytes in `body`
    body = json.loads(resp.body)

    assert resp.status_code == 503
    assert body["error"] == {
        "correlation_id": "cid",
        "type": "pipeline_error",
        "error_code": "no_provider",
    }
    assert body["success"] is False


def test_build_error_response_development_includes_optional_fields():
    resp = _build_error_response(
        correlation_id="cid",
        error_type="internal_server_error",
        message="An internal error occurred",
        environment="development",
        details={"debug": True},
        traceback_str="trace",
        exception_type="ValueError",
        validation_errors={"x": 1},
        status_code=500,
    )
    body = json.loads(resp.body)

    assert resp.status_code == 500
    assert body["error"]["details"] == {"debug": True}
    assert "traceback" in body["error"]
    assert body["error"]["exception_type"] == "ValueError"
    assert body["error"]["validation_errors"] == {"x": 1}
    assert "error_code" not in body["error"]
