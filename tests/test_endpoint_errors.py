from farm_advisory.errors import conflict, internal_error, invalid_parameter, not_found, upstream_error


def test_not_found_error_payload() -> None:
    error = not_found("Pipeline", "missing-id")

    assert error.status_code == 404
    assert error.detail == {
        "code": "NotFound",
        "description": "Pipeline 'missing-id' not found",
    }


def test_invalid_parameter_error_payload() -> None:
    error = invalid_parameter("Upload body is empty")

    assert error.status_code == 400
    assert error.detail == {
        "code": "InvalidParameterValue",
        "description": "Upload body is empty",
    }


def test_conflict_error_payload() -> None:
    error = conflict("Pipeline 'p1' already exists")

    assert error.status_code == 409
    assert error.detail["code"] == "Conflict"


def test_internal_and_upstream_error_payloads() -> None:
    assert internal_error("boom").status_code == 500
    assert internal_error("boom").detail == {"code": "InternalError", "description": "boom"}
    assert upstream_error("storage down").status_code == 502
    assert upstream_error("storage down").detail["code"] == "UpstreamError"
