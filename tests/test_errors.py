from gestion.core.errors import ApiError, AuthenticationError, NetworkError


def test_nested_error_envelope():
    error = ApiError.from_payload(
        {"error": {"code": "NOT_FOUND", "message": "Brand not found", "details": {"id": "b1"}}},
        status=404,
    )
    assert error.code == "NOT_FOUND"
    assert error.message == "Brand not found"
    assert error.details == {"id": "b1"}
    assert error.status == 404
    assert str(error) == "NOT_FOUND: Brand not found"


def test_flat_error_envelope():
    error = ApiError.from_payload({"code": "CONFLICT", "message": "Duplicated code"})
    assert error.code == "CONFLICT"
    assert error.message == "Duplicated code"
    assert not error.is_validation


def test_field_errors_envelope():
    error = ApiError.from_payload(
        {
            "errors": [
                {"field": "name", "message": "Required"},
                {"field": "name", "message": "Too short"},
                {"field": "email", "message": "Invalid email"},
            ]
        },
        status=422,
    )
    assert error.is_validation
    assert error.errors_by_field() == {"name": "Required", "email": "Invalid email"}
    assert error.code == "ERROR"
    assert error.message == "Something unexpected happened"


def test_non_json_body_falls_back_to_generic_message():
    error = ApiError.from_payload("<html>Bad gateway</html>", status=502)
    assert str(error) == "ERROR: Something unexpected happened"
    assert error.field_errors == []


def test_subclasses_keep_the_envelope():
    auth = AuthenticationError.from_payload({"message": "Token expired"}, status=401)
    assert isinstance(auth, ApiError)
    assert auth.message == "Token expired"
    assert NetworkError("timeout").code == "NETWORK_ERROR"
