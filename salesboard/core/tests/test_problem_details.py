"""Tests for RFC 7807 problem responses."""

import json

from salesboard.core.logging import request_id_ctx
from salesboard.core.problem_details import OPAQUE_SERVER_DETAIL, ErrorCode, problem_response


class TestErrorCode:
    """Problem type URIs and titles."""

    def test_type_uris(self) -> None:
        """Test each code maps to a stable type URI."""
        assert ErrorCode.DATABASE_ERROR.type_uri == "/errors/database"
        assert ErrorCode.QUERY_TIMEOUT.type_uri == "/errors/query-timeout"
        assert ErrorCode.VALIDATION_ERROR.type_uri == "/errors/validation"
        assert ErrorCode.INTERNAL_ERROR.type_uri == "/errors/internal"

    def test_title(self) -> None:
        """Test titles are derived from the code."""
        assert ErrorCode.QUERY_TIMEOUT.title == "Query Timeout"


class TestProblemResponse:
    """problem_response bodies."""

    def test_server_errors_are_opaque(self) -> None:
        """Test 5xx bodies never carry the caller's detail."""
        response = problem_response(500, ErrorCode.DATABASE_ERROR, detail="relation does not exist")

        body = json.loads(response.body)
        assert body["detail"] == OPAQUE_SERVER_DETAIL
        assert body["code"] == "DATABASE_ERROR"
        assert response.headers["Cache-Control"] == "no-store"
        assert response.media_type == "application/problem+json"

    def test_client_errors_keep_detail(self) -> None:
        """Test 4xx bodies explain the problem."""
        response = problem_response(422, ErrorCode.VALIDATION_ERROR, detail="bad", errors=[{"field": "x"}])

        body = json.loads(response.body)
        assert body["detail"] == "bad"
        assert body["errors"] == [{"field": "x"}]

    def test_request_id_is_attached(self) -> None:
        """Test the current request id appears as extension and instance."""
        token = request_id_ctx.set("req-9")
        try:
            body = json.loads(problem_response(500, ErrorCode.INTERNAL_ERROR).body)
        finally:
            request_id_ctx.reset(token)

        assert body["request_id"] == "req-9"
        assert body["instance"] == "/requests/req-9"
