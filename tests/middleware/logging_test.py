from unittest.mock import MagicMock, patch

import pytest
from fastapi import Request
from starlette.middleware.base import _StreamingResponse

from app.core.logger import request_id_var
from app.middleware.logging import LoggingMiddleware


def make_request(method: str = "GET", path: str = "/test", user_agent: str | None = "test"):
    request = MagicMock(spec=Request)
    request.state = MagicMock()
    request.method = method
    request.url = MagicMock(path=path)
    request.client = MagicMock(host="192.168.1.1")
    request.headers = {"user-agent": user_agent} if user_agent else {}
    request.query_params = {}
    request.path_params = {}
    return request


def make_response(status_code: int = 200):
    response = MagicMock(spec=_StreamingResponse)
    response.status_code = status_code
    response.headers = {}
    return response


@pytest.mark.anyio
class TestLoggingMiddleware:
    """Test LoggingMiddleware functionality."""

    async def test_generates_request_id(self):
        """Test that middleware generates request ID."""
        middleware = LoggingMiddleware(MagicMock())
        request = make_request()
        response = make_response()

        async def call_next(req):
            return response

        with patch("app.middleware.logging.logger"):
            await middleware.dispatch(request, call_next)

            assert isinstance(request.state.request_id, str)
            assert len(request.state.request_id) == 8

    async def test_request_id_in_logging_context(self):
        """Test the request id is visible to downstream code and reset afterwards."""
        middleware = LoggingMiddleware(MagicMock())
        request = make_request()
        response = make_response()
        seen = []

        async def call_next(req):
            seen.append(request_id_var.get())
            return response

        with patch("app.middleware.logging.logger"):
            await middleware.dispatch(request, call_next)

        assert seen == [request.state.request_id]
        assert request_id_var.get() is None

    async def test_logs_successful_request(self):
        """Test that successful requests are logged with the resolved user."""
        middleware = LoggingMiddleware(MagicMock())
        request = make_request(method="POST", path="/api/test")
        response = make_response(status_code=201)

        async def call_next(req):
            req.state.user_id = 42
            return response

        with patch("app.middleware.logging.logger") as mock_logger:
            await middleware.dispatch(request, call_next)

            assert mock_logger.trace.call_count == 2

            first_call = mock_logger.trace.call_args_list[0]
            assert "POST" in first_call[0][0]
            assert "/api/test" in first_call[0][0]
            assert "192.168.1.1" in first_call[0][0]

            second_call = mock_logger.trace.call_args_list[1]
            assert "201" in second_call[0][0]
            assert "Time:" in second_call[0][0]
            assert "User: 42" in second_call[0][0]

    async def test_adds_request_id_to_response(self):
        """Test that X-Request-ID header is added to response."""
        middleware = LoggingMiddleware(MagicMock())
        request = make_request()
        response = make_response()

        async def call_next(req):
            return response

        with patch("app.middleware.logging.logger"):
            await middleware.dispatch(request, call_next)

            assert response.headers["X-Request-ID"] == request.state.request_id

    async def test_logs_error_with_details(self):
        """Test that errors are logged with request details."""
        middleware = LoggingMiddleware(MagicMock())
        request = make_request(method="POST", path="/api/error")
        request.query_params = {"param": "value"}
        request.path_params = {"id": "123"}

        async def call_next(req):
            raise ValueError("Test error")

        with patch("app.middleware.logging.logger") as mock_logger:
            with pytest.raises(ValueError):
                await middleware.dispatch(request, call_next)

            mock_logger.error.assert_called_once()
            error_call = mock_logger.error.call_args

            assert "Test error" in error_call[0][0]
            assert "POST" in error_call[0][0]
            assert "/api/error" in error_call[0][0]
            assert error_call[1]["request_query_params"] == {"param": "value"}
            assert error_call[1]["request_path_params"] == {"id": "123"}

        assert request_id_var.get() is None

    async def test_missing_user_agent(self):
        """Test handling of missing User-Agent header."""
        middleware = LoggingMiddleware(MagicMock())
        request = make_request(user_agent=None)
        response = make_response()

        async def call_next(req):
            return response

        with patch("app.middleware.logging.logger") as mock_logger:
            await middleware.dispatch(request, call_next)

            first_call = mock_logger.trace.call_args_list[0]
            assert "unknown" in first_call[0][0]

    async def test_missing_client(self):
        """Test handling when request.client is None."""
        middleware = LoggingMiddleware(MagicMock())
        request = make_request()
        request.client = None
        response = make_response()

        async def call_next(req):
            return response

        with patch("app.middleware.logging.logger") as mock_logger:
            await middleware.dispatch(request, call_next)

            first_call = mock_logger.trace.call_args_list[0]
            assert "unknown" in first_call[0][0]
