import time
import uuid
from typing import Callable

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, _StreamingResponse

from app.core.logger import request_id_var

REQUEST_ID_HEADER = "X-Request-ID"


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Trace every request with a short request id.

    Installed outside the session middleware so session resolution logs carry
    the same request id as the handler's.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start_time = time.perf_counter()
        line = f"[{request_id}] {request.method} {request.url.path}"

        logger.trace(
            f"{line} - Client: {_client_ip(request)} - "
            f"User-Agent: {request.headers.get('user-agent', 'unknown')}",
            request_id=request_id,
        )

        try:
            response: _StreamingResponse = await call_next(request)
        except Exception as e:
            logger.error(
                f"{line} - Error: {e} - Time: {time.perf_counter() - start_time:.3f}s",
                request_query_params=request.query_params,
                request_path_params=request.path_params,
            )
            raise
        finally:
            request_id_var.reset(token)

        logger.trace(
            f"{line} - Status: {response.status_code} - "
            f"Time: {time.perf_counter() - start_time:.3f}s - "
            f"User: {getattr(request.state, 'user_id', None)}",
            request_id=request_id,
        )

        response.headers[REQUEST_ID_HEADER] = request_id

        return response
