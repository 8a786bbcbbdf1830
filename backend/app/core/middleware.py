"""
Request Middleware
Provides request_id injection, timing and global error handling.
"""
import time
from typing import Callable
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import (
    get_request_id,
    generate_request_id,
    request_id_var,
    request_start_var,
    api_logger,
)

QUIET_PATHS = ('/healthz', '/readyz')


def _request_id(request: Request) -> str:
    return getattr(request.state, 'request_id', None) or get_request_id() or 'unknown'


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that:
    1. Generates/propagates request_id for tracing
    2. Tracks request timing
    3. Logs request/response summary
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get('X-Request-ID') or generate_request_id()

        request_id_var.set(request_id)
        request_start_var.set(time.time())
        request.state.request_id = request_id

        path = request.url.path
        quiet = path.endswith(QUIET_PATHS)
        if not quiet:
            api_logger.debug(
                f"{request.method} {path}",
                client=request.client.host if request.client else 'unknown',
            )

        try:
            response = await call_next(request)
            response.headers['X-Request-ID'] = request_id

            if not quiet:
                duration = round((time.time() - request_start_var.get()) * 1000, 2)
                log_level = 'info' if response.status_code < 400 else 'warning'
                getattr(api_logger, log_level)(
                    f"{request.method} {path} -> {response.status_code}",
                    duration_ms=duration,
                    status=response.status_code,
                )

            return response

        except Exception as e:
            duration = round((time.time() - request_start_var.get()) * 1000, 2)
            api_logger.error(
                f"{request.method} {path} -> 500 (unhandled)",
                error=e,
                duration_ms=duration,
            )

            return JSONResponse(
                status_code=500,
                content={
                    'detail': 'Internal server error',
                    'request_id': request_id,
                },
                headers={'X-Request-ID': request_id},
            )
        finally:
            request_id_var.set(None)
            request_start_var.set(None)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Safe 500 body with the request_id for anything not handled elsewhere."""
    request_id = _request_id(request)

    api_logger.error(
        f"Unhandled exception in {request.method} {request.url.path}",
        error=exc,
        path=str(request.url.path),
    )

    return JSONResponse(
        status_code=500,
        content={
            'detail': 'Internal server error',
            'request_id': request_id,
        },
        headers={'X-Request-ID': request_id},
    )


async def http_exception_handler(request: Request, exc) -> JSONResponse:
    """
    Handler for HTTPException - adds request_id to error responses.
    """
    request_id = _request_id(request)
    status_code = getattr(exc, 'status_code', 500)
    detail = getattr(exc, 'detail', 'Unknown error')

    if status_code >= 500:
        api_logger.error(f"HTTP {status_code}: {detail}", path=str(request.url.path), status=status_code)
    elif status_code >= 400:
        api_logger.warning(f"HTTP {status_code}: {detail}", path=str(request.url.path), status=status_code)

    return JSONResponse(
        status_code=status_code,
        content={
            'detail': detail,
            'request_id': request_id,
        },
        headers={**(getattr(exc, 'headers', None) or {}), 'X-Request-ID': request_id},
    )


async def validation_exception_handler(request: Request, exc) -> JSONResponse:
    """
    Handler for RequestValidationError.

    An unparseable JSON body is a 400; any other schema problem is a 422
    listing the offending fields.
    """
    request_id = _request_id(request)

    if any(error.get('type') == 'json_invalid' for error in exc.errors()):
        api_logger.warning(f"Malformed JSON in {request.method} {request.url.path}")
        return JSONResponse(
            status_code=400,
            content={
                'detail': 'malformed JSON in parameters',
                'request_id': request_id,
            },
            headers={'X-Request-ID': request_id},
        )

    errors = []
    for error in exc.errors():
        errors.append({
            'field': '.'.join(str(loc) for loc in error.get('loc', [])),
            'message': error.get('msg', 'Validation error'),
            'type': error.get('type', 'value_error'),
        })

    api_logger.warning(
        f"Validation error in {request.method} {request.url.path}",
        errors=errors,
    )

    return JSONResponse(
        status_code=422,
        content={
            'detail': 'Validation error',
            'errors': errors,
            'request_id': request_id,
        },
        headers={'X-Request-ID': request_id},
    )
