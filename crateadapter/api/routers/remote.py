"""Prometheus remote storage endpoints.

``/write`` and ``/read`` are the URLs configured in Prometheus:

```yaml
remote_write:
  - url: http://localhost:9268/write
remote_read:
  - url: http://localhost:9268/read
```
"""

import time

import structlog
from fastapi import APIRouter, Request, Response, status

from crateadapter.api.dependencies import Adapter, AppSettings, Observer
from crateadapter.api.exceptions import (
    BadRequestException,
    PayloadTooLargeException,
    to_api_exception,
)
from crateadapter.exceptions import CrateAdapterError
from crateadapter.logging_config import log_error
from crateadapter.prometheus import PrometheusParser, PrometheusRemoteStorage

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["remote-storage"])


async def _read_body(request: Request, max_size: int) -> bytes:
    parser = PrometheusParser()
    is_valid, error = parser.validate_headers(dict(request.headers))
    if not is_valid:
        raise BadRequestException(f"Invalid Prometheus request headers: {error}")

    body = await request.body()
    is_valid, error = parser.validate_request_size(len(body), max_size)
    if not is_valid:
        if body:
            raise PayloadTooLargeException(error)
        raise BadRequestException(error)
    return body


@router.post(
    "/write",
    status_code=status.HTTP_200_OK,
    summary="Prometheus remote write endpoint",
    response_class=Response,
)
async def remote_write(
    request: Request,
    adapter: Adapter,
    observer: Observer,
    settings: AppSettings,
) -> Response:
    """Store a remote write request in CrateDB as one bulk insert.

    Returns an empty 200 response once CrateDB has accepted every row.
    """
    start = time.perf_counter()
    success = False
    try:
        body = await _read_body(request, settings.max_request_size_bytes)

        handler = PrometheusRemoteStorage()
        write_request = handler.decode_write_request(body)
        series = handler.write_request_to_series(write_request)

        await adapter.write(series)
        logger.debug(
            "remote_write_stored", **handler.get_statistics(write_request)
        )

        success = True
        return Response(status_code=status.HTTP_200_OK)

    except CrateAdapterError as e:
        log_error(logger, e, "remote_write")
        raise to_api_exception(e) from e

    finally:
        observer.on_request_completed("write", time.perf_counter() - start, success)


@router.post(
    "/read",
    status_code=status.HTTP_200_OK,
    summary="Prometheus remote read endpoint",
    response_class=Response,
)
async def remote_read(
    request: Request,
    adapter: Adapter,
    observer: Observer,
    settings: AppSettings,
) -> Response:
    """Answer a single-query remote read request from CrateDB."""
    start = time.perf_counter()
    success = False
    try:
        body = await _read_body(request, settings.max_request_size_bytes)

        handler = PrometheusRemoteStorage()
        read_request = handler.decode_read_request(body)
        query = handler.read_request_to_query(read_request)

        series = await adapter.read(query)
        payload = handler.encode_read_response(series)

        success = True
        return Response(
            content=payload,
            media_type="application/x-protobuf",
            headers={"Content-Encoding": "snappy"},
        )

    except CrateAdapterError as e:
        log_error(logger, e, "remote_read")
        raise to_api_exception(e) from e

    finally:
        observer.on_request_completed("read", time.perf_counter() - start, success)
