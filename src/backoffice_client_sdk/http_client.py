from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import TransportError

logger = logging.getLogger(__name__)

JsonBody = dict[str, Any] | list[Any] | None


@dataclass
class HttpClient:
    config: ClientConfig
    session: requests.Session | None = None

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=self.config.max_connections,
                pool_maxsize=self.config.max_connections,
            )
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)

    def _build_url(self, path: str) -> str:
        base = self.config.api_base_url.rstrip("/") + "/"
        return urljoin(base, path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        module: str = "unknown",
        operation: str = "unknown",
    ) -> JsonBody:
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        request_headers = {"Accept": "application/json"}
        if headers:
            request_headers.update(headers)

        normalized_method = method.upper()
        url = self._build_url(path)
        # only reads are retried
        attempts = self.config.retries + 1 if normalized_method in {"GET", "HEAD"} else 1

        started = time.monotonic()
        response: requests.Response | None = None
        for attempt in range(attempts):
            try:
                response = self.session.request(
                    method=normalized_method,
                    url=url,
                    headers=request_headers,
                    json=json_body,
                    params=params,
                    timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException as exc:
                if attempt >= attempts - 1:
                    self._log_outcome(normalized_method, module, operation, started, "transport_error", None)
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message=str(exc),
                        details={"type": type(exc).__name__},
                        status_code=0,
                        raw_payload=None,
                    ) from exc
                logger.warning(
                    "http_retry",
                    extra={"method": normalized_method, "url": url, "attempt": attempt + 1, "reason": type(exc).__name__},
                )
            else:
                if response.status_code < 500 or attempt >= attempts - 1:
                    break
                logger.warning(
                    "http_retry",
                    extra={"method": normalized_method, "url": url, "attempt": attempt + 1, "status": response.status_code},
                )
            time.sleep(self.config.retry_backoff_seconds * (2**attempt))

        if response is None:
            raise RuntimeError("HTTP request failed without response")

        if response.ok:
            self._log_outcome(normalized_method, module, operation, started, "success", response.status_code)
            if not response.content:
                return None
            return response.json()

        payload: object
        try:
            payload = response.json()
        except ValueError:
            payload = response.text or None
        self._log_outcome(normalized_method, module, operation, started, "error", response.status_code)
        raise map_error(response.status_code, payload)

    def _log_outcome(
        self,
        method: str,
        module: str,
        operation: str,
        started: float,
        result: str,
        status_code: int | None,
    ) -> None:
        logger.debug(
            "http_request_complete",
            extra={
                "method": method,
                "api_module": module,
                "operation": operation,
                "duration_ms": int((time.monotonic() - started) * 1000),
                "result": result,
                "status": status_code,
            },
        )
