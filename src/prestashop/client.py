from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import urlencode

import httpx
import requests

from .classifier import EmptySuccess, Failure, NotFound, Outcome, classify
from .exceptions import RequestTimeoutError, TransportError
from .stats import TransferStats, read_stat
from .structures import RequestDescriptor, ResponseEnvelope, build_request

logger = logging.getLogger(__name__)

BACKENDS = ("httpx", "requests")


@dataclass
class Prestashop:
    """PrestaShop webservice client with sync and async methods.

    Every call returns ``None`` when the resource does not exist, ``True`` when
    the call succeeded without content, or the parsed document; anything else
    raises :class:`~prestashop.exceptions.WebserviceError`.
    """

    base_url: str
    key: str = field(repr=False)
    timeout: float = 10.0
    backend: str = "httpx"
    concurrency_limit: int = 25
    _last_stats: Optional[TransferStats] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.base_url, str):
            raise TypeError("base_url must be str")
        if not self.base_url.strip("/ "):
            raise ValueError("base_url cannot be empty")
        if not isinstance(self.key, str):
            raise TypeError("key must be str")
        if self.backend not in BACKENDS:
            raise ValueError(f"backend must be one of {', '.join(BACKENDS)}")
        self._check_limit(self.concurrency_limit)

    @property
    def store_url(self) -> str:
        return self.base_url.rstrip("/")

    @property
    def api_url(self) -> str:
        return f"{self.store_url}/api/"

    @property
    def _auth(self) -> Tuple[str, str]:
        return (self.key, "")

    def _build_url(self, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
        if not isinstance(path, str):
            raise TypeError("path must be str")
        url = f"{self.api_url}{path.lstrip('/')}"
        if not params:
            return url
        clean = {k: v for k, v in params.items() if v is not None}
        if not clean:
            return url
        return f"{url}?{urlencode(clean)}"

    @staticmethod
    def _check_limit(limit: Any) -> int:
        if not isinstance(limit, int) or isinstance(limit, bool):
            raise TypeError("concurrency limit must be int")
        if limit < 1:
            raise ValueError("concurrency limit must be at least 1")
        return limit

    @staticmethod
    def _from_httpx(response: httpx.Response) -> ResponseEnvelope:
        return ResponseEnvelope.from_items(
            response.status_code,
            response.reason_phrase,
            response.headers.multi_items(),
            response.text,
        )

    @staticmethod
    def _from_requests(response: requests.Response) -> ResponseEnvelope:
        # requests falls back to ISO-8859-1 for text/* without charset; httpx uses UTF-8.
        if "charset" not in (response.headers.get("Content-Type") or "").lower():
            response.encoding = "utf-8"
        return ResponseEnvelope.from_items(
            response.status_code,
            response.reason or "",
            response.headers.items(),
            response.text,
        )

    def _record_stats(self, request: RequestDescriptor, url: str, response: ResponseEnvelope, elapsed: float) -> None:
        self._last_stats = TransferStats(
            method=request.method,
            effective_uri=url,
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            transfer_time=elapsed,
        )

    def _send(self, request: RequestDescriptor) -> ResponseEnvelope:
        url = self._build_url(request.path, request.params)
        logger.debug("%s %s", request.method, url)
        started = time.perf_counter()

        if self.backend == "httpx":
            try:
                with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                    response = client.request(request.method, url, content=request.body, auth=self._auth)
            except httpx.TimeoutException as exc:
                raise RequestTimeoutError("HTTP request timeout exceeded.") from exc
            except httpx.HTTPError as exc:
                raise TransportError("HTTP transport error in httpx client.") from exc
            envelope = self._from_httpx(response)
        else:
            data = request.body.encode("utf-8") if request.body is not None else None
            try:
                with requests.Session() as session:
                    response = session.request(request.method, url, data=data, auth=self._auth, timeout=self.timeout)
            except requests.Timeout as exc:
                raise RequestTimeoutError("HTTP request timeout exceeded.") from exc
            except requests.RequestException as exc:
                raise TransportError("HTTP transport error in requests client.") from exc
            envelope = self._from_requests(response)

        self._record_stats(request, url, envelope, time.perf_counter() - started)
        return envelope

    async def _send_async(
        self,
        request: RequestDescriptor,
        client: Optional[httpx.AsyncClient] = None,
    ) -> ResponseEnvelope:
        url = self._build_url(request.path, request.params)
        logger.debug("%s %s", request.method, url)
        started = time.perf_counter()
        try:
            if client is None:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as own_client:
                    response = await own_client.request(request.method, url, content=request.body, auth=self._auth)
            else:
                response = await client.request(request.method, url, content=request.body, auth=self._auth)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError("HTTP request timeout exceeded.") from exc
        except httpx.HTTPError as exc:
            raise TransportError("HTTP transport error in httpx client.") from exc

        envelope = self._from_httpx(response)
        self._record_stats(request, url, envelope, time.perf_counter() - started)
        return envelope

    @staticmethod
    def _unwrap(outcome: Outcome) -> Any:
        if isinstance(outcome, Failure):
            raise outcome.to_error()
        if isinstance(outcome, NotFound):
            return None
        if isinstance(outcome, EmptySuccess):
            return True
        return outcome.content

    def _call(self, request: RequestDescriptor) -> Any:
        return self._unwrap(classify(self._send(request), request, self.store_url))

    async def _call_async(self, request: RequestDescriptor) -> Any:
        return self._unwrap(classify(await self._send_async(request), request, self.store_url))

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Read a resource (``customers``) or one of its items (``customers/7``).

        ``params`` become the query string, e.g. ``{"display": "full"}``.
        """

        return self._call(build_request("GET", path, params))

    async def get_async(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._call_async(build_request("GET", path, params))

    def post(self, path: str, body: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Create an item of a resource from an XML ``body``; returns the created item."""

        return self._call(build_request("POST", path, params, body))

    async def post_async(self, path: str, body: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._call_async(build_request("POST", path, params, body))

    def put(self, path: str, body: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Overwrite the item at ``path`` (``customers/7``) with an XML ``body``."""

        return self._call(build_request("PUT", path, params, body))

    async def put_async(self, path: str, body: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._call_async(build_request("PUT", path, params, body))

    def delete(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Delete the item at ``path``; ``True`` when deleted, ``None`` when it does not exist."""

        return self._call(build_request("DELETE", path, params))

    async def delete_async(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._call_async(build_request("DELETE", path, params))

    @staticmethod
    def _batch_requests(entries: Iterable[Mapping[str, Any]]) -> List[RequestDescriptor]:
        batch = []
        for entry in entries:
            path = entry.get("path") if isinstance(entry, Mapping) else None
            if not isinstance(path, str) or not path.strip("/ "):
                continue
            batch.append(build_request("GET", path, entry.get("params") or {}))
        return batch

    def get_many(self, entries: Iterable[Mapping[str, Any]]) -> Optional[List[Any]]:
        """Run GET requests one after another.

        Each entry is a mapping with ``path`` and optional ``params``; entries
        without a path are skipped. Returns ``None`` when no entry is usable.
        """

        batch = self._batch_requests(entries)
        if not batch:
            return None
        return [self._call(request) for request in batch]

    async def get_concurrent_async(
        self,
        entries: Iterable[Mapping[str, Any]],
        limit: Optional[int] = None,
    ) -> Optional[List[Any]]:
        """Run GET requests in concurrent batches of at most ``limit``.

        A batch fully settles before the next one starts. Requests that fail
        at the transport level are left out of the result; a response that
        classifies as a failure raises and stops the remaining batches.
        Returns ``None`` when no entry is usable.
        """

        limit = self._check_limit(self.concurrency_limit if limit is None else limit)
        batch = self._batch_requests(entries)
        if not batch:
            return None

        results: List[Any] = []
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            for start in range(0, len(batch), limit):
                chunk = batch[start : start + limit]
                settled = await asyncio.gather(
                    *(self._send_async(request, client) for request in chunk),
                    return_exceptions=True,
                )
                for request, response in zip(chunk, settled):
                    if isinstance(response, TransportError):
                        logger.warning("Skipping %s %s: %s", request.method, request.path, response)
                        continue
                    if isinstance(response, BaseException):
                        raise response
                    results.append(self._unwrap(classify(response, request, self.store_url)))
        return results

    def get_concurrent(
        self,
        entries: Iterable[Mapping[str, Any]],
        limit: Optional[int] = None,
    ) -> Optional[List[Any]]:
        return asyncio.run(self.get_concurrent_async(entries, limit))

    def fetch_all(
        self,
        entries: Iterable[Mapping[str, Any]],
        concurrency_limit: Optional[int] = None,
    ) -> Optional[List[Any]]:
        """Sequential fetch without ``concurrency_limit``, batched concurrent fetch with it."""

        if concurrency_limit is None:
            return self.get_many(entries)
        return self.get_concurrent(entries, concurrency_limit)

    def get_stats_obj(self) -> Optional[TransferStats]:
        return self._last_stats

    def get_stats(self, stat: str, as_string: bool = True) -> Any:
        """Read one statistic of the last completed call, e.g. ``"transfer-time"``.

        Returns ``None`` when no call completed yet and ``False`` for an
        unsupported statistic name.
        """

        if self._last_stats is None:
            return None
        try:
            value = read_stat(self._last_stats, stat)
        except KeyError:
            return False
        return str(value) if as_string else value


__all__ = ["Prestashop", "BACKENDS"]
