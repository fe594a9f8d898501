import asyncio

import httpx
import pytest
import requests

from prestashop import client as prestashop_client


def _response_for(responses, url):
    if isinstance(responses, dict):
        for path, response in responses.items():
            if url.split("?")[0].endswith(path):
                return response
        raise AssertionError(f"unexpected url {url}")
    return responses


def _resolve(response, method, url):
    if isinstance(response, Exception):
        raise response
    if callable(response):
        return response(method, url)
    return response


class SyncClientStub:
    def __init__(self, responses, calls):
        self.responses = responses
        self.calls = calls

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def request(self, method, url, content=None, headers=None, auth=None):
        self.calls.append({"method": method, "url": url, "content": content, "headers": headers, "auth": auth})
        return _resolve(_response_for(self.responses, url), method, url)


class AsyncClientStub:
    def __init__(self, responses, calls, events):
        self.responses = responses
        self.calls = calls
        self.events = events

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def request(self, method, url, content=None, headers=None, auth=None):
        self.calls.append({"method": method, "url": url, "content": content, "headers": headers, "auth": auth})
        self.events.append(("start", url))
        try:
            await asyncio.sleep(0.01)
            return _resolve(_response_for(self.responses, url), method, url)
        finally:
            self.events.append(("end", url))


class RequestsSessionStub:
    def __init__(self, response, calls):
        self.response = response
        self.calls = calls

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def request(self, method, url, data=None, headers=None, auth=None, timeout=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "content": data,
                "headers": headers,
                "auth": auth,
                "timeout": timeout,
            }
        )
        return _resolve(self.response, method, url)


@pytest.fixture
def response_factory():
    def _factory(status_code, text="", content_type=None, headers=None, url="http://shop.local/api/"):
        all_headers = dict(headers or {})
        if content_type is not None:
            all_headers["Content-Type"] = content_type
        return httpx.Response(status_code, text=text, headers=all_headers, request=httpx.Request("GET", url))

    return _factory


@pytest.fixture
def xml_response(response_factory):
    def _factory(status_code, text):
        return response_factory(status_code, text, content_type="text/xml;charset=utf-8")

    return _factory


@pytest.fixture
def requests_response_factory():
    def _factory(status_code, text="", content_type=None, reason="OK", body_encoding="utf-8"):
        response = requests.Response()
        response.status_code = status_code
        response.reason = reason
        response._content = text.encode(body_encoding)
        response.headers["Content-Length"] = str(len(response._content))
        if content_type is not None:
            response.headers["Content-Type"] = content_type
        response.encoding = requests.utils.get_encoding_from_headers(response.headers)
        return response

    return _factory


@pytest.fixture
def mock_sync_client(monkeypatch):
    def _install(responses):
        calls = []

        def client_factory(*_args, **_kwargs):
            return SyncClientStub(responses, calls)

        monkeypatch.setattr(prestashop_client.httpx, "Client", client_factory)
        return calls

    return _install


@pytest.fixture
def async_events():
    return []


@pytest.fixture
def mock_async_client(monkeypatch, async_events):
    def _install(responses):
        calls = []

        def async_client_factory(*_args, **_kwargs):
            return AsyncClientStub(responses, calls, async_events)

        monkeypatch.setattr(prestashop_client.httpx, "AsyncClient", async_client_factory)
        return calls

    return _install


@pytest.fixture
def mock_requests_session(monkeypatch):
    def _install(response):
        calls = []

        def session_factory(*_args, **_kwargs):
            return RequestsSessionStub(response, calls)

        monkeypatch.setattr(prestashop_client.requests, "Session", session_factory)
        return calls

    return _install
