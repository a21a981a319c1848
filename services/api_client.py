"""
Backend API client.

Thin wrapper over a requests.Session that attaches the shopper's bearer
token and classifies failures. It never logs anyone out or redirects by
itself: an UnauthorizedError is raised and the app-level handler performs
the forced logout.
"""
import logging

import requests

from config import BACKEND_URL, API_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for backend call failures."""
    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class UnauthorizedError(ApiError):
    """Backend answered 401: the token is missing, expired or invalid."""


class NetworkError(ApiError):
    """No response: backend down, DNS/connection failure, timeout or CORS-class refusal."""


class ApiResponseError(ApiError):
    """Backend answered with any other 4xx/5xx status."""


def _error_message(response):
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason or f"HTTP {response.status_code}", None
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or f"HTTP {response.status_code}", body
    return f"HTTP {response.status_code}", body


class ApiClient:
    def __init__(self, base_url=BACKEND_URL, token_provider=None, timeout=API_TIMEOUT_SECONDS, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._token_provider = token_provider
        self._http = session or requests.Session()
        self._http.headers.update({"Content-Type": "application/json"})

    def _url(self, path):
        return f"{self.base_url}/{path.lstrip('/')}"

    def _auth_headers(self):
        if self._token_provider is None:
            return {}
        token = self._token_provider()
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    def request(self, method, path, **kwargs):
        """
        Send a request and return the decoded JSON body (None for empty bodies).

        Raises:
            UnauthorizedError: on HTTP 401
            NetworkError: when no response was received
            ApiResponseError: on any other error status
        """
        headers = {**kwargs.pop("headers", {}), **self._auth_headers()}
        url = self._url(path)

        try:
            response = self._http.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.error(f"[API] Network error on {method} {url}: {e}")
            logger.error(f"[API] Backend may not be running at {self.base_url} or is refusing this origin")
            raise NetworkError(f"Could not reach backend: {e}") from e

        if response.status_code == 401:
            logger.warning(f"[API] 401 Unauthorized on {method} {url}")
            raise UnauthorizedError("Session expired. Please sign in again.", status_code=401)

        if response.status_code >= 400:
            message, body = _error_message(response)
            logger.warning(f"[API] {method} {url} failed with {response.status_code}: {message}")
            raise ApiResponseError(message, status_code=response.status_code, payload=body)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiResponseError(f"Backend returned non-JSON body: {e}", status_code=response.status_code)

    def get(self, path, **kwargs):
        return self.request("GET", path, **kwargs)

    def post(self, path, json=None, **kwargs):
        return self.request("POST", path, json=json, **kwargs)

    def put(self, path, json=None, **kwargs):
        return self.request("PUT", path, json=json, **kwargs)

    def delete(self, path, **kwargs):
        return self.request("DELETE", path, **kwargs)
