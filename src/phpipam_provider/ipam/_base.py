"""
Shared HTTP session, authentication and error handling for the phpIPAM API.

Domain operations live in ``phpipam_provider.ipam.client``; this module only
knows how to talk to the API and how to turn failures into
``IPAMClientError``.
"""

import threading

import httpx

from phpipam_provider.exceptions import AuthenticationError, IPAMClientError
from phpipam_provider.models.records import APIResponse
from phpipam_provider.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


def _handle_http_error(response: httpx.Response, context: str = "request") -> None:
    """Handle HTTP errors with consistent logging."""
    status = response.status_code
    try:
        detail = response.json()
        if isinstance(detail, dict):
            detail_str = detail.get("message", str(detail))
        else:
            detail_str = str(detail)
    except ValueError:
        detail_str = response.text

    logger.error(f"HTTP {status} on {context}: {detail_str}")
    raise IPAMClientError(
        f"HTTP {status}: {detail_str}", status_code=status, detail=detail_str
    )


class BaseClient:
    """
    Authenticated phpIPAM session.

    The session token is obtained lazily on the first call and renewed once
    when the server reports it expired.
    """

    def __init__(
        self,
        server_url: str,
        app_id: str,
        username: str,
        password: str,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool = True,
        transport: httpx.BaseTransport | None = None,
    ):
        self.server_url = server_url.rstrip("/")
        self.app_id = app_id
        self.username = username
        self._password = password
        self._token: str | None = None
        self._auth_lock = threading.Lock()
        self._http = httpx.Client(
            timeout=timeout,
            verify=verify,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    # =========================================================================
    # Session
    # =========================================================================

    @property
    def base_url(self) -> str:
        return f"{self.server_url}/api/{self.app_id}"

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.strip('/')}/"

    def login(self) -> str:
        """Authenticate with username/password and store the session token."""
        with self._auth_lock:
            if self._token:
                return self._token

            url = self._url("user")
            try:
                response = self._http.post(url, auth=(self.username, self._password))
            except httpx.RequestError as e:
                logger.error(f"Request error during login: {e}")
                raise IPAMClientError(f"Network error: {e}")

            try:
                body = response.json()
            except ValueError:
                _handle_http_error(response, "login")
                raise IPAMClientError("Invalid login response")

            data = body.get("data") or {}
            token = data.get("token") if isinstance(data, dict) else None
            if body.get("code") != 200 or not token:
                message = body.get("message") or f"HTTP {response.status_code}"
                logger.error(f"phpIPAM login failed for {self.username}: {message}")
                raise AuthenticationError(
                    f"Authentication failed: {message}",
                    status_code=body.get("code", response.status_code),
                    detail=message,
                )

            self._token = token
            logger.debug(f"Authenticated to {self.server_url} as {self.username}")
            return token

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # =========================================================================
    # Requests
    # =========================================================================

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        token = self.login()
        try:
            return self._http.request(
                method.upper(), self._url(path), headers={"token": token}, **kwargs
            )
        except httpx.RequestError as e:
            logger.error(f"Request error: {e}")
            raise IPAMClientError(f"Network error: {e}")

    def _request(self, method: str, path: str, context: str, **kwargs) -> APIResponse:
        """
        Issue one API call and decode the envelope.

        Non-2xx codes in the body are returned, not raised: a search that
        finds nothing comes back as code 404. Server errors and undecodable
        bodies raise ``IPAMClientError``.
        """
        response = self._send(method, path, **kwargs)
        if response.status_code == 401:
            # Token expired server-side
            self._token = None
            response = self._send(method, path, **kwargs)

        try:
            body = response.json()
        except ValueError:
            _handle_http_error(response, context)
            raise IPAMClientError(f"Invalid response on {context}")

        if not isinstance(body, dict):
            raise IPAMClientError(f"Unexpected response on {context}: {body!r}")

        if body.get("code") is None:
            body["code"] = response.status_code
        if body["code"] >= 500 or response.status_code >= 500:
            _handle_http_error(response, context)

        return APIResponse.model_validate(body)
