"""
Ghost Admin API helper for the endnote migration.

This module implements the low-level interactions with the Ghost Admin
REST API that the migration needs: browsing one page of posts and editing a
post with an optimistic-concurrency ``updated_at`` check.  Requests are
authenticated with a short-lived JWT signed with the site's Admin API key
(``<id>:<hex secret>``).  A generic retry wrapper handles transient network
errors and server-side rate limiting responses (429 or 5xx).

Errors are translated at this boundary:

* HTTP 409 (Ghost's ``UpdateCollisionError``) becomes :class:`ConflictError`
  and is never retried;
* any other HTTP failure, and any network failure once retries are
  exhausted, becomes :class:`TransportError`.

Usage example::

    from ghost_endnote.migrators.ghost_admin import GhostAdminClient

    client = GhostAdminClient("https://example.com", "<id>:<secret>")
    page = client.browse("posts", filter="id:[abc]", formats="html,lexical,mobiledoc")
    post = page["posts"][0]
    client.edit_post(post["id"], post["updated_at"], {"html": "<p>hi</p>"}, source="html")
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional

import jwt
import requests

from ghost_endnote.utils.errors import ConfigurationError, ConflictError, TransportError

###############################################################################
# Auth and retry utilities
###############################################################################

TOKEN_TTL_SECONDS = 5 * 60
RETRYABLE_STATUS = (429, 500, 502, 503, 504)


def make_admin_token(admin_api_key: str, *, now: Optional[float] = None) -> str:
    """
    Build the JWT Ghost expects in ``Authorization: Ghost <token>``.

    :param admin_api_key: The Admin API key, ``<id>:<hex secret>``.
    :param now: Issue time in seconds since the epoch (defaults to now).
    :raises ConfigurationError: if the key is not in the expected format.
    """
    key_id, sep, secret = (admin_api_key or "").partition(":")
    if not sep or not key_id or not secret:
        raise ConfigurationError("Admin API key must look like '<id>:<secret>'")
    try:
        secret_bytes = bytes.fromhex(secret)
    except ValueError as e:
        raise ConfigurationError("Admin API key secret is not hexadecimal") from e
    iat = int(now if now is not None else time.time())
    payload = {"iat": iat, "exp": iat + TOKEN_TTL_SECONDS, "aud": "/admin/"}
    return jwt.encode(payload, secret_bytes, algorithm="HS256", headers={"kid": key_id})


def with_retries(
    fn: Callable[[], requests.Response],
    *,
    max_attempts: int = 5,
    base_delay: float = 0.7,
    sleep_fn: Callable[[float], None] = time.sleep,
) -> requests.Response:
    """
    Execute a function returning a ``requests.Response``, retrying on
    transient HTTP errors.  Retries are attempted on status codes 429
    (too many requests) and 5xx server errors, and on connection-level
    failures.  Backoff is exponential.

    :param fn: A zero-argument callable that performs the HTTP request.
    :param max_attempts: Maximum number of attempts before giving up.
    :param base_delay: Base delay in seconds for exponential backoff.
    :return: The successful ``requests.Response``.
    :raises requests.HTTPError: on a non-retryable status or when all attempts fail.
    :raises requests.RequestException: when the network keeps failing.
    """
    attempt = 0
    while True:
        try:
            resp = fn()
            resp.raise_for_status()
            return resp
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status not in RETRYABLE_STATUS or attempt >= max_attempts - 1:
                raise
            # Use Retry-After header if provided, otherwise exponential backoff
            retry_after = e.response.headers.get("Retry-After")
            try:
                wait = float(retry_after) if retry_after else base_delay * (2 ** attempt)
            except ValueError:
                wait = base_delay * (2 ** attempt)
            sleep_fn(wait)
            attempt += 1
        except requests.RequestException:
            if attempt >= max_attempts - 1:
                raise
            sleep_fn(base_delay * (2 ** attempt))
            attempt += 1


def _error_detail(resp: Optional[requests.Response]) -> str:
    if resp is None:
        return ""
    try:
        errors = resp.json().get("errors") or []
    except ValueError:
        return resp.text
    if errors and isinstance(errors[0], dict):
        first = errors[0]
        return first.get("context") or first.get("message") or resp.text
    return resp.text


###############################################################################
# Client
###############################################################################

class GhostAdminClient:
    """
    Thin Admin API client.  One instance is the store handle for one run.
    """

    def __init__(
        self,
        api_url: str,
        admin_api_key: str,
        *,
        version: str = "v5.0",
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        max_attempts: int = 5,
        sleep_fn: Callable[[float], None] = time.sleep,
    ) -> None:
        # Fail on a malformed key now rather than on the first request.
        make_admin_token(admin_api_key)
        self.api_url = api_url.rstrip("/")
        self.admin_api_key = admin_api_key
        self.version = version
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_attempts = max_attempts
        self._sleep_fn = sleep_fn

    @property
    def admin_base(self) -> str:
        return f"{self.api_url}/ghost/api/admin"

    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Ghost {make_admin_token(self.admin_api_key)}",
            "Accept-Version": self.version,
        }

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self.admin_base}/{path.lstrip('/')}"

        def do_request() -> requests.Response:
            return self.session.request(method, url, headers=self.headers(), timeout=self.timeout, **kwargs)

        try:
            resp = with_retries(do_request, max_attempts=self.max_attempts, sleep_fn=self._sleep_fn)
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            detail = _error_detail(e.response)
            if status == 409:
                raise ConflictError(f"Update collision on {method} {url}: {detail}") from e
            raise TransportError(f"Ghost returned {status} on {method} {url}: {detail}") from e
        except requests.RequestException as e:
            raise TransportError(f"Network error on {method} {url}: {e}") from e
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"Ghost returned a non-JSON body on {method} {url}") from e

    def browse(self, resource: str, **params: Any) -> Dict[str, Any]:
        """
        Fetch one page of ``resource`` (``posts``, ``pages``…).

        Keyword arguments are passed through as query parameters (``filter``,
        ``fields``, ``formats``, ``limit``, ``page``).
        """
        query = {k: v for k, v in params.items() if v is not None}
        return self._request("GET", f"{resource}/", params=query)

    def edit_post(
        self,
        post_id: str,
        updated_at: Optional[str],
        fields: Dict[str, Any],
        *,
        source: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Edit a post, guarded by its ``updated_at`` stamp.

        :param post_id: The post ID.
        :param updated_at: The stamp read when the post was fetched.
        :param fields: Content fields to write (``lexical`` or ``html``).
        :param source: ``"html"`` when ``fields`` carries html to be converted.
        :return: The edited post as returned by Ghost.
        :raises ConflictError: if the post changed since ``updated_at``.
        :raises TransportError: on any other failure.
        """
        body = {"posts": [{**fields, "updated_at": updated_at}]}
        params = {"source": source} if source else None
        data = self._request("PUT", f"posts/{post_id}/", json=body, params=params)
        posts = data.get("posts") or [{}]
        return posts[0]
