"""Forge API client using httpx."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import IO, Any, TypeVar

import httpx

from . import __version__
from .config import ForgeConfig
from .cookies import CookieGate
from .exceptions import (
    AntiBotBlockError,
    DecodeError,
    ForbiddenError,
    ForgeApiError,
    ForgeError,
    MethodNotAllowedError,
    NetworkError,
    NotFoundError,
    TokenInvalidError,
    UnauthorizedError,
)
from .services.branches import BranchService
from .services.commits import CommitService
from .services.files import FileService
from .services.issues import IssueService
from .services.merge_requests import MergeRequestService
from .services.pipelines import PipelineService
from .services.projects import ProjectService
from .services.releases import ReleaseService
from .services.tags import TagService
from .services.users import UserService
from .services.webhooks import WebhookService
from .transfer import Download, filename_from_disposition, safe_filename

logger = logging.getLogger(__name__)

T = TypeVar("T")

ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE")
ANTI_BOT_SIGNATURE = "AuthenticationException"
USER_ME_PATH = "/user/me"


class ForgeClient:
    """Async HTTP client for the Forge REST API."""

    def __init__(
        self,
        config: ForgeConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or ForgeConfig.from_env()
        self.config.validate()
        self.base_url = self.config.api_url
        self.token = self.config.token
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.config.timeout,
            transport=transport,
        )
        self._cookies = CookieGate(self._http, self.base_url)
        if self.config.is_cloud:
            self.user_agent = f"Mozilla/5.0 (compatible; gf-cli/{__version__})"
        else:
            self.user_agent = f"gf-cli/{__version__}"

    async def close(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> ForgeClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── Cookies ───────────────────────────────────────────────────

    @property
    def cookies_ready(self) -> bool:
        return self._cookies.ready

    @property
    def cookie_gate(self) -> CookieGate:
        return self._cookies

    async def reset_cookies(self) -> None:
        await self._cookies.reset()

    # ── HTTP engine ───────────────────────────────────────────────

    def _headers(self, content_type: str | None = "application/json") -> dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": self.user_agent}
        if content_type:
            headers["Content-Type"] = content_type
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        return headers

    async def _send_once(
        self,
        method: str,
        path: str,
        *,
        json_data: Any = None,
        params: dict[str, Any] | None = None,
        diagnose: bool = True,
    ) -> Any:
        """One round-trip: warm up, send, triage status, decode."""
        await self._cookies.ensure_ready()

        kwargs: dict[str, Any] = {"params": params, "headers": self._headers()}
        if json_data is not None:
            kwargs["content"] = json.dumps(json_data).encode()
        logger.debug("%s %s%s", method, self.base_url, path)
        if json_data is not None:
            logger.debug("Request body: %s", kwargs["content"].decode())

        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise NetworkError(str(e) or type(e).__name__) from e

        if resp.status_code >= 400:
            await self._raise_for_status(resp, diagnose=diagnose)
        return self._decode(resp)

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        if resp.status_code == 204 or not resp.content:
            return None

        content_type = resp.headers.get("content-type", "")
        if "text/html" in content_type:
            msg = "Unexpected HTML response (check host and authentication)"
            raise DecodeError(msg)

        try:
            return resp.json()
        except json.JSONDecodeError as e:
            raise DecodeError(f"failed to decode response: {e}") from e

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            data = resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return ""
        if not isinstance(data, dict):
            return ""
        for key in ("message", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
        return ""

    async def _raise_for_status(self, resp: httpx.Response, *, diagnose: bool) -> None:
        body = resp.text
        status = resp.status_code
        request_id = resp.headers.get("x-request-id")
        logger.debug("Response status: %d", status)
        logger.debug("Response body: %s", body)

        if status == 401:
            raise UnauthorizedError(self._error_message(resp), request_id)
        if status == 403:
            if ANTI_BOT_SIGNATURE in body:
                await self._cookies.reset()
                raise AntiBotBlockError
            if diagnose and resp.request.url.path.endswith(USER_ME_PATH):
                raise TokenInvalidError
            if diagnose:
                raise await self.diagnose_forbidden(request_id)
            raise ForbiddenError(self._error_message(resp), request_id)
        if status == 404:
            raise NotFoundError(self._error_message(resp), request_id)
        if status == 405:
            raise MethodNotAllowedError(self._error_message(resp), request_id)
        raise ForgeApiError(status, self._error_message(resp), request_id)

    # ── Retry & recovery ──────────────────────────────────────────

    def backoff_delay(self, attempt: int) -> float:
        """Wait before retry *attempt* (1-based): base, 2x base, 4x base..."""
        return self.config.retry_base_wait * (2 ** (attempt - 1))

    async def _with_retry(self, op: Callable[[], Awaitable[T]]) -> T:
        anti_bot_retried = False
        attempt = 0
        while True:
            try:
                return await op()
            except NetworkError as e:
                if attempt >= self.config.max_retries:
                    raise
                logger.debug("Network error on attempt %d: %s", attempt + 1, e)
            except AntiBotBlockError:
                if anti_bot_retried or attempt >= self.config.max_retries:
                    raise
                anti_bot_retried = True
                logger.debug("Blocked by anti-bot edge; retrying with fresh cookies")
            attempt += 1
            delay = self.backoff_delay(attempt)
            logger.debug("Retry %d/%d in %.1fs", attempt, self.config.max_retries, delay)
            await asyncio.sleep(delay)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_data: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make an API request and return the parsed JSON body (None for 204)."""
        method = method.upper()
        return await self._with_retry(
            lambda: self._send_once(method, path, json_data=json_data, params=params)
        )

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json_data: Any = None, **kwargs: Any) -> Any:
        return await self.request("POST", path, json_data=json_data, **kwargs)

    async def put(self, path: str, json_data: Any = None, **kwargs: Any) -> Any:
        return await self.request("PUT", path, json_data=json_data, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)

    # ── Uploads & downloads ───────────────────────────────────────

    async def upload(
        self,
        path: str,
        field_name: str,
        filename: str,
        data: IO[bytes] | bytes,
    ) -> Any:
        """POST a single-file multipart form. Runs under the caller's deadline."""
        await self._cookies.ensure_ready()
        logger.debug("POST (upload) %s%s field=%s file=%s", self.base_url, path, field_name, filename)
        try:
            resp = await self._http.post(
                path,
                files={field_name: (safe_filename(filename), data)},
                headers=self._headers(content_type=None),
                timeout=None,
            )
        except httpx.TransportError as e:
            raise NetworkError(str(e) or type(e).__name__) from e
        if resp.status_code >= 400:
            await self._raise_for_status(resp, diagnose=True)
        return self._decode(resp)

    async def _open_download(self, path: str, params: dict[str, Any] | None) -> Download:
        await self._cookies.ensure_ready()
        logger.debug("GET (download) %s%s", self.base_url, path)
        headers = self._headers(content_type=None)
        headers["Accept"] = "*/*"
        request = self._http.build_request("GET", path, params=params, headers=headers, timeout=None)
        try:
            resp = await self._http.send(request, stream=True)
        except httpx.TransportError as e:
            raise NetworkError(str(e) or type(e).__name__) from e
        if resp.status_code >= 400:
            await resp.aread()
            await resp.aclose()
            await self._raise_for_status(resp, diagnose=True)
        filename = filename_from_disposition(resp.headers.get("content-disposition"))
        return Download(resp, filename)

    async def download(self, path: str, params: dict[str, Any] | None = None) -> Download:
        """Open a streamed GET. The caller must close the returned Download."""
        return await self._with_retry(lambda: self._open_download(path, params))

    # ── 403 diagnosis ─────────────────────────────────────────────

    async def validate_token(self) -> None:
        """Check ``/user/me`` without diagnosis. Raises TokenInvalidError on 401/403."""
        try:
            await self._send_once("GET", USER_ME_PATH, diagnose=False)
        except (UnauthorizedError, ForbiddenError) as e:
            raise TokenInvalidError from e

    async def diagnose_forbidden(self, request_id: str | None = None) -> ForgeError:
        """Tell an invalid token apart from a permission denial."""
        try:
            await self.validate_token()
        except TokenInvalidError as e:
            return e
        except ForgeError as e:
            logger.debug("Token check inconclusive: %s", e)
        return ForbiddenError(request_id=request_id)

    # ── Services ──────────────────────────────────────────────────

    @property
    def users(self) -> UserService:
        return UserService(self)

    @property
    def projects(self) -> ProjectService:
        return ProjectService(self)

    @property
    def merge_requests(self) -> MergeRequestService:
        return MergeRequestService(self)

    @property
    def issues(self) -> IssueService:
        return IssueService(self)

    @property
    def pipelines(self) -> PipelineService:
        return PipelineService(self)

    @property
    def releases(self) -> ReleaseService:
        return ReleaseService(self)

    @property
    def branches(self) -> BranchService:
        return BranchService(self)

    @property
    def tags(self) -> TagService:
        return TagService(self)

    @property
    def commits(self) -> CommitService:
        return CommitService(self)

    @property
    def files(self) -> FileService:
        return FileService(self)

    @property
    def webhooks(self) -> WebhookService:
        return WebhookService(self)
