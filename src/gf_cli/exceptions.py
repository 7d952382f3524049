"""Forge API exceptions and classifier predicates."""

from __future__ import annotations

from collections.abc import Iterator


class ForgeError(Exception):
    """Base exception for Forge operations."""


class ForgeApiError(ForgeError):
    """Raised when the Forge API returns a non-success response."""

    default_message = ""

    def __init__(
        self,
        status_code: int,
        message: str = "",
        request_id: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.request_id = request_id
        super().__init__(self._render())

    def _render(self) -> str:
        if self.default_message:
            return self.default_message
        if self.message:
            return f"API error {self.status_code}: {self.message}"
        return f"API error {self.status_code}"


class UnauthorizedError(ForgeApiError):
    """Raised on 401 responses."""

    default_message = "unauthorized: run 'gf auth login' to authenticate"

    def __init__(self, message: str = "", request_id: str | None = None) -> None:
        super().__init__(401, message, request_id)


class ForbiddenError(ForgeApiError):
    """Raised on 403 responses when the token itself is valid."""

    default_message = "forbidden: you don't have permission to access this resource"

    def __init__(self, message: str = "", request_id: str | None = None) -> None:
        super().__init__(403, message, request_id)


class NotFoundError(ForgeApiError):
    """Raised on 404 responses and on list lookups that find nothing."""

    def __init__(self, message: str = "", request_id: str | None = None) -> None:
        super().__init__(404, message, request_id)

    def _render(self) -> str:
        return f"not found: {self.message}" if self.message else "not found"


class MethodNotAllowedError(ForgeApiError):
    """Raised on 405 responses."""

    default_message = "method not allowed: this operation is not supported by the server"

    def __init__(self, message: str = "", request_id: str | None = None) -> None:
        super().__init__(405, message, request_id)


class TokenInvalidError(ForgeError):
    """Raised when the account-level token check rejects the token."""

    def __init__(self) -> None:
        super().__init__("token expired or invalid: run 'gf auth login' to re-authenticate")


class NetworkError(ForgeError):
    """Raised on transport-level failures. Retriable."""

    def __init__(self, detail: str = "") -> None:
        msg = "network error: check your connection"
        super().__init__(f"{msg} ({detail})" if detail else msg)


class AntiBotBlockError(ForgeError):
    """Raised when the anti-bot intermediary refuses a call."""

    def __init__(self) -> None:
        super().__init__("blocked by DDoS protection: retrying with fresh cookies")


class DecodeError(ForgeError):
    """Raised when a success response cannot be decoded."""


class NoTokenError(ForgeError):
    """Raised when no token is configured for the active host."""

    def __init__(self, host: str = "") -> None:
        where = f" for {host}" if host else ""
        super().__init__(f"not authenticated{where}: run 'gf auth login' first")


class ExitError(ForgeError):
    """Carries a process exit code out to the command boundary."""

    def __init__(self, code: int) -> None:
        self.code = code
        super().__init__(f"exit status {code}")


# ── Predicates ────────────────────────────────────────────────


def _chain(err: BaseException | None) -> Iterator[BaseException]:
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        err = err.__cause__


def _matches(err: BaseException | None, cls: type[BaseException], status: int | None) -> bool:
    for e in _chain(err):
        if isinstance(e, cls):
            return True
        if status is not None and isinstance(e, ForgeApiError) and e.status_code == status:
            return True
    return False


def is_unauthorized(err: BaseException | None) -> bool:
    return _matches(err, UnauthorizedError, 401)


def is_forbidden(err: BaseException | None) -> bool:
    return _matches(err, ForbiddenError, 403)


def is_not_found(err: BaseException | None) -> bool:
    return _matches(err, NotFoundError, 404)


def is_method_not_allowed(err: BaseException | None) -> bool:
    return _matches(err, MethodNotAllowedError, 405)


def is_token_invalid(err: BaseException | None) -> bool:
    return _matches(err, TokenInvalidError, None)


def is_network_error(err: BaseException | None) -> bool:
    return _matches(err, NetworkError, None)


def is_anti_bot_block(err: BaseException | None) -> bool:
    return _matches(err, AntiBotBlockError, None)


def is_exit_error(err: BaseException | None) -> bool:
    return _matches(err, ExitError, None)


def exit_code(err: BaseException | None) -> int:
    """Return the carried code for an ExitError, otherwise 1."""
    for e in _chain(err):
        if isinstance(e, ExitError):
            return e.code
    return 1
