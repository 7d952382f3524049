"""Local git helpers: repository detection and name validation.

Every value that reaches a ``git`` subprocess or a URL path is validated here
first.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from dataclasses import dataclass

from .config import DEFAULT_HOST
from .exceptions import ForgeError

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 10
FETCH_TIMEOUT = 120
CLONE_TIMEOUT = 600

_NAME_RE = re.compile(r"^[a-zA-Z0-9][-a-zA-Z0-9_.]*$")
_HOST_RE = re.compile(r"^[a-zA-Z0-9][-a-zA-Z0-9.]*[a-zA-Z0-9](?::\d+)?$")
_REF_FORBIDDEN_RE = re.compile(r"[\x00-\x20\x7f~^:?*\[\\]|\.\.|@\{|//")

_REMOTE_PATTERNS = (
    # https://host/project/owner/repo.git
    re.compile(r"https?://([^/]+)/project/([^/]+)/([^/]+?)(?:\.git)?/?$"),
    # https://host/owner/repo.git
    re.compile(r"https?://([^/]+)/([^/]+)/([^/]+?)(?:\.git)?/?$"),
    # git@host:owner/repo.git
    re.compile(r"git@([^:]+):([^/]+)/([^/]+?)(?:\.git)?$"),
    # ssh://git@host[:port]/owner/repo.git
    re.compile(r"ssh://git@([^/]+)/([^/]+)/([^/]+?)(?:\.git)?$"),
)


class GitError(ForgeError):
    """Raised for local git failures and invalid repository names."""


@dataclass(frozen=True)
class Repository:
    host: str
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


def validate_name(name: str) -> None:
    """Owner and project names: no separators, no dot segments."""
    if name in ("", ".", "..") or "/" in name or "\\" in name or not _NAME_RE.match(name):
        msg = f"invalid owner or repository name: {name!r}"
        raise GitError(msg)


def validate_host(host: str) -> None:
    bare = host.split(":", 1)[0]
    if (
        host in ("", ".", "..")
        or host.startswith(("-", "."))
        or ("." not in bare and bare != "localhost")
        or not _HOST_RE.match(host)
    ):
        msg = f"invalid hostname: {host!r}"
        raise GitError(msg)


def validate_ref(ref: str) -> None:
    """Branch and tag names, following ``git check-ref-format`` rules."""
    if (
        not ref
        or ref.startswith(("-", "/", "."))
        or ref.endswith(("/", ".", ".lock"))
        or ref == "@"
        or _REF_FORBIDDEN_RE.search(ref)
    ):
        msg = f"invalid branch or tag name: {ref!r}"
        raise GitError(msg)


def parse_remote_url(url: str) -> Repository:
    url = url.strip()
    for pattern in _REMOTE_PATTERNS:
        m = pattern.match(url)
        if m:
            host, owner, name = m.groups()
            return Repository(host=host, owner=owner, name=name.removesuffix(".git"))
    msg = f"could not determine repository from remote {url!r}"
    raise GitError(msg)


def parse_repo_flag(value: str, default_host: str = DEFAULT_HOST) -> Repository:
    """Parse ``owner/repo`` or ``host/owner/repo``."""
    parts = value.split("/")
    if len(parts) == 2:
        owner, name = parts
        host = default_host or DEFAULT_HOST
    elif len(parts) == 3:
        host, owner, name = parts
        validate_host(host)
    else:
        msg = "invalid repository format, expected owner/repo or host/owner/repo"
        raise GitError(msg)
    validate_name(owner)
    validate_name(name)
    return Repository(host=host, owner=owner, name=name)


def run_git(*args: str) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise GitError("git command timed out") from e
    except FileNotFoundError as e:
        raise GitError("git executable not found") from e
    if result.returncode != 0:
        logger.debug("git %s failed: %s", " ".join(args), result.stderr.strip())
        raise GitError("not a git repository (or any of the parent directories)")
    return result.stdout.strip()


def stream_git(*args: str, timeout: float = FETCH_TIMEOUT) -> None:
    """Run a long git command with its output going straight to the terminal."""
    try:
        result = subprocess.run(["git", *args], timeout=timeout, check=False)
    except subprocess.TimeoutExpired as e:
        msg = f"git {args[0]} timed out after {int(timeout)}s"
        raise GitError(msg) from e
    except FileNotFoundError as e:
        raise GitError("git executable not found") from e
    if result.returncode != 0:
        msg = f"git {args[0]} failed with exit code {result.returncode}"
        raise GitError(msg)


def detect_repo() -> Repository:
    """``GF_REPO`` first, then the ``origin`` remote."""
    env_repo = os.getenv("GF_REPO", "")
    if env_repo:
        return parse_repo_flag(env_repo, DEFAULT_HOST)
    repo = parse_remote_url(run_git("remote", "get-url", "origin"))
    validate_name(repo.owner)
    validate_name(repo.name)
    return repo


def resolve_repo(repo_flag: str | None, default_host: str = DEFAULT_HOST) -> Repository:
    if repo_flag:
        return parse_repo_flag(repo_flag, default_host)
    return detect_repo()


def current_branch() -> str:
    return run_git("rev-parse", "--abbrev-ref", "HEAD")


def default_branch() -> str:
    try:
        ref = run_git("symbolic-ref", "refs/remotes/origin/HEAD")
        return ref.rsplit("/", 1)[-1]
    except GitError:
        pass
    for branch in ("main", "master"):
        try:
            run_git("rev-parse", "--verify", f"refs/heads/{branch}")
        except GitError:
            continue
        return branch
    return "main"
