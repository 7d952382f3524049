"""gf configuration: on-disk host registry and client settings."""

from __future__ import annotations

import ipaddress
import json
import os
import socket
from dataclasses import asdict, dataclass, field
from pathlib import Path

from .exceptions import NoTokenError

DEFAULT_HOST = "gitflic.ru"
CLOUD_API_URL = f"https://api.{DEFAULT_HOST}"

CONFIG_DIR = ".gf"
CONFIG_FILE = "config.json"


def base_url(hostname: str) -> str:
    """API base URL for a host: the cloud API subdomain, or ``/rest-api`` when self-hosted."""
    if hostname == DEFAULT_HOST:
        return CLOUD_API_URL
    return f"https://{hostname}/rest-api"


def config_path() -> Path:
    return Path.home() / CONFIG_DIR / CONFIG_FILE


def is_internal_host(hostname: str) -> bool:
    """Loopback, private, link-local or unspecified address, or ``localhost``.

    Names are resolved; a name that does not resolve counts as external.
    """
    host = hostname
    if host.startswith("[") and "]" in host:
        host = host[1 : host.index("]")]
    elif host.count(":") == 1:
        host = host.split(":", 1)[0]
    if host == "localhost":
        return True
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        try:
            ip = ipaddress.ip_address(socket.gethostbyname(host))
        except (OSError, ValueError):
            return False
    return ip.is_loopback or ip.is_private or ip.is_link_local or ip.is_unspecified


def _env_flag(name: str) -> bool:
    return os.getenv(name, "") != ""


@dataclass
class HostEntry:
    token: str = ""
    user: str = ""
    protocol: str = "https"


@dataclass
class ConfigFile:
    """The ``~/.gf/config.json`` document."""

    version: int = 1
    active_host: str = DEFAULT_HOST
    hosts: dict[str, HostEntry] = field(default_factory=dict)
    path: Path | None = field(default=None, repr=False, compare=False)

    @classmethod
    def load(cls, path: Path | None = None) -> ConfigFile:
        path = path or config_path()
        if not path.exists():
            return cls(path=path)
        data = json.loads(path.read_text(encoding="utf-8"))
        hosts = {
            name: HostEntry(
                token=entry.get("token", ""),
                user=entry.get("user", ""),
                protocol=entry.get("protocol") or "https",
            )
            for name, entry in (data.get("hosts") or {}).items()
        }
        return cls(
            version=data.get("version", 1),
            active_host=data.get("active_host") or DEFAULT_HOST,
            hosts=hosts,
            path=path,
        )

    def save(self) -> Path:
        path = self.path or config_path()
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        os.chmod(path.parent, 0o700)
        doc = {
            "version": self.version,
            "active_host": self.active_host,
            "hosts": {name: asdict(entry) for name, entry in self.hosts.items()},
        }
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(doc, fh, indent=2)
        os.chmod(path, 0o600)
        self.path = path
        return path

    def host_entry(self, hostname: str | None = None) -> HostEntry | None:
        return self.hosts.get(hostname or self.active_host or DEFAULT_HOST)

    def set_host(self, hostname: str, entry: HostEntry) -> None:
        self.hosts[hostname] = entry

    def remove_host(self, hostname: str) -> bool:
        removed = self.hosts.pop(hostname, None) is not None
        if removed and self.active_host == hostname:
            self.active_host = next(iter(self.hosts), DEFAULT_HOST)
        return removed

    def token(self, hostname: str | None = None) -> str:
        """Token for a host. ``GF_TOKEN`` wins over the file."""
        env_token = os.getenv("GF_TOKEN", "")
        if env_token:
            return env_token
        entry = self.host_entry(hostname)
        if entry is None or not entry.token:
            raise NoTokenError(hostname or self.active_host)
        return entry.token


@dataclass
class ForgeConfig:
    """Settings consumed by ForgeClient."""

    host: str = DEFAULT_HOST
    token: str = ""
    timeout: float = 30
    max_retries: int = 3
    retry_base_wait: float = 0.5
    debug: bool = False
    url: str = ""

    @classmethod
    def from_env(cls, hostname: str | None = None, path: Path | None = None) -> ForgeConfig:
        cfg = ConfigFile.load(path)
        host = hostname or os.getenv("GF_HOST", "") or cfg.active_host or DEFAULT_HOST
        try:
            token = cfg.token(host)
        except NoTokenError:
            token = ""
        return cls(
            host=host,
            token=token,
            timeout=float(os.getenv("GF_TIMEOUT", "30")),
            debug=_env_flag("GF_DEBUG"),
        )

    @property
    def api_url(self) -> str:
        return (self.url or base_url(self.host)).rstrip("/")

    @property
    def is_cloud(self) -> bool:
        return DEFAULT_HOST in self.api_url

    def validate(self) -> None:
        if not self.host and not self.url:
            msg = "a Forge host is required (set GF_HOST or run 'gf auth login')"
            raise ValueError(msg)
