from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional


@dataclass(frozen=True)
class ProxyConfig:
    """Process-wide proxy settings, built once at startup and never mutated."""

    allowed_hosts: Optional[FrozenSet[str]] = None
    retry_count: int = 3
    retry_delay_ms: int = 200
    timeout: Optional[float] = 30.0

    @classmethod
    def create(
        cls,
        allowed_hosts: Optional[Iterable[str]] = None,
        retry_count: int = 3,
        retry_delay_ms: int = 200,
        timeout: Optional[float] = 30.0,
    ) -> "ProxyConfig":
        hosts = frozenset(h.strip().lower() for h in allowed_hosts or () if h.strip())
        return cls(
            allowed_hosts=hosts or None,
            retry_count=max(retry_count, 0),
            retry_delay_ms=max(retry_delay_ms, 0),
            timeout=timeout if timeout else None,
        )

    @classmethod
    def from_env(cls) -> "ProxyConfig":
        # Imported here so tests can reload app.vars with a patched environment
        from app import vars as env

        return cls.create(
            allowed_hosts=env.ALLOWED_HOSTS,
            retry_count=env.PROXY_RETRY_COUNT,
            retry_delay_ms=env.PROXY_RETRY_DELAY_MS,
            timeout=env.PROXY_TIMEOUT,
        )

    @property
    def whitelist_enabled(self) -> bool:
        return bool(self.allowed_hosts)
