# abifetch/models.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from abifetch.errors import ConfigError

DEFAULT_RETRIES    = 3
DEFAULT_BACKOFF_MS = 3000

# keys accepted by RequestSpec.from_mapping; backoff_ms is an alias of backoffMs
_RECOGNIZED = {"url", "retries", "backoffMs", "backoff_ms", "options"}


def _as_int(name: str, value) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


@dataclass(frozen=True)
class RequestSpec:
    url: str
    options: Dict[str, Any] = field(default_factory=dict)
    retries: int = DEFAULT_RETRIES
    backoff_ms: int = DEFAULT_BACKOFF_MS

    def __post_init__(self):
        if not self.url:
            raise ConfigError("url is required")
        if self.retries < 1:
            raise ConfigError(f"retries must be >= 1, got {self.retries}")
        if self.backoff_ms < 0:
            raise ConfigError(f"backoffMs must be >= 0, got {self.backoff_ms}")

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> "RequestSpec":
        unknown = set(cfg) - _RECOGNIZED
        if unknown:
            raise ConfigError(f"Unrecognized request options: {', '.join(sorted(unknown))}")

        backoff = cfg.get("backoffMs", cfg.get("backoff_ms", DEFAULT_BACKOFF_MS))
        return cls(
            url=cfg.get("url") or "",
            options=dict(cfg.get("options") or {}),
            retries=_as_int("retries", cfg.get("retries", DEFAULT_RETRIES)),
            backoff_ms=_as_int("backoffMs", backoff),
        )


@dataclass(frozen=True)
class AttemptResult:
    attempt: int                  # 1-based
    body:  Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class Campaign:
    campaign_id: int
    owner: str
    title: str
    description: str
    target: int                   # wei
    deadline: int                 # unix seconds
    image: str
    donators:  List[str] = field(default_factory=list)
    donations: List[int] = field(default_factory=list)

    @property
    def amount_collected(self) -> int:
        return sum(self.donations)

    def progress(self) -> float:
        return 0.0 if self.target == 0 else self.amount_collected / self.target
