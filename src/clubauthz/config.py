from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger("clubauthz.config")

_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class AuthorizerConfig:
    """Wiring options for :func:`build_authorizer`."""

    rules_path: Optional[str] = None  # JSON/YAML permission document; club rules when unset
    store_url: Optional[str] = None  # legacy REST API base, e.g. "http://localhost:5000/api"
    store_token: Optional[str] = None
    fetch_timeout: Optional[float] = 2.0
    audit_json: bool = True
    audit_sample_rate: float = 1.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AuthorizerConfig":
        env = os.environ if environ is None else environ
        timeout_raw = env.get("CLUBAUTHZ_FETCH_TIMEOUT")
        return cls(
            rules_path=env.get("CLUBAUTHZ_RULES_PATH") or None,
            store_url=env.get("CLUBAUTHZ_STORE_URL") or None,
            store_token=env.get("CLUBAUTHZ_STORE_TOKEN") or None,
            fetch_timeout=float(timeout_raw) if timeout_raw else cls.fetch_timeout,
            audit_json=env.get("CLUBAUTHZ_AUDIT_JSON", "true").strip().lower() in _TRUE,
            audit_sample_rate=float(env.get("CLUBAUTHZ_AUDIT_SAMPLE_RATE", "1.0")),
        )


def build_authorizer(config: Optional[AuthorizerConfig] = None, *, store=None, metrics=None):
    """Create an Authorizer from ``config`` (defaults to environment variables)."""
    from .club.rules import build_rule_table
    from .core.engine import Authorizer
    from .logging.decision_logger import DecisionLogger
    from .policy.loader import load_rules
    from .store.http_store import HTTPRecordStore

    cfg = config or AuthorizerConfig.from_env()
    rules = load_rules(cfg.rules_path) if cfg.rules_path else build_rule_table()
    if store is None and cfg.store_url:
        store = HTTPRecordStore(cfg.store_url, token=cfg.store_token, timeout=cfg.fetch_timeout or 2.0)
    if store is None:
        logger.warning("clubauthz: no record store configured; only literal rules can allow")
    audit = DecisionLogger(as_json=cfg.audit_json, sample_rate=cfg.audit_sample_rate)
    return Authorizer(
        rules,
        store,
        logger_sink=audit,
        metrics=metrics,
        fetch_timeout=cfg.fetch_timeout,
    )
