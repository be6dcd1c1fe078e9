from __future__ import annotations

import json
import logging
import random
from typing import Any, Dict, Iterable, Optional

from ..core.ports import DecisionLogSink

DEFAULT_REDACT_FIELDS = ("identity", "target")


def redact(payload: Dict[str, Any], fields: Iterable[str], placeholder: str = "[REDACTED]") -> Dict[str, Any]:
    out = dict(payload)
    for name in fields:
        if name in out and out[name] is not None:
            out[name] = placeholder
    return out


class DecisionLogger(DecisionLogSink):
    """Audit sink that writes one line per decision to the ``clubauthz.audit`` logger.

    Denials carry the internal reason here only; adapters never show it to callers.

    Args:
        sample_rate: probability in [0, 1] that a decision is logged.
        deny_sample_rate: optional separate rate for denials (e.g. 1.0 to keep all).
        level: logging level for emitted records.
        as_json: emit ``json.dumps(payload)`` instead of ``"decision <dict>"``.
        redact_fields: payload keys whose values are replaced before emitting.
        use_default_redactions: redact identity and target ids when
            ``redact_fields`` is not given.
    """

    def __init__(
        self,
        *,
        sample_rate: float = 1.0,
        deny_sample_rate: Optional[float] = None,
        level: int = logging.INFO,
        as_json: bool = False,
        redact_fields: Optional[Iterable[str]] = None,
        use_default_redactions: bool = False,
    ) -> None:
        self.sample_rate = float(sample_rate)
        self.deny_sample_rate = None if deny_sample_rate is None else float(deny_sample_rate)
        self.level = level
        self.as_json = as_json
        if redact_fields is None and use_default_redactions:
            redact_fields = DEFAULT_REDACT_FIELDS
        self.redact_fields = tuple(redact_fields or ())
        self.logger = logging.getLogger("clubauthz.audit")

    def _rate_for(self, payload: Dict[str, Any]) -> float:
        if self.deny_sample_rate is not None and not payload.get("allowed", False):
            return self.deny_sample_rate
        return self.sample_rate

    def log(self, payload: Dict[str, Any]) -> None:
        rate = self._rate_for(payload)
        if rate <= 0.0:
            return
        if rate < 1.0 and random.random() > rate:
            return

        safe = payload
        if self.redact_fields:
            try:
                safe = redact(payload, self.redact_fields)
            except Exception:
                logging.getLogger("clubauthz.engine").debug(
                    "clubauthz: redaction failed", exc_info=True
                )
                safe = payload

        if self.as_json:
            msg = json.dumps(safe, ensure_ascii=False)
        else:
            msg = f"decision {safe}"
        self.logger.log(self.level, msg)
