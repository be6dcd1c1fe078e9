from contextvars import ContextVar

from .model import Record

# Records fetched during the current authorize() call, keyed by (entity, id).
# Reset per call so roles and links are always read fresh.
EVAL_RECORDS: ContextVar[dict[tuple[str, str], Record | None] | None] = ContextVar(
    "clubauthz_eval_records", default=None
)
