from .loader import FileRuleSource, load_rules, parse_rules_text
from .validate import DOCUMENT_SCHEMA, document_errors, validate_document

__all__ = [
    "DOCUMENT_SCHEMA",
    "FileRuleSource",
    "document_errors",
    "load_rules",
    "parse_rules_text",
    "validate_document",
]
