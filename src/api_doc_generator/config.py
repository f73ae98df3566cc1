import os

from api_doc_generator.core.conventions import GIN_CONVENTIONS, FrameworkConventions
from api_doc_generator.openapi import Info

DEFAULT_TITLE = "Auto-Generated API Documentation"
DEFAULT_DESCRIPTION = "Generated from code analysis"
DEFAULT_VERSION = "1.0.0"


def get_document_info() -> Info:
    return Info(
        title=os.getenv("API_DOC_TITLE", DEFAULT_TITLE),
        description=os.getenv("API_DOC_DESCRIPTION", DEFAULT_DESCRIPTION),
        version=os.getenv("API_DOC_VERSION", DEFAULT_VERSION),
    )


def get_conventions() -> FrameworkConventions:
    skip_prefixes = os.getenv("API_DOC_SKIP_PREFIXES")
    if skip_prefixes is None:
        return GIN_CONVENTIONS
    prefixes = tuple(prefix.strip() for prefix in skip_prefixes.split(",") if prefix.strip())
    return GIN_CONVENTIONS.model_copy(update={"tag_skip_prefixes": prefixes})
