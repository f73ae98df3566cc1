from pathlib import Path

from api_doc_generator.core.analyzer import analyze
from api_doc_generator.core.conventions import GIN_CONVENTIONS, FrameworkConventions
from api_doc_generator.openapi import Document, Info


class GinParser:
    """Implements the ``FrameworkParser`` protocol for gin projects."""

    name = "Gin Framework Parser"
    language = "go-gin"

    def __init__(self, conventions: FrameworkConventions = GIN_CONVENTIONS, info: Info | None = None) -> None:
        self.conventions = conventions
        self.info = info

    def analyze(self, project_path: str | Path) -> Document:
        return analyze(project_path, self.conventions, self.info)
