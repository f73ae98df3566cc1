from pathlib import Path
from typing import Protocol

from api_doc_generator.openapi import Document


class FrameworkParser(Protocol):
    name: str
    language: str

    def analyze(self, project_path: str | Path) -> Document: ...
