import logging
from pathlib import Path

from api_doc_generator.config import get_document_info
from api_doc_generator.core.assembler import DocumentAssembler
from api_doc_generator.core.ast import GoParseError, SyntaxTree, parse
from api_doc_generator.core.conventions import GIN_CONVENTIONS, FrameworkConventions
from api_doc_generator.core.handlers import analyze_handlers
from api_doc_generator.core.routes import extract_routes
from api_doc_generator.core.services import ServiceAnalyzer
from api_doc_generator.core.sources import discover_source_files
from api_doc_generator.core.structs import StructAnalyzer
from api_doc_generator.models import HandlerInfo, RouteInfo
from api_doc_generator.openapi import Document, Info

logger = logging.getLogger(__name__)


class ProjectAnalyzer:
    """Owns all state of one analysis run over a project tree.

    Pass 1 extracts struct schemas, service functions and handlers from every file;
    embedded fields are expanded once all files are seen. Pass 2 reparses the files,
    extracts routes and assembles the document.
    """

    def __init__(self, conventions: FrameworkConventions = GIN_CONVENTIONS, info: Info | None = None) -> None:
        self.conventions = conventions
        self.info = info
        self._reset()

    def _reset(self) -> None:
        self.structs = StructAnalyzer(self.conventions)
        self.services = ServiceAnalyzer(self.conventions)
        self.handlers: dict[str, HandlerInfo] = {}
        self.routes: list[RouteInfo] = []
        self.skipped: list[Path] = []

    def analyze(self, root: str | Path) -> Document:
        root_path = Path(root)
        if not root_path.exists():
            raise FileNotFoundError(f"Project root not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Project root is not a directory: {root}")

        self._reset()
        files = discover_source_files(root_path, self.conventions)
        logger.info("Analyzing %d source file(s) under %s", len(files), root_path)

        for path in files:
            tree = self._parse(path, root_path)
            if tree is not None:
                self._analyze_declarations(tree)
        self.structs.expand_embedded_fields()

        assembler = DocumentAssembler(
            self.structs,
            self.handlers,
            self.services,
            self.conventions,
            self.info or get_document_info(),
        )
        for path in files:
            tree = self._parse(path, root_path, record=False)
            if tree is None:
                continue
            for route in extract_routes(tree, self.conventions):
                self.routes.append(assembler.add_route(route))

        logger.info(
            "Extracted %d route(s), %d schema(s), %d handler(s)",
            len(self.routes),
            len(self.structs.schemas),
            len(self.handlers),
        )
        return assembler.document

    def _parse(self, path: Path, root: Path, record: bool = True) -> SyntaxTree | None:
        try:
            return parse(path, path.relative_to(root))
        except GoParseError as exc:
            if record:
                logger.warning("Skipping %s: %s", path, exc)
                self.skipped.append(path)
            return None

    def _analyze_declarations(self, tree: SyntaxTree) -> None:
        layer = self.conventions.layer_for(tree.relative_path)
        self.structs.analyze_file(tree, layer)

        package = self.conventions.service_package_for(tree.relative_path)
        if package is not None:
            self.services.analyze_file(tree, package)

        self.handlers.update(analyze_handlers(tree, self.conventions))


def analyze(
    root: str | Path,
    conventions: FrameworkConventions | None = None,
    info: Info | None = None,
) -> Document:
    """Analyze a Go project and return its OpenAPI document."""
    return ProjectAnalyzer(conventions or GIN_CONVENTIONS, info).analyze(root)
