from api_doc_generator.core.conventions import GIN_CONVENTIONS, FrameworkConventions
from api_doc_generator.openapi import Info
from api_doc_generator.parsers.gin import GinParser
from api_doc_generator.parsers.registry import ParserRegistry


def default_registry(conventions: FrameworkConventions | None = None, info: Info | None = None) -> ParserRegistry:
    registry = ParserRegistry()
    registry.register(GinParser.language, GinParser(conventions or GIN_CONVENTIONS, info))
    return registry


__all__ = [
    "GinParser",
    "ParserRegistry",
    "default_registry",
]
