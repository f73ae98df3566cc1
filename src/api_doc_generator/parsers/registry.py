from api_doc_generator.core.ports.parser import FrameworkParser


class ParserRegistry:
    def __init__(self) -> None:
        self._parsers: dict[str, FrameworkParser] = {}

    def register(self, key: str, parser: FrameworkParser) -> None:
        self._parsers[key] = parser

    def get(self, key: str) -> FrameworkParser:
        try:
            return self._parsers[key]
        except KeyError:
            raise KeyError(f"Parser not found: {key}") from None

    def list(self) -> list[str]:
        return sorted(self._parsers)
