"""Tree-sitter parser for multi-language code analysis."""
from pathlib import Path
from typing import Optional
from tree_sitter import Language, Parser, Tree
import tree_sitter_python as tspython
import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript


class LanguageParser:
    """Multi-language parser using tree-sitter v0.22+ API."""

    SUPPORTED_LANGUAGES = {
        '.py': 'python',
        '.js': 'javascript',
        '.jsx': 'javascript',
        '.mjs': 'javascript',
        '.cjs': 'javascript',
        '.ts': 'typescript',
        '.tsx': 'tsx',
    }

    def __init__(self, language: str):
        """Initialize parser for given language (python, javascript, typescript, tsx).

        Args:
            language: One of 'python', 'javascript', 'typescript', 'tsx'

        Raises:
            ValueError: If language is not supported
        """
        self.language = language
        self.parser = self._create_parser()

    def _create_parser(self) -> Parser:
        """Factory method using tree-sitter v0.25+ API.

        Returns:
            Configured Parser instance

        Raises:
            ValueError: If language is not supported
        """
        if self.language == 'python':
            lang = Language(tspython.language())
        elif self.language == 'javascript':
            lang = Language(tsjavascript.language())
        elif self.language == 'typescript':
            lang = Language(tstypescript.language_typescript())
        elif self.language == 'tsx':
            # TSX needs its own grammar: the plain TypeScript one rejects JSX
            lang = Language(tstypescript.language_tsx())
        else:
            raise ValueError(f"Unsupported language: {self.language}")

        # v0.25+ API: Pass language to Parser constructor
        return Parser(lang)

    def parse_source(self, source_code: bytes) -> Tree:
        """Parse in-memory source code.

        Args:
            source_code: Source bytes

        Returns:
            Parsed Tree object (may contain ERROR nodes)
        """
        return self.parser.parse(source_code)

    @classmethod
    def language_for(cls, file_path: str | Path) -> Optional[str]:
        """Return the language name for a file extension, or None."""
        return cls.SUPPORTED_LANGUAGES.get(Path(file_path).suffix.lower())

