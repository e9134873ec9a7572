"""Run unused-result rules over a project.

This is the rule-execution layer around the core analysis: it discovers
source files, parses and lowers them, runs every active rule through the
UnusedCallCollector and turns the resulting Issues into Findings that carry
everything a report needs (position, callee, message).
"""
import hashlib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .cache import FindingsCache
from .lowering import lowerer_for
from .parser import LanguageParser
from .rules import Rule
from .syntax import Block
from .unused_calls import Issue, UnusedCallCollector, recursion_headroom


@dataclass
class Finding:
    """A reportable discarded result."""
    rule_id: str
    file_path: str
    line: int
    column: int
    callee: str
    function: str
    message: str

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> 'Finding':
        return cls(**data)


@dataclass
class AuditReport:
    """Outcome of one audit run."""
    findings: List[Finding] = field(default_factory=list)
    files_analyzed: int = 0
    files_from_cache: int = 0
    skipped_files: List[Tuple[str, str]] = field(default_factory=list)  # (path, reason)


class ProjectAuditor:
    """Discover, parse, lower and check source files."""

    # Vendored/generated code never worth checking
    EXCLUDED_DIRS = {
        'venv', '.venv', 'env', '.virtualenv',
        'vendor', 'extern', 'third_party', '_internal',
        '.tox', 'site-packages', 'dist', 'build', '__pycache__',
        'node_modules', '.git', '.result_janitor_cache',
    }

    def __init__(self, rules: Sequence[Rule], languages: Optional[Iterable[str]] = None,
                 excluded_dirs: Iterable[str] = (), cache: Optional[FindingsCache] = None):
        """Initialize auditor.

        Args:
            rules: Active rules
            languages: Languages to check (None checks every supported one)
            excluded_dirs: Extra directory names to skip
            cache: Optional findings cache
        """
        self.rules = list(rules)
        self.languages = self._expand_languages(languages)
        self.excluded_dirs = self.EXCLUDED_DIRS | set(excluded_dirs)
        self.cache = cache
        self.fingerprint = self.rules_fingerprint(self.rules)
        self._parsers: Dict[str, LanguageParser] = {}

    @staticmethod
    def _expand_languages(languages: Optional[Iterable[str]]) -> Optional[Set[str]]:
        if languages is None:
            return None
        expanded = set(languages)
        if 'typescript' in expanded:
            expanded.add('tsx')
        return expanded

    @staticmethod
    def rules_fingerprint(rules: Sequence[Rule]) -> str:
        """Hash of the rule set; cached findings are only valid for the same rules."""
        parts = []
        for rule in rules:
            targets = sorted(f"{language}={target}" for language, target in rule.targets.items())
            parts.append(f"{rule.id}:{'/'.join(targets)}")
        return hashlib.sha256("|".join(parts).encode()).hexdigest()

    def discover_files(self, paths: Iterable[str | Path]) -> List[Path]:
        """Expand files and directories into the sorted list of files to check."""
        found = set()
        for path in paths:
            path = Path(path)
            if path.is_file():
                if self._wanted(path):
                    found.add(path.resolve())
                continue
            for file_path in path.rglob('*'):
                if not file_path.is_file():
                    continue
                if any(part in self.excluded_dirs for part in file_path.relative_to(path).parts):
                    continue
                if self._wanted(file_path):
                    found.add(file_path.resolve())
        return sorted(found)

    def _wanted(self, file_path: Path) -> bool:
        language = LanguageParser.language_for(file_path)
        if language is None:
            return False
        return self.languages is None or language in self.languages

    def _parser(self, language: str) -> LanguageParser:
        if language not in self._parsers:
            self._parsers[language] = LanguageParser(language)
        return self._parsers[language]

    def lower_source(self, source_code: bytes, language: str) -> Optional[Block]:
        """Parse and lower source code.

        Returns:
            Lowered module Block, or None when the source has syntax errors
        """
        tree = self._parser(language).parse_source(source_code)
        if tree.root_node.has_error:
            return None
        with recursion_headroom():
            return lowerer_for(language).lower_tree(tree)

    def check_tree(self, tree: Block, language: str, file_path: str = '') -> List[Finding]:
        """Run every rule applicable to ``language`` over a lowered tree."""
        findings = []
        for rule in self.rules:
            target = rule.target_for(language)
            if target is None:
                continue
            for issue in UnusedCallCollector(target).collect(tree, file_path):
                findings.append(self._finding(rule, issue))
        return findings

    def check_source(self, source_code: bytes, language: str, file_path: str = '') -> Optional[List[Finding]]:
        """Check in-memory source. Returns None when it does not parse."""
        tree = self.lower_source(source_code, language)
        if tree is None:
            return None
        return self.check_tree(tree, language, file_path)

    def audit(self, paths: Iterable[str | Path],
              on_file: Optional[Callable[[Path, str], None]] = None) -> AuditReport:
        """Check every file under ``paths``.

        Args:
            paths: Files or directories
            on_file: Called with (path, status) after each file; status is
                'checked', 'cached' or a skip reason

        Returns:
            AuditReport with findings in file order
        """
        report = AuditReport()
        for file_path in self.discover_files(paths):
            status = self._audit_file(file_path, report)
            if on_file is not None:
                on_file(file_path, status)
        return report

    def _audit_file(self, file_path: Path, report: AuditReport) -> str:
        if self.cache is not None:
            cached = self.cache.get_findings(file_path, self.fingerprint)
            if cached is not None:
                report.findings.extend(Finding.from_dict(item) for item in cached)
                report.files_from_cache += 1
                report.files_analyzed += 1
                return 'cached'

        try:
            source_code = file_path.read_bytes()
        except OSError:
            report.skipped_files.append((str(file_path), 'unreadable'))
            self._forget(file_path)
            return 'unreadable'

        language = LanguageParser.language_for(file_path)
        findings = self.check_source(source_code, language, str(file_path))
        if findings is None:
            report.skipped_files.append((str(file_path), 'syntax errors'))
            self._forget(file_path)
            return 'syntax errors'

        if self.cache is not None:
            self.cache.set_findings(file_path, self.fingerprint, [f.to_dict() for f in findings])
        report.findings.extend(findings)
        report.files_analyzed += 1
        return 'checked'

    def _forget(self, file_path: Path):
        # Findings cached before the file became unparseable are stale
        if self.cache is not None:
            self.cache.invalidate_file(file_path)

    def _finding(self, rule: Rule, issue: Issue) -> Finding:
        position = issue.call.meta
        return Finding(
            rule_id=rule.id,
            file_path=issue.file_path,
            line=position.line if position else 0,
            column=position.column + 1 if position else 0,
            callee=issue.call.qualified_name,
            function=issue.function,
            message=rule.message(issue.call),
        )
