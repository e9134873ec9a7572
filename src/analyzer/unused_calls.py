"""Collect target calls whose result is thrown away.

This is the driver of the analysis: for every function definition in a
lowered tree it takes the body's top-level expressions, looks for target
calls nested in each of them and keeps the ones the UsageClassifier does
not consider used.
"""
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List

from .extractor import FunctionBodyExtractor, TargetCallFinder
from .rules import TargetSpec
from .syntax import Call, FunctionDefinition, has_nested_block
from .usage import UsageClassifier

# Classification recurses about three frames per nesting level of the source
RECURSION_HEADROOM = 20000


@dataclass(frozen=True)
class Issue:
    """A call site whose result is discarded."""
    call: Call
    file_path: str
    function: str


@contextmanager
def recursion_headroom(limit: int = RECURSION_HEADROOM) -> Iterator[None]:
    """Temporarily raise the interpreter recursion limit.

    Deeply nested sources must not be truncated: a cut-off classification
    silently changes its result.
    """
    previous = sys.getrecursionlimit()
    if previous < limit:
        sys.setrecursionlimit(limit)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


class UnusedCallCollector:
    """Find discarded results of calls matching one TargetSpec."""

    def __init__(self, target: TargetSpec):
        """Initialize collector.

        Args:
            target: Functions whose results must not be dropped
        """
        self.target = target
        self.extractor = FunctionBodyExtractor()
        self.finder = TargetCallFinder(target)
        self.classifier = UsageClassifier()

    def collect(self, tree: object, file_path: str = '') -> List[Issue]:
        """Return issues for every function definition in ``tree``.

        Args:
            tree: Lowered syntax tree (a node or a tuple of nodes)
            file_path: Originating file, attached to each issue

        Returns:
            Issues in source order
        """
        issues: List[Issue] = []
        with recursion_headroom():
            for function in self.extractor.functions_in(tree):
                issues.extend(self.collect_function(function, file_path))
        return issues

    def collect_function(self, function: FunctionDefinition, file_path: str = '') -> List[Issue]:
        """Return issues for a single function definition."""
        scope, tail = self.extractor.extract_body(function)
        if tail is None:
            return []

        issues = []
        for statement in scope:
            # A construct with its own block is searched even in tail position:
            # a non-tail call can sit deep inside it
            if not has_nested_block(statement) and statement == tail:
                continue

            for call in self.finder.find_calls(statement):
                if not self.classifier.is_used(call, tail, scope, within=statement):
                    issues.append(Issue(call=call, file_path=file_path, function=function.name))
        return issues
