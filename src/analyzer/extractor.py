"""Function body and target call extraction from lowered syntax trees."""
from typing import List, Optional, Tuple

from .rules import TargetSpec
from .syntax import Call, FunctionDefinition, NodeKind, SyntaxNode, walk


class FunctionBodyExtractor:
    """Project a function definition onto its top-level expressions."""

    def extract_body(self, function: FunctionDefinition) -> Tuple[Tuple[SyntaxNode, ...], Optional[SyntaxNode]]:
        """Return the body's statements and its tail expression.

        Args:
            function: Function definition node

        Returns:
            Tuple of (statements, tail). ``tail`` is None for an empty body.
        """
        statements = tuple(function.body.statements)
        tail = statements[-1] if statements else None
        return statements, tail

    def functions_in(self, root: object) -> List[FunctionDefinition]:
        """Collect every function definition in source order, nested ones included."""
        return [node for node in walk(root) if node.kind == NodeKind.FUNCTION]


class TargetCallFinder:
    """Find calls matching a TargetSpec inside a subtree."""

    def __init__(self, target: TargetSpec):
        """Initialize finder for one target.

        Args:
            target: Namespace path and function-name filter to match
        """
        self.target = target

    def find_calls(self, subtree: object) -> List[Call]:
        """Return matching calls in depth-first pre-order.

        Nested function definitions are not entered; they are analysed on
        their own.

        Args:
            subtree: Node or tuple of nodes to search

        Returns:
            Matching Call nodes, in the order they appear in the source
        """
        return [
            node for node in walk(subtree, skip=NodeKind.FUNCTION)
            if node.kind == NodeKind.CALL and self.target.matches(node)
        ]
