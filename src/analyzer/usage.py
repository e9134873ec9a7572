"""Decide whether the result of a target call is consumed.

The classifier starts at the top-level statement that contains the call and
walks down through the constructs enclosing it. Each construct has its own
notion of "consumed":

- bound by an assignment
- tested by a conditional (its subject, a loop's generators, a clause pattern)
- the tail of a block that is itself the function's tail
- forwarded into the next pipeline stage
- passed as an argument to another call

Anything the table does not recognise counts as discarded. Over-reporting is
preferred to silently missing a dropped result.
"""
from typing import Callable, Dict, Optional, Sequence

from .syntax import (
    AnonymousFunction,
    Assignment,
    BinaryOp,
    Block,
    Call,
    ClauseArm,
    Composite,
    Comprehension,
    Conditional,
    Dispatch,
    NodeKind,
    Pipeline,
    SyntaxNode,
    contains,
)

Scope = Sequence[SyntaxNode]


class UsageClassifier:
    """Recursive, context-sensitive "is this result used?" predicate."""

    def __init__(self):
        self._rules: Dict[NodeKind, Callable[..., bool]] = {
            NodeKind.ASSIGNMENT: self._assignment,
            NodeKind.CONDITIONAL: self._conditional,
            NodeKind.COMPREHENSION: self._comprehension,
            NodeKind.DISPATCH: self._dispatch,
            NodeKind.BLOCK: self._block,
            NodeKind.ANONYMOUS_FUNCTION: self._anonymous_function,
            NodeKind.CLAUSE: self._clause_arm,
            NodeKind.PIPELINE: self._pipeline,
            NodeKind.BINARY_OP: self._binary_op,
            NodeKind.CALL: self._call,
            NodeKind.COMPOSITE: self._composite,
        }

    def is_used(self, call: Call, tail: Optional[SyntaxNode], scope: Scope,
                within: Optional[SyntaxNode] = None) -> bool:
        """Return True if the result of ``call`` is consumed.

        Args:
            call: Target call site
            tail: Tail expression of the enclosing function
            scope: Top-level expressions of the block being analysed
            within: Statement of ``scope`` that contains ``call``; looked up
                when omitted

        Returns:
            False when the result is discarded or the context is not recognised
        """
        if within is None:
            within = next((statement for statement in scope if contains(statement, call)), None)
            if within is None:
                return False
        return self.classify(within, call, tail, scope)

    def classify(self, node: object, call: Call, tail: Optional[SyntaxNode], scope: Scope) -> bool:
        """Apply the rule for ``node``'s shape."""
        if isinstance(node, tuple):
            # Child lists behave like composite literals
            return any(self.classify(item, call, tail, scope) for item in node)
        rule = self._rules.get(getattr(node, 'kind', None), self._unrecognised)
        return rule(node, call, tail, scope)

    # --- Rules, one per shape ---

    def _assignment(self, node: Assignment, call: Call, tail, scope) -> bool:
        return contains(node.value, call)

    def _conditional(self, node: Conditional, call: Call, tail, scope) -> bool:
        if contains(node.subject, call):
            return True
        branches = [branch for branch in node.branches if branch is not None]
        return any(self._used_in_branch(branch, call, tail) for branch in branches)

    def _comprehension(self, node: Comprehension, call: Call, tail, scope) -> bool:
        if contains(node.clauses, call):
            return True
        branches = [branch for branch in (node.body, node.alternative) if branch is not None]
        return any(self._used_in_branch(branch, call, tail) for branch in branches)

    def _dispatch(self, node: Dispatch, call: Call, tail, scope) -> bool:
        return self._used_in_branch(node.clauses, call, tail)

    def _block(self, node: Block, call: Call, tail, scope) -> bool:
        return self._used_in_branch(node, call, tail)

    def _anonymous_function(self, node: AnonymousFunction, call: Call, tail, scope) -> bool:
        return any(self.classify(clause, call, tail, scope) for clause in node.clauses)

    def _clause_arm(self, node: ClauseArm, call: Call, tail, scope) -> bool:
        # Pattern bindings are definitional, never discarded
        if contains(node.pattern, call):
            return True

        statements = node.statements
        if statements and statements[-1] == call and contains(tail, node):
            return True
        return any(self.classify(statement, call, tail, statements)
                   for statement in statements if contains(statement, call))

    def _pipeline(self, node: Pipeline, call: Call, tail, scope) -> bool:
        if not contains(node, call):
            return False
        if contains(tail, node):
            return True
        # Every stage but the last feeds the next one
        return node.stages[-1] != call

    def _binary_op(self, node: BinaryOp, call: Call, tail, scope) -> bool:
        return contains(tail, node) and contains(node, call)

    def _call(self, node: Call, call: Call, tail, scope) -> bool:
        functions = [arg for arg in node.args if isinstance(arg, AnonymousFunction)]
        if functions and any(contains(function, call) for function in functions):
            return any(self.classify(function, call, tail, scope) for function in functions)

        last_in_tail = (
            contains(tail, node)
            and contains(node, call)
            and bool(scope)
            and contains(scope[-1], call)
        )
        passed_as_argument = contains(node.args, call)
        return last_in_tail or passed_as_argument

    def _composite(self, node: Composite, call: Call, tail, scope) -> bool:
        return any(self.classify(element, call, tail, scope)
                   for element in node.elements if contains(element, call))

    def _unrecognised(self, node: object, call: Call, tail, scope) -> bool:
        return False

    # --- Internal Helpers ---

    def _used_in_branch(self, branch: object, call: Call, tail) -> bool:
        """Classify a sub-block with its own expressions as the scope."""
        if isinstance(branch, Block):
            statements = branch.statements
        elif isinstance(branch, tuple):
            statements = branch
        else:
            statements = (branch,)
        # Only the statement enclosing the call decides, never its siblings
        return any(self.classify(statement, call, tail, statements)
                   for statement in statements if contains(statement, call))
