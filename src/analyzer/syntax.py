"""Language-neutral syntax tree consumed by the unused-result analysis.

Every node is a frozen dataclass carrying a ``kind`` tag, an optional source
``meta`` position and an ordered set of children. Children are either nodes,
tuples of nodes (child lists) or plain atoms such as names.

Equality is structural and includes ``meta``: nodes lowered from real source
always carry their position, so two different call sites never compare equal
even when their text is identical.
"""
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Iterator, Optional, Tuple


class NodeKind(str, Enum):
    """Syntactic shapes recognised by the usage classifier."""
    FUNCTION = 'function'
    ASSIGNMENT = 'assignment'
    CONDITIONAL = 'conditional'
    COMPREHENSION = 'comprehension'
    DISPATCH = 'dispatch'
    BLOCK = 'block'
    ANONYMOUS_FUNCTION = 'anonymous_function'
    CLAUSE = 'clause'
    PIPELINE = 'pipeline'
    BINARY_OP = 'binary_op'
    CALL = 'call'
    COMPOSITE = 'composite'
    LEAF = 'leaf'


@dataclass(frozen=True)
class Position:
    """Source span of a node (1-based lines, 0-based columns)."""
    line: int
    column: int
    end_line: int
    end_column: int


@dataclass(frozen=True)
class SyntaxNode:
    """Base class for all syntax nodes."""
    meta: Optional[Position] = field(default=None, kw_only=True)

    kind = NodeKind.LEAF

    def children(self) -> Iterator[object]:
        """Yield child values in declaration order, skipping ``meta``."""
        for f in fields(self):
            if f.name == 'meta':
                continue
            yield getattr(self, f.name)


@dataclass(frozen=True)
class Leaf(SyntaxNode):
    """Literal, identifier or any shape without interesting children."""
    value: str = ''

    kind = NodeKind.LEAF


@dataclass(frozen=True)
class Block(SyntaxNode):
    """Ordered sequence of expressions; the last one is the block's value."""
    statements: Tuple[SyntaxNode, ...] = ()

    kind = NodeKind.BLOCK


@dataclass(frozen=True)
class FunctionDefinition(SyntaxNode):
    name: str
    params: Tuple[SyntaxNode, ...] = ()
    body: Block = Block()

    kind = NodeKind.FUNCTION


@dataclass(frozen=True)
class Call(SyntaxNode):
    """Invocation of ``namespace.name(*args)``.

    Calls whose callee is not a plain dotted name (``return``, operators,
    subscripts, ...) carry a ``head`` node and no ``name``. Method stages of a
    pipeline (``f(x).strip()``) have ``is_method`` set. Neither ever matches a
    target.
    """
    namespace: Tuple[str, ...] = ()
    name: Optional[str] = None
    args: Tuple[SyntaxNode, ...] = ()
    head: Optional[SyntaxNode] = None
    is_method: bool = False

    kind = NodeKind.CALL

    @property
    def qualified_name(self) -> str:
        if self.name is None:
            return self.head.value if isinstance(self.head, Leaf) else '<expression>'
        return '.'.join(self.namespace + (self.name,))


@dataclass(frozen=True)
class Assignment(SyntaxNode):
    target: SyntaxNode
    value: SyntaxNode

    kind = NodeKind.ASSIGNMENT


@dataclass(frozen=True)
class Conditional(SyntaxNode):
    """if/while/with/try/match: an optional subject plus branch bodies.

    A branch is a Block, a single expression, or a tuple of clause arms.
    """
    subject: Optional[SyntaxNode] = None
    branches: Tuple[object, ...] = ()
    keyword: str = 'if'

    kind = NodeKind.CONDITIONAL


@dataclass(frozen=True)
class Comprehension(SyntaxNode):
    """Generator/filter clauses followed by a body (for loops, comprehensions)."""
    clauses: Tuple[SyntaxNode, ...] = ()
    body: Optional[SyntaxNode] = None
    alternative: Optional[SyntaxNode] = None

    kind = NodeKind.COMPREHENSION


@dataclass(frozen=True)
class ClauseArm(SyntaxNode):
    """One ``pattern -> body`` branch of a multi-clause construct."""
    pattern: Tuple[SyntaxNode, ...] = ()
    body: Optional[SyntaxNode] = None

    kind = NodeKind.CLAUSE

    @property
    def statements(self) -> Tuple[SyntaxNode, ...]:
        if isinstance(self.body, Block):
            return self.body.statements
        if self.body is None:
            return ()
        return (self.body,)


@dataclass(frozen=True)
class Dispatch(SyntaxNode):
    """Ordered condition -> block branches (if/elif/else chains)."""
    clauses: Tuple[ClauseArm, ...] = ()

    kind = NodeKind.DISPATCH


@dataclass(frozen=True)
class AnonymousFunction(SyntaxNode):
    clauses: Tuple[ClauseArm, ...] = ()

    kind = NodeKind.ANONYMOUS_FUNCTION


@dataclass(frozen=True)
class Pipeline(SyntaxNode):
    """Left-to-right chain; each stage's result feeds the next one."""
    stages: Tuple[SyntaxNode, ...] = ()

    kind = NodeKind.PIPELINE


@dataclass(frozen=True)
class BinaryOp(SyntaxNode):
    """Concatenation/combination operator (``+``)."""
    operator: str
    left: SyntaxNode
    right: SyntaxNode

    kind = NodeKind.BINARY_OP


@dataclass(frozen=True)
class Composite(SyntaxNode):
    """Tuple, list, set or mapping literal."""
    elements: Tuple[SyntaxNode, ...] = ()

    kind = NodeKind.COMPOSITE


BLOCK_CARRYING_KINDS = frozenset({
    NodeKind.CONDITIONAL,
    NodeKind.COMPREHENSION,
    NodeKind.DISPATCH,
})


def _child_nodes(value: object) -> Iterator[SyntaxNode]:
    """Flatten a child value into the nodes it holds."""
    if isinstance(value, SyntaxNode):
        yield value
    elif isinstance(value, tuple):
        for item in value:
            yield from _child_nodes(item)


def walk(root: object, skip: Optional[NodeKind] = None) -> Iterator[SyntaxNode]:
    """Iteratively traverse a tree (or child list) and yield nodes pre-order.

    Args:
        root: Node or tuple of nodes to start from
        skip: Kind whose descendants are not visited (the node itself is)

    Yields:
        Every node, left to right
    """
    stack = list(reversed(list(_child_nodes(root))))
    while stack:
        current = stack.pop()
        yield current
        if current.kind == skip:
            continue
        children = []
        for value in current.children():
            children.extend(_child_nodes(value))
        # Add children in reverse order to maintain left-to-right traversal
        stack.extend(reversed(children))


def contains(haystack: object, needle: object) -> bool:
    """True if ``needle`` equals ``haystack`` or any node nested inside it."""
    if haystack is None or needle is None:
        return False
    return any(node == needle for node in walk(haystack))


def has_nested_block(node: SyntaxNode) -> bool:
    """True for statements that carry a block of their own."""
    if node.kind in BLOCK_CARRYING_KINDS:
        return True
    if isinstance(node, Call):
        return any(isinstance(arg, Block) for arg in node.args)
    return False
