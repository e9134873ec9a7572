"""Lower tree-sitter syntax trees into the analysis syntax model.

Tree-sitter produces concrete syntax trees with one node type per grammar
rule. The unused-result analysis only distinguishes a dozen shapes
(assignment, conditional, pipeline, ...), so each language gets a lowerer
that maps its grammar onto those shapes:

- statement-like keywords that consume a value (``return``, ``yield``,
  ``raise``, ``throw``) become calls taking the value as argument
- ``await`` is transparent, awaiting a value does not consume it
- a method call on a computed receiver (``f(x).strip()``) is a pipeline: the
  receiver's value is forwarded into the method
- ``+`` is the combination operator; every other operator is a plain call
- node types without a mapping become generic calls over their named
  children, or leaves when they have none
"""
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple

from tree_sitter import Node, Tree

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
    FunctionDefinition,
    Leaf,
    Pipeline,
    Position,
    SyntaxNode,
)


class TreeLowerer(ABC):
    """Shared machinery for per-language lowerers."""

    # Nodes never lowered (extras)
    TRIVIA_TYPES = {'comment'}

    # Nodes always lowered to a Leaf carrying their text
    LEAF_TYPES: set = set()

    # Keyword calls that leave the function
    EXIT_KEYWORDS = {'return', 'raise', 'throw'}

    def __init__(self):
        self._handlers: Dict[str, Callable[[Node], SyntaxNode]] = {}
        self.register_handlers()

    @abstractmethod
    def register_handlers(self):
        """Fill ``self._handlers`` (node type -> lowering method)."""

    def lower_tree(self, tree: Tree) -> Block:
        """Lower a whole parsed file into a Block of top-level statements.

        Args:
            tree: Parsed tree-sitter Tree

        Returns:
            Block whose statements are the module's top-level statements
        """
        root = tree.root_node
        return Block(self._lower_all(self._named(root)), meta=self._pos(root))

    def lower(self, node: Node) -> SyntaxNode:
        """Lower a single tree-sitter node."""
        if node.type in self.LEAF_TYPES:
            return self._leaf(node)
        handler = self._handlers.get(node.type, self._generic)
        return handler(node)

    # --- Internal Helpers ---

    def _pos(self, node: Node) -> Position:
        return Position(
            line=node.start_point[0] + 1,
            column=node.start_point[1],
            end_line=node.end_point[0] + 1,
            end_column=node.end_point[1],
        )

    def _text(self, node: Optional[Node]) -> str:
        if node is None:
            return ''
        return node.text.decode('utf-8', errors='ignore')

    def _named(self, node: Optional[Node]) -> List[Node]:
        if node is None:
            return []
        return [child for child in node.named_children if child.type not in self.TRIVIA_TYPES]

    def _lower_all(self, nodes) -> Tuple[SyntaxNode, ...]:
        return tuple(self.lower(node) for node in nodes if node is not None)

    def _leaf(self, node: Node) -> Leaf:
        return Leaf(self._text(node), meta=self._pos(node))

    def _generic(self, node: Node) -> SyntaxNode:
        named = self._named(node)
        if not named:
            return self._leaf(node)
        return self._keyword_call(node.type, node, named)

    def _keyword_call(self, keyword: str, node: Node, operands: List[Node]) -> Call:
        return Call(
            head=Leaf(keyword),
            args=self._lower_all(operands),
            meta=self._pos(node),
        )

    def _transparent(self, node: Node) -> SyntaxNode:
        """Lower to the node's first named child (await, parentheses, casts)."""
        named = self._named(node)
        if len(named) == 1:
            return self.lower(named[0])
        if not named:
            return self._leaf(node)
        return Composite(self._lower_all(named), meta=self._pos(node))

    def _composite(self, node: Node) -> Composite:
        return Composite(self._lower_all(self._named(node)), meta=self._pos(node))

    def _block(self, node: Optional[Node]) -> Optional[Block]:
        """Lower a body into a Block; single statements are wrapped."""
        if node is None:
            return None
        lowered = self.lower(node)
        if isinstance(lowered, Block):
            return lowered
        return Block((lowered,), meta=self._pos(node))

    def _statements(self, node: Node) -> Block:
        return Block(self._lower_all(self._named(node)), meta=self._pos(node))

    def _with_implicit_return(self, body: Block) -> Block:
        """End a statement body with the bare return it performs implicitly.

        Only explicit returns hand a value back; the last expression statement
        of such a body is discarded like any other.
        """
        statements = body.statements
        if statements and isinstance(statements[-1], Call) and statements[-1].head is not None \
                and statements[-1].head.value in self.EXIT_KEYWORDS:
            return body
        return Block(statements + (Call(head=Leaf('return')),), meta=body.meta)

    def _params(self, node: Optional[Node]) -> Tuple[SyntaxNode, ...]:
        if node is None:
            return ()
        if not node.named_children:
            return (self._leaf(node),) if node.type == 'identifier' else ()
        return tuple(self._leaf(param) for param in self._named(node))

    def _chain(self, receiver: SyntaxNode, stage: SyntaxNode, node: Node) -> Pipeline:
        """Append ``stage`` to the pipeline started by ``receiver``."""
        stages = receiver.stages if isinstance(receiver, Pipeline) else (receiver,)
        return Pipeline(stages + (stage,), meta=self._pos(node))

    @abstractmethod
    def _dotted_name(self, node: Optional[Node]) -> Optional[Tuple[str, ...]]:
        """Return the segments of a plain dotted name, or None."""

    def _invoke(self, node: Node, function: Node, args: Tuple[SyntaxNode, ...],
                member_type: str, object_field: str, property_field: str) -> SyntaxNode:
        """Lower an invocation of ``function`` with already lowered ``args``."""
        dotted = self._dotted_name(function)
        if dotted:
            return Call(namespace=dotted[:-1], name=dotted[-1], args=args, meta=self._pos(node))

        if function.type == member_type:
            receiver = self.lower(function.child_by_field_name(object_field))
            method = self._text(function.child_by_field_name(property_field))
            stage = Call(name=method, args=args, is_method=True, meta=self._pos(node))
            return self._chain(receiver, stage, node)

        # Computed callee: its value is forwarded into the invocation
        callee = self.lower(function)
        return self._chain(callee, Call(head=Leaf('()'), args=args, meta=self._pos(node)), node)

    def _clause_chain(self, arms: List[ClauseArm], node: Node) -> SyntaxNode:
        """Single test: Conditional. if/elif/else chains: Dispatch."""
        tested = [arm for arm in arms if arm.pattern]
        if len(tested) == 1:
            subject = tested[0].pattern[0]
            branches = tuple(arm.body for arm in arms if arm.body is not None)
            return Conditional(subject=subject, branches=branches, keyword='if', meta=self._pos(node))
        return Dispatch(tuple(arms), meta=self._pos(node))


class PythonLowerer(TreeLowerer):
    """Lower tree-sitter-python trees."""

    LEAF_TYPES = {
        'identifier', 'integer', 'float', 'true', 'false', 'none', 'ellipsis',
        'pass_statement', 'break_statement', 'continue_statement',
        'import_statement', 'import_from_statement', 'future_import_statement',
        'global_statement', 'nonlocal_statement', 'type_alias_statement',
        'escape_sequence', 'type',
    }

    KEYWORD_STATEMENTS = {
        'return_statement': 'return',
        'raise_statement': 'raise',
        'assert_statement': 'assert',
        'delete_statement': 'del',
        'yield': 'yield',
    }

    COMPREHENSION_TYPES = (
        'list_comprehension', 'set_comprehension',
        'dictionary_comprehension', 'generator_expression',
    )

    COMPOSITE_TYPES = (
        'list', 'tuple', 'set', 'dictionary', 'pair', 'expression_list',
        'pattern_list', 'tuple_pattern', 'list_pattern',
    )

    def register_handlers(self):
        self._handlers.update({
            'module': self._statements,
            'block': self._statements,
            'function_definition': self._function_definition,
            'decorated_definition': self._decorated_definition,
            'class_definition': self._class_definition,
            'expression_statement': self._transparent,
            'parenthesized_expression': self._transparent,
            'await': self._transparent,
            'assignment': self._assignment,
            'augmented_assignment': self._assignment,
            'named_expression': self._named_expression,
            'if_statement': self._if_statement,
            'while_statement': self._while_statement,
            'for_statement': self._for_statement,
            'with_statement': self._with_statement,
            'try_statement': self._try_statement,
            'match_statement': self._match_statement,
            'conditional_expression': self._conditional_expression,
            'lambda': self._lambda,
            'call': self._call,
            'attribute': self._attribute,
            'subscript': self._subscript,
            'binary_operator': self._binary_operator,
            'boolean_operator': self._operator,
            'comparison_operator': self._comparison,
            'not_operator': self._not_operator,
            'unary_operator': self._operator,
            'keyword_argument': self._keyword_argument,
            'string': self._string,
        })
        for node_type, keyword in self.KEYWORD_STATEMENTS.items():
            self._handlers[node_type] = (
                lambda node, keyword=keyword: self._keyword_call(keyword, node, self._named(node))
            )
        for node_type in self.COMPREHENSION_TYPES:
            self._handlers[node_type] = self._comprehension
        for node_type in self.COMPOSITE_TYPES:
            self._handlers[node_type] = self._composite

    def _dotted_name(self, node: Optional[Node]) -> Optional[Tuple[str, ...]]:
        if node is None:
            return None
        if node.type == 'identifier':
            return (self._text(node),)
        if node.type == 'attribute':
            prefix = self._dotted_name(node.child_by_field_name('object'))
            if prefix is None:
                return None
            return prefix + (self._text(node.child_by_field_name('attribute')),)
        return None

    # --- Definitions ---

    def _function_definition(self, node: Node) -> FunctionDefinition:
        return FunctionDefinition(
            name=self._text(node.child_by_field_name('name')),
            params=self._params(node.child_by_field_name('parameters')),
            body=self._with_implicit_return(self._block(node.child_by_field_name('body')) or Block()),
            meta=self._pos(node),
        )

    def _decorated_definition(self, node: Node) -> SyntaxNode:
        definition = node.child_by_field_name('definition')
        if definition is None:
            return self._generic(node)
        return self.lower(definition)

    def _class_definition(self, node: Node) -> Call:
        name = node.child_by_field_name('name')
        body = self._block(node.child_by_field_name('body')) or Block()
        return Call(head=Leaf('class'), args=(self._leaf(name), body), meta=self._pos(node))

    # --- Statements ---

    def _assignment(self, node: Node) -> SyntaxNode:
        right = node.child_by_field_name('right')
        if right is None:
            # Annotation only: `x: int`
            return self._leaf(node)
        return Assignment(
            target=self.lower(node.child_by_field_name('left')),
            value=self.lower(right),
            meta=self._pos(node),
        )

    def _named_expression(self, node: Node) -> Assignment:
        return Assignment(
            target=self.lower(node.child_by_field_name('name')),
            value=self.lower(node.child_by_field_name('value')),
            meta=self._pos(node),
        )

    def _if_statement(self, node: Node) -> SyntaxNode:
        arms = [ClauseArm(
            pattern=(self.lower(node.child_by_field_name('condition')),),
            body=self._block(node.child_by_field_name('consequence')),
            meta=self._pos(node),
        )]
        for alternative in node.children_by_field_name('alternative'):
            if alternative.type == 'elif_clause':
                arms.append(ClauseArm(
                    pattern=(self.lower(alternative.child_by_field_name('condition')),),
                    body=self._block(alternative.child_by_field_name('consequence')),
                    meta=self._pos(alternative),
                ))
            else:
                arms.append(ClauseArm(
                    body=self._block(alternative.child_by_field_name('body')),
                    meta=self._pos(alternative),
                ))
        return self._clause_chain(arms, node)

    def _else_body(self, node: Node) -> Optional[Block]:
        alternative = node.child_by_field_name('alternative')
        if alternative is None:
            return None
        return self._block(alternative.child_by_field_name('body'))

    def _while_statement(self, node: Node) -> Conditional:
        branches = (self._block(node.child_by_field_name('body')), self._else_body(node))
        return Conditional(
            subject=self.lower(node.child_by_field_name('condition')),
            branches=tuple(branch for branch in branches if branch is not None),
            keyword='while',
            meta=self._pos(node),
        )

    def _for_statement(self, node: Node) -> Comprehension:
        return Comprehension(
            clauses=self._lower_all([node.child_by_field_name('left'), node.child_by_field_name('right')]),
            body=self._block(node.child_by_field_name('body')),
            alternative=self._else_body(node),
            meta=self._pos(node),
        )

    def _with_statement(self, node: Node) -> Conditional:
        items = [child for child in self._named(node) if child.type == 'with_clause']
        subject = Composite(
            tuple(item for clause in items for item in self._lower_all(self._named(clause))),
            meta=self._pos(node),
        )
        return Conditional(
            subject=subject,
            branches=(self._block(node.child_by_field_name('body')) or Block(),),
            keyword='with',
            meta=self._pos(node),
        )

    def _try_statement(self, node: Node) -> Conditional:
        branches: List[object] = [self._block(node.child_by_field_name('body')) or Block()]
        handlers = []
        for child in self._named(node):
            if child.type in ('except_clause', 'except_group_clause'):
                handlers.append(self._except_clause(child))
            elif child.type == 'else_clause':
                branches.append(self._block(child.child_by_field_name('body')))
            elif child.type == 'finally_clause':
                body = [grandchild for grandchild in self._named(child) if grandchild.type == 'block']
                branches.append(self._block(body[0]) if body else None)
        if handlers:
            branches.insert(1, tuple(handlers))
        return Conditional(
            branches=tuple(branch for branch in branches if branch is not None),
            keyword='try',
            meta=self._pos(node),
        )

    def _except_clause(self, node: Node) -> ClauseArm:
        named = self._named(node)
        body = [child for child in named if child.type == 'block']
        pattern = [child for child in named if child.type != 'block']
        return ClauseArm(
            pattern=self._lower_all(pattern),
            body=self._block(body[-1]) if body else Block(),
            meta=self._pos(node),
        )

    def _match_statement(self, node: Node) -> Conditional:
        subjects = self._lower_all(node.children_by_field_name('subject'))
        body = node.child_by_field_name('body')
        cases = [child for child in self._named(body if body is not None else node)
                 if child.type == 'case_clause']
        arms = []
        for case in cases:
            pattern = [child for child in self._named(case) if child.type == 'case_pattern']
            guard = case.child_by_field_name('guard')
            if guard is not None:
                pattern.append(guard)
            arms.append(ClauseArm(
                pattern=self._lower_all(pattern),
                body=self._block(case.child_by_field_name('consequence')) or Block(),
                meta=self._pos(case),
            ))
        subject = subjects[0] if len(subjects) == 1 else Composite(subjects, meta=self._pos(node))
        return Conditional(subject=subject, branches=(tuple(arms),), keyword='match', meta=self._pos(node))

    # --- Expressions ---

    def _conditional_expression(self, node: Node) -> SyntaxNode:
        named = self._named(node)
        if len(named) != 3:
            return self._generic(node)
        consequence, condition, alternative = named
        return Conditional(
            subject=self.lower(condition),
            branches=(self.lower(consequence), self.lower(alternative)),
            keyword='if',
            meta=self._pos(node),
        )

    def _lambda(self, node: Node) -> AnonymousFunction:
        clause = ClauseArm(
            pattern=self._params(node.child_by_field_name('parameters')),
            body=self.lower(node.child_by_field_name('body')),
            meta=self._pos(node),
        )
        return AnonymousFunction((clause,), meta=self._pos(node))

    def _comprehension(self, node: Node) -> Comprehension:
        body = node.child_by_field_name('body')
        clauses = [child for child in self._named(node) if body is None or child.id != body.id]
        return Comprehension(
            clauses=self._lower_all(clauses),
            body=self.lower(body) if body is not None else None,
            meta=self._pos(node),
        )

    def _call(self, node: Node) -> SyntaxNode:
        arguments = node.child_by_field_name('arguments')
        if arguments is not None and arguments.type == 'generator_expression':
            args = (self.lower(arguments),)
        else:
            args = self._lower_all(self._named(arguments))
        return self._invoke(node, node.child_by_field_name('function'), args,
                            'attribute', 'object', 'attribute')

    def _attribute(self, node: Node) -> SyntaxNode:
        if self._dotted_name(node):
            return self._leaf(node)
        receiver = self.lower(node.child_by_field_name('object'))
        return self._chain(receiver, self._leaf(node.child_by_field_name('attribute')), node)

    def _subscript(self, node: Node) -> Call:
        operands = [node.child_by_field_name('value')] + node.children_by_field_name('subscript')
        return self._keyword_call('[]', node, operands)

    def _binary_operator(self, node: Node) -> SyntaxNode:
        operator = self._text(node.child_by_field_name('operator'))
        left = self.lower(node.child_by_field_name('left'))
        right = self.lower(node.child_by_field_name('right'))
        if operator == '+':
            return BinaryOp(operator, left, right, meta=self._pos(node))
        return Call(head=Leaf(operator), args=(left, right), meta=self._pos(node))

    def _operator(self, node: Node) -> Call:
        operator = self._text(node.child_by_field_name('operator')) or node.type
        return self._keyword_call(operator, node, self._named(node))

    def _comparison(self, node: Node) -> Call:
        return self._keyword_call('compare', node, self._named(node))

    def _not_operator(self, node: Node) -> Call:
        return self._keyword_call('not', node, self._named(node))

    def _keyword_argument(self, node: Node) -> Composite:
        return Composite(
            (self._leaf(node.child_by_field_name('name')), self.lower(node.child_by_field_name('value'))),
            meta=self._pos(node),
        )

    def _string(self, node: Node) -> SyntaxNode:
        interpolations = [child for child in self._named(node) if child.type == 'interpolation']
        if not interpolations:
            return self._leaf(node)
        expressions = []
        for interpolation in interpolations:
            expression = interpolation.child_by_field_name('expression')
            if expression is None:
                named = self._named(interpolation)
                expression = named[0] if named else None
            expressions.append(expression)
        return self._keyword_call('f-string', node, [e for e in expressions if e is not None])


class JavaScriptLowerer(TreeLowerer):
    """Lower tree-sitter-javascript and tree-sitter-typescript trees."""

    LEAF_TYPES = {
        'identifier', 'property_identifier', 'shorthand_property_identifier',
        'private_property_identifier', 'this', 'super', 'number', 'true',
        'false', 'null', 'undefined', 'regex', 'empty_statement',
        'import_statement', 'break_statement', 'continue_statement',
        'debugger_statement', 'type_alias_declaration', 'interface_declaration',
        'enum_declaration', 'ambient_declaration', 'string', 'hash_bang_line',
        'type_annotation', 'type_arguments', 'type_parameters',
    }

    FUNCTION_DECLARATIONS = (
        'function_declaration', 'generator_function_declaration', 'method_definition',
    )

    FUNCTION_EXPRESSIONS = (
        'function_expression', 'function', 'generator_function', 'arrow_function',
    )

    KEYWORD_STATEMENTS = {
        'return_statement': 'return',
        'throw_statement': 'throw',
        'yield_expression': 'yield',
    }

    def register_handlers(self):
        self._handlers.update({
            'program': self._statements,
            'statement_block': self._statements,
            'class_body': self._statements,
            'class_declaration': self._class_declaration,
            'abstract_class_declaration': self._class_declaration,
            'class': self._class_declaration,
            'export_statement': self._export_statement,
            'lexical_declaration': self._declaration,
            'variable_declaration': self._declaration,
            'expression_statement': self._transparent,
            'parenthesized_expression': self._transparent,
            'await_expression': self._transparent,
            'as_expression': self._type_wrapper,
            'satisfies_expression': self._type_wrapper,
            'non_null_expression': self._type_wrapper,
            'type_assertion': self._type_assertion,
            'labeled_statement': self._labeled_statement,
            'assignment_expression': self._assignment,
            'augmented_assignment_expression': self._assignment,
            'if_statement': self._if_statement,
            'switch_statement': self._switch_statement,
            'try_statement': self._try_statement,
            'for_statement': self._for_statement,
            'for_in_statement': self._for_in_statement,
            'while_statement': self._while_statement,
            'do_statement': self._do_statement,
            'ternary_expression': self._ternary_expression,
            'call_expression': self._call_expression,
            'new_expression': self._new_expression,
            'member_expression': self._member_expression,
            'subscript_expression': self._subscript_expression,
            'binary_expression': self._binary_expression,
            'array': self._composite,
            'object': self._composite,
            'pair': self._pair,
            'sequence_expression': self._composite,
            'template_string': self._template_string,
        })
        for node_type in self.FUNCTION_DECLARATIONS:
            self._handlers[node_type] = self._function_declaration
        for node_type in self.FUNCTION_EXPRESSIONS:
            self._handlers[node_type] = self._function_expression
        for node_type, keyword in self.KEYWORD_STATEMENTS.items():
            self._handlers[node_type] = (
                lambda node, keyword=keyword: self._keyword_call(keyword, node, self._named(node))
            )

    def _dotted_name(self, node: Optional[Node]) -> Optional[Tuple[str, ...]]:
        if node is None:
            return None
        if node.type in ('identifier', 'this'):
            return (self._text(node),)
        if node.type == 'member_expression':
            prefix = self._dotted_name(node.child_by_field_name('object'))
            prop = node.child_by_field_name('property')
            if prefix is None or prop is None or prop.type != 'property_identifier':
                return None
            return prefix + (self._text(prop),)
        return None

    # --- Definitions ---

    def _function_declaration(self, node: Node) -> FunctionDefinition:
        return FunctionDefinition(
            name=self._text(node.child_by_field_name('name')),
            params=self._params(node.child_by_field_name('parameters')),
            body=self._with_implicit_return(self._block(node.child_by_field_name('body')) or Block()),
            meta=self._pos(node),
        )

    def _function_parts(self, node: Node) -> Tuple[Tuple[SyntaxNode, ...], Optional[SyntaxNode]]:
        parameters = node.child_by_field_name('parameters') or node.child_by_field_name('parameter')
        body = node.child_by_field_name('body')
        return self._params(parameters), (self.lower(body) if body is not None else None)

    def _function_expression(self, node: Node) -> AnonymousFunction:
        params, body = self._function_parts(node)
        if isinstance(body, Block):
            body = self._with_implicit_return(body)
        clause = ClauseArm(pattern=params, body=body, meta=self._pos(node))
        return AnonymousFunction((clause,), meta=self._pos(node))

    def _named_function(self, name: Node, value: Node) -> FunctionDefinition:
        """`const f = () => ...` is a named function in all but syntax."""
        params, body = self._function_parts(value)
        if body is None:
            body = self._with_implicit_return(Block())
        elif isinstance(body, Block):
            body = self._with_implicit_return(body)
        else:
            # Expression body: its value is returned
            body = Block((body,), meta=body.meta)
        return FunctionDefinition(name=self._text(name), params=params, body=body, meta=self._pos(value))

    def _class_declaration(self, node: Node) -> Call:
        name = node.child_by_field_name('name')
        args = ((self._leaf(name),) if name is not None else ()) + (
            self._block(node.child_by_field_name('body')) or Block(),
        )
        return Call(head=Leaf('class'), args=args, meta=self._pos(node))

    def _export_statement(self, node: Node) -> SyntaxNode:
        declaration = node.child_by_field_name('declaration')
        if declaration is not None:
            return self.lower(declaration)
        return self._generic(node)

    def _declaration(self, node: Node) -> SyntaxNode:
        lowered = []
        for declarator in self._named(node):
            if declarator.type != 'variable_declarator':
                continue
            name = declarator.child_by_field_name('name')
            value = declarator.child_by_field_name('value')
            if value is None:
                lowered.append(self._leaf(declarator))
            elif value.type in self.FUNCTION_EXPRESSIONS and name is not None and name.type == 'identifier':
                lowered.append(self._named_function(name, value))
            else:
                lowered.append(Assignment(self.lower(name), self.lower(value), meta=self._pos(declarator)))
        if len(lowered) == 1:
            return lowered[0]
        return Composite(tuple(lowered), meta=self._pos(node))

    # --- Statements ---

    def _labeled_statement(self, node: Node) -> SyntaxNode:
        body = node.child_by_field_name('body')
        return self.lower(body) if body is not None else self._leaf(node)

    def _assignment(self, node: Node) -> Assignment:
        return Assignment(
            target=self.lower(node.child_by_field_name('left')),
            value=self.lower(node.child_by_field_name('right')),
            meta=self._pos(node),
        )

    def _if_statement(self, node: Node) -> SyntaxNode:
        arms = []
        current = node
        while current is not None:
            arms.append(ClauseArm(
                pattern=(self.lower(current.child_by_field_name('condition')),),
                body=self._block(current.child_by_field_name('consequence')),
                meta=self._pos(current),
            ))
            else_clause = current.child_by_field_name('alternative')
            current = None
            if else_clause is None:
                break
            branch = self._named(else_clause)
            if len(branch) == 1 and branch[0].type == 'if_statement':
                current = branch[0]
            elif branch:
                arms.append(ClauseArm(body=self._block(branch[0]), meta=self._pos(else_clause)))
        return self._clause_chain(arms, node)

    def _switch_statement(self, node: Node) -> Conditional:
        body = node.child_by_field_name('body')
        arms = []
        for case in self._named(body):
            if case.type not in ('switch_case', 'switch_default'):
                continue
            value = case.child_by_field_name('value')
            statements = [child for child in self._named(case) if value is None or child.id != value.id]
            arms.append(ClauseArm(
                pattern=(self.lower(value),) if value is not None else (),
                body=Block(self._lower_all(statements), meta=self._pos(case)),
                meta=self._pos(case),
            ))
        return Conditional(
            subject=self.lower(node.child_by_field_name('value')),
            branches=(tuple(arms),),
            keyword='switch',
            meta=self._pos(node),
        )

    def _try_statement(self, node: Node) -> Conditional:
        branches: List[object] = [self._block(node.child_by_field_name('body')) or Block()]
        handler = node.child_by_field_name('handler')
        if handler is not None:
            parameter = handler.child_by_field_name('parameter')
            branches.append((ClauseArm(
                pattern=(self.lower(parameter),) if parameter is not None else (),
                body=self._block(handler.child_by_field_name('body')) or Block(),
                meta=self._pos(handler),
            ),))
        finalizer = node.child_by_field_name('finalizer')
        if finalizer is not None:
            branches.append(self._block(finalizer.child_by_field_name('body')))
        return Conditional(
            branches=tuple(branch for branch in branches if branch is not None),
            keyword='try',
            meta=self._pos(node),
        )

    def _for_statement(self, node: Node) -> Comprehension:
        clauses = [node.child_by_field_name(field_name)
                   for field_name in ('initializer', 'condition', 'increment')]
        return Comprehension(
            clauses=self._lower_all(clauses),
            body=self._block(node.child_by_field_name('body')),
            meta=self._pos(node),
        )

    def _for_in_statement(self, node: Node) -> Comprehension:
        return Comprehension(
            clauses=self._lower_all([node.child_by_field_name('left'), node.child_by_field_name('right')]),
            body=self._block(node.child_by_field_name('body')),
            meta=self._pos(node),
        )

    def _while_statement(self, node: Node) -> Conditional:
        return Conditional(
            subject=self.lower(node.child_by_field_name('condition')),
            branches=(self._block(node.child_by_field_name('body')) or Block(),),
            keyword='while',
            meta=self._pos(node),
        )

    def _do_statement(self, node: Node) -> Conditional:
        conditional = self._while_statement(node)
        return Conditional(
            subject=conditional.subject,
            branches=conditional.branches,
            keyword='do',
            meta=conditional.meta,
        )

    # --- Expressions ---

    def _type_wrapper(self, node: Node) -> SyntaxNode:
        named = self._named(node)
        return self.lower(named[0]) if named else self._leaf(node)

    def _type_assertion(self, node: Node) -> SyntaxNode:
        named = self._named(node)
        return self.lower(named[-1]) if named else self._leaf(node)

    def _ternary_expression(self, node: Node) -> Conditional:
        return Conditional(
            subject=self.lower(node.child_by_field_name('condition')),
            branches=self._lower_all([node.child_by_field_name('consequence'),
                                      node.child_by_field_name('alternative')]),
            keyword='?',
            meta=self._pos(node),
        )

    def _arguments(self, node: Optional[Node]) -> Tuple[SyntaxNode, ...]:
        if node is None:
            return ()
        if node.type == 'arguments':
            return self._lower_all(self._named(node))
        # Tagged template literal
        return (self.lower(node),)

    def _call_expression(self, node: Node) -> SyntaxNode:
        args = self._arguments(node.child_by_field_name('arguments'))
        return self._invoke(node, node.child_by_field_name('function'), args,
                            'member_expression', 'object', 'property')

    def _new_expression(self, node: Node) -> Call:
        constructor = node.child_by_field_name('constructor')
        args = self._arguments(node.child_by_field_name('arguments'))
        return Call(
            head=Leaf('new'),
            args=self._lower_all([constructor]) + args,
            meta=self._pos(node),
        )

    def _member_expression(self, node: Node) -> SyntaxNode:
        if self._dotted_name(node):
            return self._leaf(node)
        receiver = self.lower(node.child_by_field_name('object'))
        return self._chain(receiver, self._leaf(node.child_by_field_name('property')), node)

    def _subscript_expression(self, node: Node) -> Call:
        operands = [node.child_by_field_name('object'), node.child_by_field_name('index')]
        return self._keyword_call('[]', node, [operand for operand in operands if operand is not None])

    def _binary_expression(self, node: Node) -> SyntaxNode:
        operator = self._text(node.child_by_field_name('operator'))
        left = self.lower(node.child_by_field_name('left'))
        right = self.lower(node.child_by_field_name('right'))
        if operator == '+':
            return BinaryOp(operator, left, right, meta=self._pos(node))
        return Call(head=Leaf(operator), args=(left, right), meta=self._pos(node))

    def _pair(self, node: Node) -> Composite:
        return Composite(
            self._lower_all([node.child_by_field_name('key'), node.child_by_field_name('value')]),
            meta=self._pos(node),
        )

    def _template_string(self, node: Node) -> SyntaxNode:
        substitutions = [child for child in self._named(node) if child.type == 'template_substitution']
        if not substitutions:
            return self._leaf(node)
        expressions = [named for substitution in substitutions for named in self._named(substitution)]
        return self._keyword_call('template', node, expressions)


LOWERERS = {
    'python': PythonLowerer,
    'javascript': JavaScriptLowerer,
    'typescript': JavaScriptLowerer,
    'tsx': JavaScriptLowerer,
}


def lowerer_for(language: str) -> TreeLowerer:
    """Create the lowerer for a language.

    Raises:
        ValueError: If language is not supported
    """
    lowerer_class = LOWERERS.get(language)
    if lowerer_class is None:
        raise ValueError(f"Unsupported language: {language}")
    return lowerer_class()
