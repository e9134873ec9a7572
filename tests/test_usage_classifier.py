"""Tests for UsageClassifier and UnusedCallCollector on hand-built trees.

Trees are built directly from syntax nodes so every usage rule can be
exercised independently of any parser. ``Target.run`` plays the role of the
function whose result must not be dropped.
"""
import pytest

from src.analyzer.rules import TargetSpec
from src.analyzer.syntax import (
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
)
from src.analyzer.unused_calls import UnusedCallCollector
from src.analyzer.usage import UsageClassifier

TARGET = TargetSpec(('Target',))


def run(line: int, *args) -> Call:
    """Target.run(...) call at ``line``."""
    return Call(
        namespace=('Target',),
        name='run',
        args=args or (Leaf('x', meta=Position(line, 11, line, 12)),),
        meta=Position(line, 0, line, 13),
    )


def other(name: str, line: int, *args) -> Call:
    return Call(name=name, args=args, meta=Position(line, 0, line, 20))


def ok(line: int) -> Leaf:
    return Leaf(':ok', meta=Position(line, 0, line, 3))


def function(*statements) -> FunctionDefinition:
    return FunctionDefinition(name='subject', params=(Leaf('x'),), body=Block(tuple(statements)))


def issues_for(*statements):
    return UnusedCallCollector(TARGET).collect(function(*statements))


@pytest.fixture
def classifier():
    return UsageClassifier()


class TestScenarios:
    """End-to-end behaviour of the collector on small function bodies."""

    def test_sole_statement_is_not_flagged(self):
        assert issues_for(run(1)) == []

    def test_discarded_before_another_statement_is_flagged(self):
        call = run(1)
        issues = issues_for(call, ok(2))
        assert [issue.call for issue in issues] == [call]
        assert issues[0].function == 'subject'

    def test_assigned_then_returned_is_not_flagged(self):
        assignment = Assignment(Leaf('result'), run(1), meta=Position(1, 0, 1, 20))
        assert issues_for(assignment, Leaf('result', meta=Position(2, 0, 2, 6))) == []

    def test_non_final_pipeline_stage_in_tail_is_not_flagged(self):
        pipeline = Pipeline((Leaf('x'), run(1), other('inspect', 1)), meta=Position(1, 0, 1, 30))
        assert issues_for(pipeline) == []

    def test_final_pipeline_stage_outside_tail_is_flagged(self):
        call = run(1)
        pipeline = Pipeline((Leaf('x'), call), meta=Position(1, 0, 1, 20))
        issues = issues_for(pipeline, ok(2))
        assert [issue.call for issue in issues] == [call]

    def test_branch_tail_of_tail_conditional_is_not_flagged(self):
        conditional = Conditional(
            subject=Leaf('cond'),
            branches=(Block((run(2),)), Block((Leaf(':noop'),))),
            meta=Position(1, 0, 4, 3),
        )
        assert issues_for(conditional) == []

    def test_branch_of_non_tail_conditional_is_flagged(self):
        call = run(2)
        conditional = Conditional(
            subject=Leaf('cond'),
            branches=(Block((call,)), Block((Leaf(':noop'),))),
            meta=Position(1, 0, 4, 3),
        )
        issues = issues_for(conditional, ok(5))
        assert [issue.call for issue in issues] == [call]

    def test_sibling_chain_does_not_hide_discarded_call(self):
        call = run(3)
        chain = Pipeline(
            (other('open', 2, Leaf('path')), Call(name='read', is_method=True, meta=Position(2, 0, 2, 18))),
            meta=Position(2, 0, 2, 18),
        )
        conditional = Conditional(subject=Leaf('data'), branches=(Block((chain, call)),), meta=Position(1, 0, 3, 20))
        issues = issues_for(conditional, ok(4))
        assert [issue.call for issue in issues] == [call]

    def test_sibling_chain_in_tail_branch_does_not_hide_discarded_call(self):
        call = run(2)
        chain = Pipeline(
            (other('open', 3, Leaf('path')), Call(name='read', is_method=True, meta=Position(3, 0, 3, 18))),
            meta=Position(3, 0, 3, 18),
        )
        conditional = Conditional(subject=Leaf('data'), branches=(Block((call, chain)),), meta=Position(1, 0, 3, 20))
        issues = issues_for(conditional)
        assert [issue.call for issue in issues] == [call]


class TestUsageRules:
    """One test (or a pair) per syntactic shape."""

    def test_assignment_deep_in_value(self, classifier):
        call = run(1)
        statement = Assignment(Leaf('y'), Composite((Leaf('a'), other('wrap', 1, call))))
        assert classifier.is_used(call, ok(2), (statement, ok(2)))

    def test_conditional_subject(self, classifier):
        call = run(1)
        statement = Conditional(subject=call, branches=(Block((Leaf('a'),)),))
        assert classifier.is_used(call, ok(2), (statement, ok(2)))

    def test_conditional_skips_absent_branches(self, classifier):
        call = run(2)
        statement = Conditional(subject=Leaf('c'), branches=(None, Block((call,)), None))
        assert not classifier.is_used(call, ok(3), (statement, ok(3)))

    def test_conditional_clause_arm_branch(self, classifier):
        call = run(2)
        arms = (ClauseArm(pattern=(Leaf('{:ok, v}'),), body=Block((call,))),)
        statement = Conditional(subject=Leaf('v'), branches=(arms,), keyword='case')
        # In tail position the arm's last expression is the function's value
        assert classifier.is_used(call, statement, (statement,))
        assert not classifier.is_used(call, ok(3), (statement, ok(3)))

    def test_comprehension_generator(self, classifier):
        call = run(1)
        statement = Comprehension(clauses=(Composite((Leaf('x'), call)),), body=Block((Leaf('x'),)))
        assert classifier.is_used(call, ok(2), (statement, ok(2)))

    def test_comprehension_body(self, classifier):
        call = run(2)
        statement = Comprehension(clauses=(Leaf('x'),), body=Block((call,)))
        assert classifier.is_used(call, statement, (statement,))
        assert not classifier.is_used(call, ok(3), (statement, ok(3)))

    def test_dispatch_clause_pattern(self, classifier):
        call = run(1)
        statement = Dispatch((
            ClauseArm(pattern=(call,), body=Block((Leaf('a'),))),
            ClauseArm(pattern=(Leaf('true'),), body=Block((Leaf('b'),))),
        ))
        assert classifier.is_used(call, ok(3), (statement, ok(3)))

    def test_dispatch_clause_body(self, classifier):
        call = run(2)
        statement = Dispatch((
            ClauseArm(pattern=(Leaf('a'),), body=Block((Leaf('a'),))),
            ClauseArm(pattern=(Leaf('true'),), body=Block((call,))),
        ))
        assert classifier.is_used(call, statement, (statement,))
        assert not classifier.is_used(call, ok(3), (statement, ok(3)))

    def test_block_statement_uses_its_own_scope(self, classifier):
        call = run(1)
        inner = Block((Assignment(Leaf('y'), call), Leaf('y')))
        assert classifier.classify(inner, call, ok(2), (inner, ok(2)))

    def test_anonymous_function_tail(self, classifier):
        call = run(2)
        fn = AnonymousFunction((ClauseArm(pattern=(Leaf('x'),), body=Block((call,))),))
        statement = other('each', 1, Leaf('list'), fn)
        assert classifier.is_used(call, statement, (statement,))
        assert not classifier.is_used(call, ok(3), (statement, ok(3)))

    def test_anonymous_function_args_take_precedence(self, classifier):
        call = run(2)
        fn = AnonymousFunction((ClauseArm(pattern=(Leaf('x'),), body=Block((call, Leaf(':ok')))),))
        statement = other('each', 1, Leaf('list'), fn)
        # The call sits inside the fn, so only the fn's own rules decide
        assert not classifier.is_used(call, statement, (statement,))

    def test_clause_arm_pattern(self, classifier):
        call = run(1)
        arm = ClauseArm(pattern=(call,), body=Block((Leaf('a'),)))
        assert classifier.classify(arm, call, ok(2), (arm,))

    def test_pipeline_in_tail(self, classifier):
        call = run(1)
        pipeline = Pipeline((Leaf('x'), call))
        assert classifier.is_used(call, pipeline, (pipeline,))

    def test_pipeline_terminal_stage_outside_tail(self, classifier):
        call = run(1)
        pipeline = Pipeline((Leaf('x'), call))
        assert not classifier.is_used(call, ok(2), (pipeline, ok(2)))

    def test_pipeline_nested_in_terminal_stage_is_used(self, classifier):
        call = run(1)
        pipeline = Pipeline((Leaf('x'), other('wrap', 1, call)))
        assert classifier.is_used(call, ok(2), (pipeline, ok(2)))

    def test_binary_op(self, classifier):
        call = run(1)
        expression = BinaryOp('+', call, Leaf('"suffix"'))
        assert classifier.is_used(call, expression, (expression,))
        assert not classifier.is_used(call, ok(2), (expression, ok(2)))

    def test_call_argument(self, classifier):
        call = run(1)
        statement = other('inspect', 1, call)
        assert classifier.is_used(call, ok(2), (statement, ok(2)))

    def test_call_argument_nested_in_literal(self, classifier):
        call = run(1)
        statement = other('send', 1, Composite((Leaf('key'), call)))
        assert classifier.is_used(call, ok(2), (statement, ok(2)))

    def test_bare_call(self, classifier):
        call = run(1)
        assert not classifier.is_used(call, ok(2), (call, ok(2)))

    def test_composite(self, classifier):
        call = run(1)
        literal = Composite((Leaf('a'), Assignment(Leaf('b'), call)))
        assert classifier.is_used(call, ok(2), (literal, ok(2)))
        assert not classifier.is_used(call, ok(2), (Composite((Leaf('a'), call)), ok(2)))

    def test_unrecognised_shape(self, classifier):
        call = run(1)
        definition = FunctionDefinition(name='nested', body=Block((call,)))
        assert not classifier.classify(definition, call, ok(2), (definition, ok(2)))
        assert not classifier.classify(object(), call, ok(2), ())

    def test_call_outside_scope(self, classifier):
        assert not classifier.is_used(run(1), ok(2), (ok(2),))


def pipeline_sibling(line: int) -> Pipeline:
    trim = Call(name='trim', is_method=True, meta=Position(line, 0, line, 8))
    return Pipeline((Leaf('s'), trim), meta=Position(line, 0, line, 8))


def binary_sibling(line: int) -> BinaryOp:
    return BinaryOp('+', Leaf('a'), Leaf('b'), meta=Position(line, 0, line, 5))


def call_sibling(line: int) -> Call:
    return other('log', line, Leaf('x'))


def in_conditional(statements) -> Conditional:
    return Conditional(subject=Leaf('c'), branches=(Block(statements),))


def in_dispatch(statements) -> Dispatch:
    return Dispatch((
        ClauseArm(pattern=(Leaf('a'),), body=Block(statements)),
        ClauseArm(pattern=(Leaf('true'),), body=Block((Leaf('b'),))),
    ))


def in_clause_arm(statements) -> ClauseArm:
    return ClauseArm(pattern=(Leaf('v'),), body=Block(statements))


def in_block(statements) -> Block:
    return Block(statements)


@pytest.mark.parametrize('sibling', [pipeline_sibling, binary_sibling, call_sibling])
@pytest.mark.parametrize('container', [in_conditional, in_dispatch, in_clause_arm, in_block])
class TestSiblingStatements:
    """A neighbouring statement never decides for the statement holding the call."""

    def test_sibling_after_call_outside_tail(self, classifier, container, sibling):
        call = run(2)
        node = container((call, sibling(3)))
        assert not classifier.classify(node, call, ok(9), (node, ok(9)))

    def test_sibling_after_call_in_tail(self, classifier, container, sibling):
        call = run(2)
        node = container((call, sibling(3)))
        assert not classifier.classify(node, call, node, (node,))

    def test_sibling_before_call_outside_tail(self, classifier, container, sibling):
        call = run(3)
        node = container((sibling(2), call))
        assert not classifier.classify(node, call, ok(9), (node, ok(9)))


class TestCollector:
    """Collector properties."""

    def test_allowed_names_filter_candidates(self):
        walk_call = Call(namespace=('Target',), name='walk', args=(Leaf('x'),), meta=Position(1, 0, 1, 14))
        collector = UnusedCallCollector(TargetSpec(('Target',), frozenset({'run'})))
        issues = collector.collect(function(walk_call, run(2), ok(3)))
        assert [issue.call.name for issue in issues] == ['run']

    def test_other_namespaces_ignored(self):
        call = Call(namespace=('Other',), name='run', args=(), meta=Position(1, 0, 1, 11))
        assert issues_for(call, ok(2)) == []

    def test_source_order_preserved(self):
        first, second, third = run(1), run(2), run(3)
        issues = issues_for(first, second, third, ok(4))
        assert [issue.call for issue in issues] == [first, second, third]

    def test_identical_text_on_different_lines_is_distinct(self):
        # Only the second call is the tail; the first must still be reported
        first, second = run(1), run(2)
        issues = issues_for(first, second)
        assert [issue.call for issue in issues] == [first]

    def test_empty_body(self):
        assert UnusedCallCollector(TARGET).collect(FunctionDefinition(name='empty')) == []

    def test_nested_definitions_reported_once(self):
        call = run(2)
        inner = FunctionDefinition(name='inner', body=Block((call, ok(3))))
        outer = FunctionDefinition(name='outer', body=Block((inner, ok(4))))
        issues = UnusedCallCollector(TARGET).collect(outer)
        assert [(issue.function, issue.call) for issue in issues] == [('inner', call)]

    def test_tail_with_nested_block_is_searched(self):
        # A non-tail call inside the tail conditional's branch is still discarded
        call = run(2)
        conditional = Conditional(subject=Leaf('c'), branches=(Block((call, ok(3))),))
        issues = issues_for(conditional)
        assert [issue.call for issue in issues] == [call]

    def test_file_path_attached(self):
        issues = UnusedCallCollector(TARGET).collect(function(run(1), ok(2)), 'lib/thing.ex')
        assert issues[0].file_path == 'lib/thing.ex'

    def test_deep_nesting(self):
        """Hundreds of nesting levels must not hit the recursion limit."""
        call = run(1000)
        node = call
        for depth in range(600):
            node = Conditional(subject=Leaf(f'c{depth}'), branches=(Block((node,)),))
        issues = issues_for(node, ok(2000))
        assert [issue.call for issue in issues] == [call]
