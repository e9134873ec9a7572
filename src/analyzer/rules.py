"""Target specifications and the registry of preset unused-result rules.

Each rule names a family of functions whose return value is the whole point
of calling them (pure transformations, validations, formatters). Calling one
of them and dropping the result is almost always a bug.
"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from .syntax import Call


@dataclass(frozen=True)
class TargetSpec:
    """Qualified namespace path plus an optional allow-list of function names.

    An empty ``names`` set matches every function under ``path``.
    """
    path: Tuple[str, ...]
    names: FrozenSet[str] = frozenset()

    def matches(self, call: Call) -> bool:
        if call.name is None or call.head is not None or call.is_method:
            return False
        if call.namespace != self.path:
            return False
        return not self.names or call.name in self.names

    def __str__(self) -> str:
        module = '.'.join(self.path) or '<builtins>'
        if not self.names:
            return f"{module}:*"
        return f"{module}:{','.join(sorted(self.names))}"


def parse_target(text: str) -> TargetSpec:
    """Parse ``module.path[:fn1,fn2]`` into a TargetSpec.

    ``:len,sorted`` (empty module part) targets bare calls.

    Raises:
        ValueError: If the module path or a function name is not an identifier
    """
    raw = text.strip()
    if not raw:
        raise ValueError("Empty target specification")

    module, _, names_part = raw.partition(':')
    path = tuple(segment.strip() for segment in module.split('.')) if module.strip() else ()
    for segment in path:
        if not segment.isidentifier():
            raise ValueError(f"Invalid namespace segment {segment!r} in target {text!r}")

    names = frozenset(name.strip() for name in names_part.split(',') if name.strip())
    for name in names:
        if not name.isidentifier():
            raise ValueError(f"Invalid function name {name!r} in target {text!r}")

    if not path and not names:
        raise ValueError(f"Target {text!r} needs a namespace or at least one function name")

    return TargetSpec(path=path, names=names)


@dataclass(frozen=True)
class Rule:
    """A named unused-result check with one target per language."""
    id: str
    description: str
    targets: Dict[str, TargetSpec] = field(default_factory=dict, hash=False, compare=False)

    def target_for(self, language: str) -> Optional[TargetSpec]:
        """Return the target for ``language`` (tsx shares typescript's)."""
        if language in self.targets:
            return self.targets[language]
        if language == 'tsx' and 'typescript' in self.targets:
            return self.targets['typescript']
        return self.targets.get('*')

    def message(self, call: Call) -> str:
        return f"The result of {call.qualified_name}() is discarded. {self.description}"


def _js(target: TargetSpec) -> Dict[str, TargetSpec]:
    return {'javascript': target, 'typescript': target}


BUILTIN_RULES: List[Rule] = [
    Rule(
        id='unused-os-path-operation',
        description="os.path functions only compute paths, they never touch the filesystem state.",
        targets={'python': TargetSpec(('os', 'path'))},
    ),
    Rule(
        id='unused-copy-operation',
        description="Copies are returned, the original object is left untouched.",
        targets={'python': TargetSpec(('copy',), frozenset({'copy', 'deepcopy'}))},
    ),
    Rule(
        id='unused-re-operation',
        description="Regular expression helpers return their result instead of modifying the input.",
        targets={'python': TargetSpec(('re',), frozenset({
            'sub', 'subn', 'match', 'search', 'fullmatch', 'findall',
            'finditer', 'split', 'escape', 'compile',
        }))},
    ),
    Rule(
        id='unused-json-operation',
        description="Serialisation helpers return the encoded or decoded value.",
        targets={
            'python': TargetSpec(('json',), frozenset({'dumps', 'loads'})),
            **_js(TargetSpec(('JSON',), frozenset({'stringify', 'parse'}))),
        },
    ),
    Rule(
        id='unused-dataclasses-operation',
        description="dataclasses helpers build new objects, they do not mutate their argument.",
        targets={'python': TargetSpec(('dataclasses',), frozenset({'replace', 'asdict', 'astuple'}))},
    ),
    Rule(
        id='unused-itertools-operation',
        description="itertools functions return lazy iterators that do nothing unless consumed.",
        targets={'python': TargetSpec(('itertools',))},
    ),
    Rule(
        id='unused-builtin-operation',
        description="This builtin is pure: its only effect is the value it returns.",
        targets={'python': TargetSpec((), frozenset({
            'sorted', 'reversed', 'len', 'abs', 'min', 'max', 'sum', 'map',
            'filter', 'zip', 'enumerate', 'round', 'repr',
        }))},
    ),
    Rule(
        id='unused-object-operation',
        description="Object helpers return a new value and leave the object unchanged.",
        targets=_js(TargetSpec(('Object',), frozenset({
            'keys', 'values', 'entries', 'fromEntries', 'getOwnPropertyNames', 'is',
        }))),
    ),
    Rule(
        id='unused-array-operation',
        description="Array constructors and predicates return their result.",
        targets=_js(TargetSpec(('Array',), frozenset({'from', 'of', 'isArray'}))),
    ),
    Rule(
        id='unused-math-operation',
        description="Math functions are pure.",
        targets=_js(TargetSpec(('Math',))),
    ),
    Rule(
        id='unused-number-operation',
        description="Number parsing and predicates return their result.",
        targets=_js(TargetSpec(('Number',), frozenset({
            'parseInt', 'parseFloat', 'isNaN', 'isFinite', 'isInteger', 'isSafeInteger',
        }))),
    ),
    Rule(
        id='unused-path-operation',
        description="path functions only compute paths, they never touch the filesystem.",
        targets=_js(TargetSpec(('path',), frozenset({
            'join', 'resolve', 'basename', 'dirname', 'extname', 'normalize', 'relative',
        }))),
    ),
]

CUSTOM_RULE_ID = 'unused-custom-operation'


def custom_rules(targets: Iterable[TargetSpec]) -> List[Rule]:
    """Wrap user-supplied targets in rules that apply to every language."""
    return [
        Rule(
            id=CUSTOM_RULE_ID,
            description=f"Configured target {target}.",
            targets={'*': target},
        )
        for target in targets
    ]


def rule_ids() -> List[str]:
    return [rule.id for rule in BUILTIN_RULES]


def select_rules(enabled: Optional[Iterable[str]] = None,
                 disabled: Iterable[str] = ()) -> List[Rule]:
    """Pick preset rules by id, keeping registry order.

    Args:
        enabled: Ids to keep (None keeps all)
        disabled: Ids to drop afterwards

    Raises:
        ValueError: If an id is not a known rule
    """
    known = set(rule_ids())
    enabled = list(enabled) if enabled is not None else None
    disabled = list(disabled)
    unknown = [rule_id for rule_id in (enabled or []) + disabled if rule_id not in known]
    if unknown:
        raise ValueError(f"Unknown rule id(s): {', '.join(unknown)}")

    selected = []
    for rule in BUILTIN_RULES:
        if enabled is not None and rule.id not in enabled:
            continue
        if rule.id in disabled:
            continue
        selected.append(rule)
    return selected
