"""
EQUATIONAL EQUALITY: Deciding lhs = rhs modulo a presentation's equations

Equations are unordered, so there is no orientation to normalize towards.
Instead two terms are compared by a bounded, bidirectional breadth-first
search over their rewrite neighbourhoods:

- One rewrite step replaces a subterm structurally equal to one side of an
  equation by the other side. Subterms are tree nodes and every contiguous
  segment of a flattened ∘-chain or ⊗-product.
- Visited terms are deduplicated up to diagram isomorphism (cycle guard).
- The search stops with EQUAL when the two frontiers meet, NOT_EQUAL when
  one side runs out of rewrites, and UNDECIDED when the state
  budget or term size bound is hit. It never loops forever.

NOT_EQUAL is relative to segment matching: an equation side is only found
when it matches a tree node or a contiguous segment of a flattened chain or
product, so two terms equal in the full equational theory can still be
reported NOT_EQUAL when no such segment exposes the rewrite.
"""

from typing import Dict, Iterator, List, Optional, Tuple
from dataclasses import dataclass
from collections import deque
from enum import Enum
import logging

from .presentation import Presentation
from .term import (
    Compose, GeneratorRef, Tensor, Term,
    compose_all, flatten_compose, flatten_tensor, structurally_equal, tensor_all, term_size,
)
from .wiring import DiagramLabeler, WiringDiagram, diagrams_isomorphic, to_wiring

logger = logging.getLogger(__name__)

DEFAULT_MAX_STATES = 2000
DEFAULT_MAX_TERM_SIZE = 200


@dataclass
class RewriteConfig:
    """Search budget for equational checks"""
    max_states: int = DEFAULT_MAX_STATES
    max_term_size: int = DEFAULT_MAX_TERM_SIZE

    def __post_init__(self):
        if self.max_states < 2:
            raise ValueError(f"max_states must be at least 2, got {self.max_states}")
        if self.max_term_size < 1:
            raise ValueError(f"max_term_size must be positive, got {self.max_term_size}")


class EqualityVerdict(Enum):
    EQUAL = "equal"
    NOT_EQUAL = "not_equal"
    UNDECIDED = "undecided"


@dataclass
class EqualityResult:
    verdict: EqualityVerdict
    explored: int = 0
    reason: str = ""

    def __bool__(self) -> bool:
        return self.verdict is EqualityVerdict.EQUAL


@dataclass(frozen=True)
class _Rule:
    """One orientation of an equation"""
    name: str
    pattern: Term
    replacement: Term
    generators: Tuple[str, ...]


def _generator_multiset(term: Term) -> Tuple[str, ...]:
    names: List[str] = []
    stack = [term]
    while stack:
        node = stack.pop()
        if isinstance(node, GeneratorRef):
            names.append(node.name)
        elif isinstance(node, Compose):
            stack.extend((node.first, node.second))
        elif isinstance(node, Tensor):
            stack.extend((node.left, node.right))
    return tuple(sorted(names))


class _Visited:
    """Terms seen by one side of the search, bucketed by diagram invariant"""

    def __init__(self, labeler: DiagramLabeler):
        self.labeler = labeler
        self.buckets: Dict[Tuple, List[WiringDiagram]] = {}
        self.queue: deque = deque()
        self.truncated = False

    def find(self, diagram: WiringDiagram) -> bool:
        key = self.labeler.invariant_key(diagram)
        return any(
            diagrams_isomorphic(diagram, seen, self.labeler)
            for seen in self.buckets.get(key, ())
        )

    def add(self, term: Term, diagram: WiringDiagram) -> None:
        key = self.labeler.invariant_key(diagram)
        self.buckets.setdefault(key, []).append(diagram)
        self.queue.append(term)


class EquationalChecker:
    """
    Equality of terms over a presentation, extended by its equations.
    """

    def __init__(self, presentation: Presentation, config: Optional[RewriteConfig] = None):
        self.presentation = presentation
        self.config = config or RewriteConfig()
        self.labeler = DiagramLabeler()
        self.rules: List[_Rule] = []
        for equation in presentation.all_equations():
            for pattern, replacement in ((equation.lhs, equation.rhs), (equation.rhs, equation.lhs)):
                self.rules.append(_Rule(
                    equation.name, pattern, replacement, _generator_multiset(pattern)
                ))

    def equal(self, lhs: Term, rhs: Term) -> bool:
        return bool(self.check(lhs, rhs))

    def check(self, lhs: Term, rhs: Term) -> EqualityResult:
        if lhs.dom != rhs.dom or lhs.cod != rhs.cod:
            return EqualityResult(EqualityVerdict.NOT_EQUAL, 0, "terms are not parallel")
        if structurally_equal(lhs, rhs):
            return EqualityResult(EqualityVerdict.EQUAL, 0, "structurally equal")
        if not self.rules:
            return EqualityResult(EqualityVerdict.NOT_EQUAL, 0, "no equations to rewrite with")
        for rule in self.rules:
            if rule.pattern == lhs and rule.replacement == rhs:
                return EqualityResult(EqualityVerdict.EQUAL, 0, f"declared as {rule.name}")

        sides = (_Visited(self.labeler), _Visited(self.labeler))
        sides[0].add(lhs, to_wiring(lhs))
        sides[1].add(rhs, to_wiring(rhs))
        explored = 2

        while True:
            for side in sides:
                if not side.queue and not side.truncated:
                    logger.debug("equation search exhausted after %d states", explored)
                    return EqualityResult(
                        EqualityVerdict.NOT_EQUAL, explored,
                        "no further segment rewrites apply and the searches did not meet"
                    )
            if not sides[0].queue and not sides[1].queue:
                return EqualityResult(
                    EqualityVerdict.UNDECIDED, explored,
                    f"term size bound {self.config.max_term_size} reached"
                )

            # Expand the smaller frontier
            side, other = sides if (
                sides[0].queue and (len(sides[0].queue) <= len(sides[1].queue) or not sides[1].queue)
            ) else (sides[1], sides[0])
            term = side.queue.popleft()

            for neighbour in self.rewrites(term):
                if term_size(neighbour) > self.config.max_term_size:
                    side.truncated = True
                    continue
                diagram = to_wiring(neighbour)
                if side.find(diagram):
                    continue
                if other.find(diagram):
                    logger.debug("equation search met after %d states", explored)
                    return EqualityResult(EqualityVerdict.EQUAL, explored, "rewrite paths meet")
                side.add(neighbour, diagram)
                explored += 1
                if explored >= self.config.max_states:
                    logger.debug("equation search budget of %d states exhausted", explored)
                    return EqualityResult(
                        EqualityVerdict.UNDECIDED, explored,
                        f"state budget {self.config.max_states} exhausted"
                    )

    # ------------------------------------------------------------------
    # One-step rewrites
    # ------------------------------------------------------------------

    def rewrites(self, term: Term) -> Iterator[Term]:
        """Every term reachable from term by one equation application"""
        if isinstance(term, Compose):
            factors = flatten_compose(term)

            def rebuild(parts: List[Term]) -> Term:
                return compose_all(parts, dom=term.dom)

            def join(segment: List[Term]) -> Term:
                # An inner segment starts at its own first factor's domain
                return compose_all(segment, dom=segment[0].dom)
        elif isinstance(term, Tensor):
            factors = flatten_tensor(term)
            rebuild = join = tensor_all
        else:
            yield from self._replacements(term)
            return

        for start in range(len(factors)):
            for stop in range(start + 1, len(factors) + 1):
                segment = factors[start:stop]
                if len(segment) == 1:
                    candidate = segment[0]
                    if isinstance(candidate, (Compose, Tensor)):
                        continue
                else:
                    candidate = join(segment)
                for replacement in self._replacements(candidate):
                    yield rebuild(factors[:start] + [replacement] + factors[stop:])

        for position, factor in enumerate(factors):
            if not isinstance(factor, (Compose, Tensor)):
                continue
            for rewritten in self.rewrites(factor):
                yield rebuild(factors[:position] + [rewritten] + factors[position + 1:])

    def _replacements(self, candidate: Term) -> Iterator[Term]:
        generators = None
        for rule in self.rules:
            if rule.pattern.dom != candidate.dom or rule.pattern.cod != candidate.cod:
                continue
            if generators is None:
                generators = _generator_multiset(candidate)
            if rule.generators != generators:
                continue
            if structurally_equal(candidate, rule.pattern):
                yield rule.replacement
