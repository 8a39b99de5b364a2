"""
PRESENTATION STORE: Objects, generators and equations of one theory

A presentation is the signature of a causal theory:
- Objects (variable kinds) and generators (causal processes) share one
  namespace, so a program statement always resolves unambiguously
- Equations assert that two parallel terms are the same process
- It only grows; every change is recorded in an audit log

Single-writer discipline: no internal locking. Hand a second party a
deep_copy() instead of sharing a live store.
"""

from typing import Dict, List, Optional, Sequence, Tuple, Union
from dataclasses import dataclass
from enum import Enum
import logging

from .errors import NameCollision, TypeMismatch, UnknownGenerator, UnknownObject
from .term import (
    Generator, GeneratorRef, Ob, Objects, Term,
    format_objects, generators_of, objects_of,
)

logger = logging.getLogger(__name__)

ObjectRef = Union[str, Ob]


# ============================================================================
# EQUATIONS & AUDIT LOG
# ============================================================================

@dataclass(frozen=True)
class Equation:
    """
    Assertion lhs = rhs between two parallel terms.
    Unordered: (lhs, rhs) and (rhs, lhs) state the same equation.
    """
    name: str
    lhs: Term
    rhs: Term

    @property
    def dom(self) -> Objects:
        return self.lhs.dom

    @property
    def cod(self) -> Objects:
        return self.lhs.cod

    def same_as(self, lhs: Term, rhs: Term) -> bool:
        return (self.lhs, self.rhs) in ((lhs, rhs), (rhs, lhs))

    def __str__(self) -> str:
        return f"{self.name}: {self.lhs} = {self.rhs}"


class MutationKind(Enum):
    OBJECT = "object"
    GENERATOR = "generator"
    EQUATION = "equation"


@dataclass(frozen=True)
class Mutation:
    """One entry of a presentation's audit log"""
    kind: MutationKind
    name: str
    detail: str = ""


# ============================================================================
# PRESENTATION
# ============================================================================

class Presentation:
    """
    Mutable registry of one theory's objects, generators and equations.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self.objects: Dict[str, Ob] = {}
        self.generators: Dict[str, Generator] = {}
        self.equations: List[Equation] = []
        self.history: List[Mutation] = []

    def __repr__(self) -> str:
        return (
            f"Presentation({self.name!r}, objects={len(self.objects)}, "
            f"generators={len(self.generators)}, equations={len(self.equations)})"
        )

    @property
    def label(self) -> str:
        return f"presentation '{self.name}'" if self.name else "presentation"

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _claim_name(self, name: str) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError(f"Names must be non-empty strings, got {name!r}")
        if name in self.objects:
            raise NameCollision(name, "an object", self.label)
        if name in self.generators:
            raise NameCollision(name, "a generator", self.label)

    def _record(self, kind: MutationKind, name: str, detail: str = "") -> None:
        self.history.append(Mutation(kind, name, detail))
        logger.debug("%s: added %s %s %s", self.label, kind.value, name, detail)

    def add_object(self, name: str) -> Ob:
        """Add an object; fails with NameCollision if the name is taken"""
        self._claim_name(name)
        obj = Ob(name)
        self.objects[name] = obj
        self._record(MutationKind.OBJECT, name)
        return obj

    def add_objects(self, *names: str) -> Tuple[Ob, ...]:
        return tuple(self.add_object(name) for name in names)

    def add_generator(
        self,
        name: str,
        dom: Sequence[ObjectRef] = (),
        cod: Sequence[ObjectRef] = ()
    ) -> Generator:
        """
        Add a generator name: dom → cod.

        Every domain/codomain entry must already be an object of this
        presentation (UnknownObject); the name must be fresh (NameCollision).
        """
        self._claim_name(name)
        generator = Generator(name, self.resolve_objects(dom), self.resolve_objects(cod))
        self.generators[name] = generator
        self._record(MutationKind.GENERATOR, name, generator.signature)
        return generator

    def add_equation(self, lhs: Term, rhs: Term, name: Optional[str] = None) -> Equation:
        """
        Record lhs = rhs.

        Both sides must be parallel (TypeMismatch otherwise) and refer only to
        this presentation's objects and generators. Nothing is proven here;
        consumers check equations when they need them. On failure the equation
        set is unchanged.

        Re-adding a recorded equation (either orientation) returns the existing
        record; giving it a different explicit name raises NameCollision.
        """
        self.resolve_term(lhs)
        self.resolve_term(rhs)
        if lhs.dom != rhs.dom or lhs.cod != rhs.cod:
            raise TypeMismatch(
                f"Equation sides are not parallel: {lhs} : {lhs.type_signature} vs "
                f"{rhs} : {rhs.type_signature}",
                expected=(lhs.dom, lhs.cod),
                actual=(rhs.dom, rhs.cod),
                subject=name,
            )

        for existing in self.equations:
            if existing.same_as(lhs, rhs):
                if name is not None and name != existing.name:
                    raise NameCollision(name, f"a new name for equation {existing.name}", self.label)
                return existing

        if name is None:
            name = self._fresh_equation_name()
        elif any(eq.name == name for eq in self.equations):
            raise NameCollision(name, "an equation", self.label)

        equation = Equation(name, lhs, rhs)
        self.equations.append(equation)
        self._record(MutationKind.EQUATION, name, f"{lhs} = {rhs}")
        return equation

    def _fresh_equation_name(self) -> str:
        taken = {eq.name for eq in self.equations}
        index = len(self.equations) + 1
        while f"eq{index}" in taken:
            index += 1
        return f"eq{index}"

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup_object(self, name: str) -> Ob:
        obj = self.objects.get(name)
        if obj is None:
            raise UnknownObject(name, self.label)
        return obj

    def lookup_generator(self, name: str) -> Generator:
        generator = self.generators.get(name)
        if generator is None:
            detail = "it names an object" if name in self.objects else ""
            raise UnknownGenerator(name, self.label, detail)
        return generator

    def has_object(self, name: str) -> bool:
        return name in self.objects

    def has_generator(self, name: str) -> bool:
        return name in self.generators

    def __contains__(self, name: str) -> bool:
        return name in self.objects or name in self.generators

    def generator_ref(self, name: str) -> GeneratorRef:
        """Term for a generator of this presentation, looked up by name"""
        return GeneratorRef(self.lookup_generator(name))

    def all_objects(self) -> List[Ob]:
        return list(self.objects.values())

    def all_generators(self) -> List[Generator]:
        return list(self.generators.values())

    def all_equations(self) -> List[Equation]:
        return list(self.equations)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_object(self, ref: ObjectRef) -> Ob:
        """Accept an object name or Ob and return this presentation's object"""
        if isinstance(ref, Ob):
            return self.lookup_object(ref.name)
        if isinstance(ref, str):
            return self.lookup_object(ref)
        raise TypeError(f"Expected object name or Ob, got {type(ref).__name__}: {ref!r}")

    def resolve_objects(self, refs: Union[ObjectRef, Sequence[ObjectRef]]) -> Objects:
        if isinstance(refs, (str, Ob)):
            refs = [refs]
        return tuple(self.resolve_object(ref) for ref in refs)

    def resolve_term(self, term: Term) -> Term:
        """
        Check that a term only mentions this presentation's objects and
        generators (with matching signatures). Returns the term unchanged.
        """
        if not isinstance(term, Term):
            raise TypeError(f"Expected Term, got {type(term).__name__}: {term!r}")
        for obj in objects_of(term):
            self.lookup_object(obj.name)
        for generator in generators_of(term):
            own = self.lookup_generator(generator.name)
            if own != generator:
                raise UnknownGenerator(
                    generator.name, self.label,
                    f"signature {format_objects(generator.dom)} → "
                    f"{format_objects(generator.cod)} does not match {own.signature}"
                )
        return term

    # ------------------------------------------------------------------
    # Copying
    # ------------------------------------------------------------------

    def deep_copy(self, name: Optional[str] = None) -> "Presentation":
        """
        Independent presentation with the same contents. Objects, generators
        and terms are immutable and therefore shared; every registry is fresh.
        """
        clone = Presentation(self.name if name is None else name)
        clone.objects = dict(self.objects)
        clone.generators = dict(self.generators)
        clone.equations = list(self.equations)
        clone.history = list(self.history)
        logger.debug("%s: deep-copied into %s", self.label, clone.label)
        return clone

    def __deepcopy__(self, memo) -> "Presentation":
        return self.deep_copy()

    def summary(self) -> str:
        lines = [f"{self.label}:"]
        lines.append("  objects: " + ", ".join(self.objects) if self.objects else "  objects: (none)")
        for generator in self.generators.values():
            lines.append(f"  {generator.signature}")
        for equation in self.equations:
            lines.append(f"  {equation}")
        return "\n".join(lines)
