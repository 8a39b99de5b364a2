"""
TERM ALGEBRA: Morphism terms of a free copy/discard category

Terms are built from generators with:
- Sequential composition  f ; g        (Compose)
- Parallel composition    f ⊗ g        (Tensor)
- Identities              id[A₁,…,Aₙ]  (Identity)
- Symmetry                σ[X|Y]       (Swap)
- Duplication             Δ[A]: A → A⊗A (Duplicate)
- Deletion                ◇[A]: A → I   (Delete)

Every term carries a domain and codomain (tuples of objects) computed
structurally. Ill-typed terms cannot be constructed.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union
from dataclasses import dataclass
from abc import ABC, abstractmethod

from .errors import TypeMismatch


# ============================================================================
# OBJECTS & GENERATORS
# ============================================================================

@dataclass(frozen=True)
class Ob:
    """
    Object of a theory: a named variable-kind such as Number or Bool.
    Identity is the name.
    """
    name: str

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise ValueError(f"Object name must be a non-empty string, got {self.name!r}")

    def __str__(self) -> str:
        return self.name


Objects = Tuple[Ob, ...]
ObjectsLike = Union[Ob, Iterable[Ob]]


def as_objects(objects: ObjectsLike) -> Objects:
    """Normalize an object or sequence of objects into a tuple of Ob"""
    if isinstance(objects, Ob):
        return (objects,)
    if isinstance(objects, str):
        raise TypeError(
            f"Expected Ob or a sequence of Ob, got string {objects!r}; "
            "resolve names through a Presentation"
        )
    result = tuple(objects)
    for obj in result:
        if not isinstance(obj, Ob):
            raise TypeError(f"Expected Ob, got {type(obj).__name__}: {obj!r}")
    return result


def format_objects(objects: Sequence[Ob]) -> str:
    """Render an object sequence, with I for the monoidal unit"""
    if not objects:
        return "I"
    return "⊗".join(obj.name for obj in objects)


@dataclass(frozen=True)
class Generator:
    """
    Generating morphism g: A₁⊗…⊗Aₙ → B₁⊗…⊗Bₘ.
    Immutable signature record; owned by exactly one presentation.
    """
    name: str
    dom: Objects
    cod: Objects

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise ValueError(f"Generator name must be a non-empty string, got {self.name!r}")
        object.__setattr__(self, "dom", as_objects(self.dom))
        object.__setattr__(self, "cod", as_objects(self.cod))

    @property
    def signature(self) -> str:
        return f"{self.name}: {format_objects(self.dom)} → {format_objects(self.cod)}"

    def __str__(self) -> str:
        return self.signature


# ============================================================================
# TERM NODES
# ============================================================================

class Term(ABC):
    """
    Morphism expression. Subclasses are frozen dataclasses, so Python
    equality is syntactic tree equality; use structurally_equal for the
    algebraic notion.
    """

    @property
    @abstractmethod
    def dom(self) -> Objects:
        pass

    @property
    @abstractmethod
    def cod(self) -> Objects:
        pass

    def then(self, other: "Term") -> "Term":
        """Sequential composition self ; other"""
        return compose(self, other)

    def tensor(self, other: "Term") -> "Term":
        """Parallel composition self ⊗ other"""
        return tensor(self, other)

    @property
    def type_signature(self) -> str:
        return f"{format_objects(self.dom)} → {format_objects(self.cod)}"


@dataclass(frozen=True)
class Identity(Term):
    objects: Objects

    def __post_init__(self):
        object.__setattr__(self, "objects", as_objects(self.objects))

    @property
    def dom(self) -> Objects:
        return self.objects

    @property
    def cod(self) -> Objects:
        return self.objects

    def __str__(self) -> str:
        return f"id[{format_objects(self.objects)}]"


@dataclass(frozen=True)
class GeneratorRef(Term):
    generator: Generator

    def __post_init__(self):
        if not isinstance(self.generator, Generator):
            raise TypeError(f"Expected Generator, got {type(self.generator).__name__}")

    @property
    def name(self) -> str:
        return self.generator.name

    @property
    def dom(self) -> Objects:
        return self.generator.dom

    @property
    def cod(self) -> Objects:
        return self.generator.cod

    def __str__(self) -> str:
        return self.generator.name


@dataclass(frozen=True)
class Compose(Term):
    """Sequential composition: first, then second"""
    first: Term
    second: Term

    def __post_init__(self):
        _require_term(self.first)
        _require_term(self.second)
        if self.first.cod != self.second.dom:
            raise TypeMismatch(
                f"Cannot compose {self.first} : {self.first.type_signature} with "
                f"{self.second} : {self.second.type_signature}: codomain "
                f"{format_objects(self.first.cod)} ≠ domain {format_objects(self.second.dom)}",
                expected=self.second.dom,
                actual=self.first.cod,
            )

    @property
    def dom(self) -> Objects:
        return self.first.dom

    @property
    def cod(self) -> Objects:
        return self.second.cod

    def __str__(self) -> str:
        return f"({self.first} ; {self.second})"


@dataclass(frozen=True)
class Tensor(Term):
    """Parallel composition: left ⊗ right"""
    left: Term
    right: Term

    def __post_init__(self):
        _require_term(self.left)
        _require_term(self.right)

    @property
    def dom(self) -> Objects:
        return self.left.dom + self.right.dom

    @property
    def cod(self) -> Objects:
        return self.left.cod + self.right.cod

    def __str__(self) -> str:
        return f"({self.left} ⊗ {self.right})"


@dataclass(frozen=True)
class Swap(Term):
    """Symmetry σ: left ⊗ right → right ⊗ left (left/right are object blocks)"""
    left: Objects
    right: Objects

    def __post_init__(self):
        object.__setattr__(self, "left", as_objects(self.left))
        object.__setattr__(self, "right", as_objects(self.right))

    @property
    def dom(self) -> Objects:
        return self.left + self.right

    @property
    def cod(self) -> Objects:
        return self.right + self.left

    def __str__(self) -> str:
        return f"σ[{format_objects(self.left)}|{format_objects(self.right)}]"


@dataclass(frozen=True)
class Duplicate(Term):
    """Δ[A]: A → A ⊗ A"""
    obj: Ob

    def __post_init__(self):
        _require_ob(self.obj)

    @property
    def dom(self) -> Objects:
        return (self.obj,)

    @property
    def cod(self) -> Objects:
        return (self.obj, self.obj)

    def __str__(self) -> str:
        return f"Δ[{self.obj}]"


@dataclass(frozen=True)
class Delete(Term):
    """◇[A]: A → I"""
    obj: Ob

    def __post_init__(self):
        _require_ob(self.obj)

    @property
    def dom(self) -> Objects:
        return (self.obj,)

    @property
    def cod(self) -> Objects:
        return ()

    def __str__(self) -> str:
        return f"◇[{self.obj}]"


def _require_term(value) -> None:
    if not isinstance(value, Term):
        raise TypeError(f"Expected Term, got {type(value).__name__}: {value!r}")


def _require_ob(value) -> None:
    if not isinstance(value, Ob):
        raise TypeError(f"Expected Ob, got {type(value).__name__}: {value!r}")


# ============================================================================
# COMBINATORS
# ============================================================================

def identity(objects: ObjectsLike) -> Identity:
    return Identity(as_objects(objects))


def generator_ref(generator: Generator) -> GeneratorRef:
    return GeneratorRef(generator)


def compose(f: Term, g: Term) -> Compose:
    """f ; g, requires cod(f) == dom(g) (raises TypeMismatch)"""
    return Compose(f, g)


def tensor(f: Term, g: Term) -> Tensor:
    return Tensor(f, g)


def swap(left: ObjectsLike, right: ObjectsLike) -> Swap:
    return Swap(as_objects(left), as_objects(right))


def duplicate(obj: Ob) -> Duplicate:
    return Duplicate(obj)


def delete(obj: Ob) -> Delete:
    return Delete(obj)


def domain_of(term: Term) -> Objects:
    return term.dom


def codomain_of(term: Term) -> Objects:
    return term.cod


def compose_all(terms: Sequence[Term], dom: Optional[ObjectsLike] = None) -> Term:
    """
    Fold a composition chain left to right, skipping identities.
    An empty (or all-identity) chain yields the identity on dom, or on the
    domain of the first term when dom is omitted.
    """
    terms = list(terms)
    if dom is None:
        if not terms:
            raise ValueError("compose_all of an empty chain needs an explicit domain")
        dom = terms[0].dom
    current = as_objects(dom)
    result: Optional[Term] = None
    for term in terms:
        _require_term(term)
        if term.dom != current:
            raise TypeMismatch(
                f"Cannot compose {format_objects(current)} into {term} : {term.type_signature}",
                expected=term.dom,
                actual=current,
            )
        current = term.cod
        if isinstance(term, Identity):
            continue
        result = term if result is None else compose(result, term)
    if result is None:
        return identity(dom)
    return result


def tensor_all(terms: Sequence[Term]) -> Term:
    """Fold a tensor product left to right, merging adjacent identities"""
    merged: List[Term] = []
    for term in terms:
        _require_term(term)
        if isinstance(term, Identity):
            if not term.objects:
                continue
            if merged and isinstance(merged[-1], Identity):
                merged[-1] = Identity(merged[-1].objects + term.objects)
                continue
        merged.append(term)
    if not merged:
        return identity(())
    result = merged[0]
    for term in merged[1:]:
        result = tensor(result, term)
    return result


def copies(obj: Ob, count: int) -> Term:
    """
    A → A^⊗count built from Δ and ◇:
    0 deletes, 1 is the identity, n ≥ 2 is a chain of duplications.
    """
    if count < 0:
        raise ValueError(f"Copy count must be non-negative, got {count}")
    if count == 0:
        return delete(obj)
    if count == 1:
        return identity([obj])
    result: Term = duplicate(obj)
    for made in range(2, count):
        # Split the last copy again
        result = compose(result, tensor_all([identity([obj] * (made - 1)), duplicate(obj)]))
    return result


def permutation(objects: ObjectsLike, order: Sequence[int]) -> Term:
    """
    Permutation morphism: output position j carries input position order[j].
    Built from block swaps, one per out-of-place position.
    """
    objects = as_objects(objects)
    n = len(objects)
    if sorted(order) != list(range(n)):
        raise ValueError(f"{list(order)} is not a permutation of {n} positions")

    current = list(range(n))
    layers: List[Term] = []
    for target_pos, wanted in enumerate(order):
        pos = current.index(wanted)
        if pos == target_pos:
            continue
        # Move the wire at pos leftwards past the block [target_pos, pos)
        block = [objects[i] for i in current[target_pos:pos]]
        moved = objects[current[pos]]
        prefix = [objects[i] for i in current[:target_pos]]
        suffix = [objects[i] for i in current[pos + 1:]]
        layers.append(tensor_all([
            identity(prefix), swap(block, [moved]), identity(suffix)
        ]))
        current = current[:target_pos] + [wanted] + current[target_pos:pos] + current[pos + 1:]
    return compose_all(layers, dom=objects)


def rewire(objects: ObjectsLike, picks: Sequence[int]) -> Term:
    """
    Structural morphism objects → [objects[i] for i in picks].
    Positions picked several times are duplicated, positions never picked are
    deleted, then the copies are permuted into place.
    """
    objects = as_objects(objects)
    for index in picks:
        if not 0 <= index < len(objects):
            raise IndexError(f"Pick {index} is out of range for {len(objects)} wires")

    counts = [0] * len(objects)
    for index in picks:
        counts[index] += 1
    fan_out = tensor_all([copies(obj, counts[i]) for i, obj in enumerate(objects)])

    # After fan-out, copies of each source sit together in source order
    slots: Dict[int, List[int]] = {}
    position = 0
    for i, count in enumerate(counts):
        slots[i] = list(range(position, position + count))
        position += count
    order = [slots[index].pop(0) for index in picks]
    shuffle = permutation(fan_out.cod, order)
    return compose_all([fan_out, shuffle], dom=objects)


# ============================================================================
# INSPECTION
# ============================================================================

def flatten_compose(term: Term) -> List[Term]:
    """Factors of a composition chain, flattened by associativity"""
    if isinstance(term, Compose):
        return flatten_compose(term.first) + flatten_compose(term.second)
    return [term]


def flatten_tensor(term: Term) -> List[Term]:
    """Factors of a tensor product, flattened by associativity"""
    if isinstance(term, Tensor):
        return flatten_tensor(term.left) + flatten_tensor(term.right)
    return [term]


def children(term: Term) -> Tuple[Term, ...]:
    if isinstance(term, Compose):
        return (term.first, term.second)
    if isinstance(term, Tensor):
        return (term.left, term.right)
    return ()


def generators_of(term: Term) -> List[Generator]:
    """Distinct generators referenced by a term, in first-use order"""
    seen: Dict[str, Generator] = {}
    stack = [term]
    while stack:
        node = stack.pop()
        if isinstance(node, GeneratorRef):
            seen.setdefault(node.name, node.generator)
        stack.extend(reversed(children(node)))
    return list(seen.values())


def objects_of(term: Term) -> Set[Ob]:
    """Every object mentioned anywhere in a term"""
    found: Set[Ob] = set()
    stack = [term]
    while stack:
        node = stack.pop()
        found.update(node.dom)
        found.update(node.cod)
        stack.extend(children(node))
    return found


def term_size(term: Term) -> int:
    """Number of nodes in the term tree"""
    size = 0
    stack = [term]
    while stack:
        node = stack.pop()
        size += 1
        stack.extend(children(node))
    return size


def structurally_equal(t1: Term, t2: Term) -> bool:
    """
    Equality in the free symmetric monoidal category with copy and discard.

    Both terms are evaluated to string diagrams and compared up to
    isomorphism, which makes ∘ and ⊗ associative, identities neutral,
    the interchange law hold, and Δ satisfy its counit, coassociativity and
    cocommutativity laws. User equations are never consulted.
    """
    from .wiring import diagrams_isomorphic, to_wiring

    if t1.dom != t2.dom or t1.cod != t2.cod:
        return False
    if t1 == t2:
        return True
    return diagrams_isomorphic(to_wiring(t1), to_wiring(t2))
