"""
HOMOMORPHISM ENGINE: Structure-preserving maps between presentations

A homomorphism F: C → D sends
- every object of C to an object of D
- every generator g: A₁⊗…⊗Aₙ → B₁⊗…⊗Bₘ of C to a term of D with type
  F(A₁)⊗…⊗F(Aₙ) → F(B₁)⊗…⊗F(Bₘ)

and is valid when it is total, type-preserving, and sends every equation
of C to an equation that holds in D (structural equality extended by D's
own equations, see rewriting.py).

Refinement grows a target theory so that an existing generator becomes a
derived quantity: add the finer generators, then refine(D, g, composite).
"""

from typing import Dict, List, Mapping, Optional, Tuple, Union
from dataclasses import dataclass
from enum import Enum
import logging

from .errors import (
    TheoryError, TypeMismatch, UnknownGenerator, UnknownObject, ValidationFailure,
)
from .presentation import Equation, ObjectRef, Presentation
from .rewriting import EqualityVerdict, EquationalChecker, RewriteConfig
from .term import (
    Compose, Delete, Duplicate, Generator, GeneratorRef, Identity, Ob, Objects,
    Swap, Tensor, Term,
    compose, delete, duplicate, format_objects, identity, swap, tensor,
)

logger = logging.getLogger(__name__)


# ============================================================================
# VALIDATION ISSUES
# ============================================================================

class IssueKind(Enum):
    MISSING_OBJECT = "missing_object"
    MISSING_GENERATOR = "missing_generator"
    UNKNOWN_TARGET_OBJECT = "unknown_target_object"
    FOREIGN_TERM = "foreign_term"
    TYPE_MISMATCH = "type_mismatch"
    EQUATION_FAILED = "equation_failed"
    EQUATION_UNDECIDED = "equation_undecided"
    EXTRA_ENTRY = "extra_entry"


@dataclass(frozen=True)
class ValidationIssue:
    """One failed check, naming the object/generator/equation responsible"""
    kind: IssueKind
    subject: str
    message: str

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.subject}: {self.message}"


# ============================================================================
# HOMOMORPHISM
# ============================================================================

class Homomorphism:
    """
    Object map + generator map from source to target.

    Construction does no checking; check() and validate() are pure and
    may be called any number of times.
    """

    def __init__(
        self,
        source: Presentation,
        target: Presentation,
        object_map: Mapping[str, ObjectRef],
        generator_map: Mapping[str, Term],
        config: Optional[RewriteConfig] = None
    ):
        self.source = source
        self.target = target
        self.object_map: Dict[str, ObjectRef] = dict(object_map)
        self.generator_map: Dict[str, Term] = dict(generator_map)
        self.config = config or RewriteConfig()

    def __repr__(self) -> str:
        return f"Homomorphism({self.source.name!r} → {self.target.name!r})"

    # ------------------------------------------------------------------
    # Translation
    # ------------------------------------------------------------------

    def map_object(self, obj: Union[str, Ob]) -> Ob:
        name = obj.name if isinstance(obj, Ob) else obj
        if name not in self.object_map:
            raise UnknownObject(name, "object map")
        image = self.object_map[name]
        return image if isinstance(image, Ob) else Ob(image)

    def map_objects(self, objects: Objects) -> Objects:
        return tuple(self.map_object(obj) for obj in objects)

    def map_generator(self, name: str) -> Term:
        if name not in self.generator_map:
            raise UnknownGenerator(name, "generator map")
        return self.generator_map[name]

    def translate(self, term: Term) -> Term:
        """
        Substitute generator images and map the objects of structural
        nodes. Raises TypeMismatch if ill-typed images do not compose.
        """
        if isinstance(term, GeneratorRef):
            return self.map_generator(term.name)
        if isinstance(term, Identity):
            return identity(self.map_objects(term.objects))
        if isinstance(term, Compose):
            return compose(self.translate(term.first), self.translate(term.second))
        if isinstance(term, Tensor):
            return tensor(self.translate(term.left), self.translate(term.right))
        if isinstance(term, Swap):
            return swap(self.map_objects(term.left), self.map_objects(term.right))
        if isinstance(term, Duplicate):
            return duplicate(self.map_object(term.obj))
        if isinstance(term, Delete):
            return delete(self.map_object(term.obj))
        raise TypeError(f"Unknown term node {type(term).__name__}")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def check(self) -> Tuple[bool, List[ValidationIssue]]:
        """
        Run totality, type-preservation and equation-preservation checks.
        Returns (valid, issues).
        """
        issues: List[ValidationIssue] = []
        issues.extend(self._check_objects())
        issues.extend(self._check_generators())

        # Equation images are only meaningful once every generator image is well-typed
        if not issues:
            issues.extend(self._check_equations())

        if issues:
            logger.info("%r invalid: %d issue(s)", self, len(issues))
        else:
            logger.info("%r valid", self)
        return not issues, issues

    def validate(self) -> "Homomorphism":
        """Return self if valid, else raise ValidationFailure listing every issue"""
        valid, issues = self.check()
        if not valid:
            raise ValidationFailure(issues, self.source.name, self.target.name)
        return self

    def is_valid(self) -> bool:
        return self.check()[0]

    def _check_objects(self) -> List[ValidationIssue]:
        issues = []
        for obj in self.source.all_objects():
            if obj.name not in self.object_map:
                issues.append(ValidationIssue(
                    IssueKind.MISSING_OBJECT, obj.name, "object has no image"
                ))
                continue
            image = self.map_object(obj)
            if not self.target.has_object(image.name):
                issues.append(ValidationIssue(
                    IssueKind.UNKNOWN_TARGET_OBJECT, obj.name,
                    f"image '{image.name}' is not an object of {self.target.label}"
                ))
        for name in self.object_map:
            if not self.source.has_object(name):
                issues.append(ValidationIssue(
                    IssueKind.EXTRA_ENTRY, name, f"not an object of {self.source.label}"
                ))
        return issues

    def _check_generators(self) -> List[ValidationIssue]:
        issues = []
        for generator in self.source.all_generators():
            if generator.name not in self.generator_map:
                issues.append(ValidationIssue(
                    IssueKind.MISSING_GENERATOR, generator.name, "generator has no image"
                ))
                continue
            issue = self._check_image(generator, self.generator_map[generator.name])
            if issue is not None:
                issues.append(issue)
        for name in self.generator_map:
            if not self.source.has_generator(name):
                issues.append(ValidationIssue(
                    IssueKind.EXTRA_ENTRY, name, f"not a generator of {self.source.label}"
                ))
        return issues

    def _check_image(self, generator: Generator, image: Term) -> Optional[ValidationIssue]:
        if not isinstance(image, Term):
            return ValidationIssue(
                IssueKind.FOREIGN_TERM, generator.name,
                f"image must be a Term, got {type(image).__name__}"
            )
        try:
            self.target.resolve_term(image)
        except TheoryError as e:
            return ValidationIssue(IssueKind.FOREIGN_TERM, generator.name, str(e))

        try:
            expected_dom = self.map_objects(generator.dom)
            expected_cod = self.map_objects(generator.cod)
        except UnknownObject:
            # Already reported as a missing object
            return None
        if image.dom != expected_dom or image.cod != expected_cod:
            return ValidationIssue(
                IssueKind.TYPE_MISMATCH, generator.name,
                f"image {image} has type {image.type_signature}, expected "
                f"{format_objects(expected_dom)} → {format_objects(expected_cod)}"
            )
        return None

    def _check_equations(self) -> List[ValidationIssue]:
        issues = []
        checker = EquationalChecker(self.target, self.config)
        for equation in self.source.all_equations():
            try:
                lhs = self.translate(equation.lhs)
                rhs = self.translate(equation.rhs)
            except TheoryError as e:
                issues.append(ValidationIssue(IssueKind.EQUATION_FAILED, equation.name, str(e)))
                continue

            try:
                result = checker.check(lhs, rhs)
            except TheoryError as e:
                logger.warning("equation %s: search failed: %s", equation.name, e)
                issues.append(ValidationIssue(
                    IssueKind.EQUATION_UNDECIDED, equation.name,
                    f"could not decide {lhs} = {rhs} in {self.target.label} ({e})"
                ))
                continue
            logger.debug("equation %s ↦ %s = %s: %s (%s)",
                         equation.name, lhs, rhs, result.verdict.value, result.reason)
            if result.verdict is EqualityVerdict.NOT_EQUAL:
                issues.append(ValidationIssue(
                    IssueKind.EQUATION_FAILED, equation.name,
                    f"{lhs} ≠ {rhs} in {self.target.label} ({result.reason})"
                ))
            elif result.verdict is EqualityVerdict.UNDECIDED:
                issues.append(ValidationIssue(
                    IssueKind.EQUATION_UNDECIDED, equation.name,
                    f"could not decide {lhs} = {rhs} in {self.target.label} ({result.reason})"
                ))
        return issues

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def then(self, other: "Homomorphism") -> "Homomorphism":
        """Composite homomorphism self ; other : source → other.target"""
        if other.source is not self.target:
            raise ValueError(
                f"Cannot compose {self!r} with {other!r}: "
                f"{other.source.label} is not {self.target.label}"
            )
        object_map = {name: other.map_object(self.map_object(name)) for name in self.object_map}
        generator_map = {
            name: other.translate(image) for name, image in self.generator_map.items()
        }
        return Homomorphism(self.source, other.target, object_map, generator_map, self.config)


def build_homomorphism(
    source: Presentation,
    target: Presentation,
    object_map: Mapping[str, ObjectRef],
    generator_map: Mapping[str, Term],
    config: Optional[RewriteConfig] = None
) -> Homomorphism:
    """Construct and validate; raises ValidationFailure"""
    return Homomorphism(source, target, object_map, generator_map, config).validate()


def identity_homomorphism(presentation: Presentation) -> Homomorphism:
    return Homomorphism(
        presentation,
        presentation,
        {obj.name: obj for obj in presentation.all_objects()},
        {gen.name: GeneratorRef(gen) for gen in presentation.all_generators()},
    )


# ============================================================================
# REFINEMENT
# ============================================================================

def refine(
    presentation: Presentation,
    generator: Union[str, Generator],
    rhs: Term,
    name: Optional[str] = None
) -> Equation:
    """
    Identify an existing generator with a composite: adds g = rhs.

    Mutates presentation in place; deep_copy() first to keep a base intact.
    """
    gen_name = generator.name if isinstance(generator, Generator) else generator
    own = presentation.lookup_generator(gen_name)
    if isinstance(generator, Generator) and generator != own:
        raise UnknownGenerator(
            gen_name, presentation.label, f"signature does not match {own.signature}"
        )
    presentation.resolve_term(rhs)
    if rhs.dom != own.dom or rhs.cod != own.cod:
        raise TypeMismatch(
            f"Cannot refine {own.signature} by {rhs} : {rhs.type_signature}",
            expected=(own.dom, own.cod),
            actual=(rhs.dom, rhs.cod),
            subject=gen_name,
        )
    equation = presentation.add_equation(GeneratorRef(own), rhs, name)
    logger.info("%s: refined %s as %s", presentation.label, gen_name, rhs)
    return equation


class Refinement:
    """
    Two-step builder deriving a finer theory from a base theory.

    The base is deep-copied up front and never mutated. Add the new
    objects and generators, identify old generators with composites via
    refine(), then build() the refined presentation together with the
    validated inclusion base → refined.
    """

    def __init__(self, base: Presentation, name: Optional[str] = None):
        self.base = base
        self.presentation = base.deep_copy(name)

    def add_object(self, name: str) -> Ob:
        return self.presentation.add_object(name)

    def add_generator(self, name: str, dom=(), cod=()) -> Generator:
        return self.presentation.add_generator(name, dom, cod)

    def generator_ref(self, name: str) -> GeneratorRef:
        return self.presentation.generator_ref(name)

    def refine(self, generator: Union[str, Generator], rhs: Term,
               name: Optional[str] = None) -> Equation:
        return refine(self.presentation, generator, rhs, name)

    def embed(self, term: Term) -> Term:
        """Carry a base term into the refined theory (generators are shared)"""
        self.base.resolve_term(term)
        return self.presentation.resolve_term(term)

    def inclusion(self) -> Homomorphism:
        return Homomorphism(
            self.base,
            self.presentation,
            {obj.name: obj for obj in self.base.all_objects()},
            {gen.name: GeneratorRef(gen) for gen in self.base.all_generators()},
        )

    def build(self) -> Tuple[Presentation, Homomorphism]:
        return self.presentation, self.inclusion().validate()
