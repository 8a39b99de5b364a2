"""
PROGRAM COMPILER: Imperative variable bindings → one composite term

A program reads like straight-line code over a presentation:

    inputs:  x : Number
    a := observed()
    b := neg(a)
    return b

Compilation threads a live tuple of named wires through the statements:
- Each statement copies out its arguments (Δ when a variable is still
  needed, reordering with σ) and runs the generator beside the kept wires
- The generator's outputs join the live tuple under the new names
- At the end, outputs are projected out; unused variables are deleted (◇)

The compiler depends on no surface syntax; a parser only has to produce
Binding and Statement values.
"""

from typing import Dict, List, Optional, Sequence, Set, Tuple, Union
from dataclasses import dataclass, field
import logging

from .errors import (
    ArityMismatch, NameCollision, TypeMismatch, TheoryError, UnknownVariable,
)
from .presentation import ObjectRef, Presentation
from .term import (
    Generator, GeneratorRef, Ob, Term,
    compose_all, format_objects, identity, rewire, tensor_all,
)

logger = logging.getLogger(__name__)


# ============================================================================
# PROGRAM AST
# ============================================================================

@dataclass(frozen=True)
class Binding:
    """Variable name with its object; obj=None on an output means 'infer'"""
    name: str
    obj: Optional[ObjectRef] = None


@dataclass(frozen=True)
class Statement:
    """
    targets := generator(args...)

    One target name per codomain object of the generator: a single-output
    generator binds one name, a zero-output generator binds none.
    """
    targets: Tuple[str, ...]
    generator: str
    args: Tuple[str, ...] = ()

    def __post_init__(self):
        targets = (self.targets,) if isinstance(self.targets, str) else tuple(self.targets)
        object.__setattr__(self, "targets", targets)
        object.__setattr__(self, "args", tuple(self.args))

    def __str__(self) -> str:
        lhs = ", ".join(self.targets) if self.targets else "_"
        return f"{lhs} := {self.generator}({', '.join(self.args)})"


def assign(target: str, generator: str, *args: str) -> Statement:
    """Shorthand for a single-target statement: target := generator(args...)"""
    return Statement((target,), generator, args)


BindingLike = Union[Binding, str, Tuple[str, ObjectRef]]


def as_binding(value: BindingLike) -> Binding:
    if isinstance(value, Binding):
        return value
    if isinstance(value, str):
        return Binding(value)
    if isinstance(value, tuple) and len(value) == 2:
        return Binding(value[0], value[1])
    raise TypeError(f"Expected Binding, name or (name, object), got {value!r}")


@dataclass
class Program:
    """Declared inputs, ordered statements and declared outputs"""
    inputs: List[Binding] = field(default_factory=list)
    statements: List[Statement] = field(default_factory=list)
    outputs: List[Binding] = field(default_factory=list)

    def __post_init__(self):
        self.inputs = [as_binding(b) for b in self.inputs]
        self.statements = list(self.statements)
        self.outputs = [as_binding(b) for b in self.outputs]

    def __str__(self) -> str:
        lines = ["(" + ", ".join(f"{b.name}: {b.obj}" for b in self.inputs) + ") ->"]
        lines.extend(f"  {stmt}" for stmt in self.statements)
        lines.append("  return " + ", ".join(b.name for b in self.outputs))
        return "\n".join(lines)


# ============================================================================
# COMPILER
# ============================================================================

@dataclass(frozen=True)
class _Slot:
    """One wire of the live tuple"""
    name: str
    obj: Ob


class ProgramCompiler:
    """
    Compiles programs against one fixed presentation.

    The result's domain is the declared input objects and its codomain the
    declared output objects, in order; anything else raises.
    """

    def __init__(self, presentation: Presentation):
        self.presentation = presentation

    def compile(self, program: Program) -> Term:
        live = self._bind_inputs(program.inputs)
        dom = tuple(slot.obj for slot in live)
        bound: Set[str] = {slot.name for slot in live}
        needed_after = self._liveness(program)
        steps: List[Term] = []

        for index, statement in enumerate(program.statements):
            generator = self._check_call(statement, index, live)
            for target in statement.targets:
                if target in bound:
                    raise NameCollision(target, "a variable", f"statement {index}")
                self._check_fresh(target)
            if len(set(statement.targets)) != len(statement.targets):
                raise NameCollision(statement.targets[0], "another result of the same statement",
                                    f"statement {index}")

            positions = {slot.name: i for i, slot in enumerate(live)}
            kept = [
                i for i, slot in enumerate(live)
                if slot.name not in statement.args or slot.name in needed_after[index]
            ]
            picks = kept + [positions[arg] for arg in statement.args]
            kept_objects = [live[i].obj for i in kept]

            steps.append(rewire([slot.obj for slot in live], picks))
            steps.append(tensor_all([identity(kept_objects), GeneratorRef(generator)]))

            live = [live[i] for i in kept] + [
                _Slot(name, obj) for name, obj in zip(statement.targets, generator.cod)
            ]
            bound.update(statement.targets)
            logger.debug("statement %d: %s; live = %s", index, statement,
                         [slot.name for slot in live])

        steps.append(self._project_outputs(program.outputs, live))
        term = compose_all(steps, dom=dom)
        logger.debug("compiled program to %s : %s", term, term.type_signature)
        return term

    def check(self, program: Program) -> Tuple[bool, List[str]]:
        """Validate a program without keeping the term: (valid, errors)"""
        try:
            self.compile(program)
        except TheoryError as e:
            return False, [str(e)]
        return True, []

    # ------------------------------------------------------------------

    def _bind_inputs(self, inputs: Sequence[Binding]) -> List[_Slot]:
        live: List[_Slot] = []
        seen: Set[str] = set()
        for binding in inputs:
            if binding.obj is None:
                raise ValueError(f"Input '{binding.name}' needs an object")
            if binding.name in seen:
                raise NameCollision(binding.name, "an input", "program inputs")
            self._check_fresh(binding.name)
            seen.add(binding.name)
            live.append(_Slot(binding.name, self.presentation.resolve_object(binding.obj)))
        return live

    def _check_fresh(self, name: str) -> None:
        if name in self.presentation:
            raise NameCollision(name, "a name of the theory", self.presentation.label)

    @staticmethod
    def _liveness(program: Program) -> List[Set[str]]:
        """needed_after[i]: variables read by statements after i or by the outputs"""
        needed: Set[str] = {b.name for b in program.outputs}
        needed_after: List[Set[str]] = [set() for _ in program.statements]
        for index in range(len(program.statements) - 1, -1, -1):
            needed_after[index] = set(needed)
            needed |= set(program.statements[index].args)
        return needed_after

    def _check_call(self, statement: Statement, index: int, live: List[_Slot]) -> Generator:
        generator = self.presentation.lookup_generator(statement.generator)
        if len(statement.args) != len(generator.dom):
            raise ArityMismatch(generator.name, len(generator.dom), len(statement.args))
        if len(statement.targets) != len(generator.cod):
            raise ArityMismatch(generator.name, len(generator.cod), len(statement.targets),
                                what="result names")

        objects: Dict[str, Ob] = {slot.name: slot.obj for slot in live}
        for position, (arg, expected) in enumerate(zip(statement.args, generator.dom)):
            if arg not in objects:
                raise UnknownVariable(arg, index)
            if objects[arg] != expected:
                raise TypeMismatch(
                    f"Argument {position} of {generator.name} in statement {index}: "
                    f"variable '{arg}' is {objects[arg]}, expected {expected}",
                    expected=expected,
                    actual=objects[arg],
                    subject=arg,
                )
        return generator

    def _project_outputs(self, outputs: Sequence[Binding], live: List[_Slot]) -> Term:
        positions = {slot.name: i for i, slot in enumerate(live)}
        picks: List[int] = []
        for binding in outputs:
            if binding.name not in positions:
                raise UnknownVariable(binding.name)
            slot = live[positions[binding.name]]
            if binding.obj is not None:
                expected = self.presentation.resolve_object(binding.obj)
                if slot.obj != expected:
                    raise TypeMismatch(
                        f"Output '{binding.name}' is {slot.obj}, expected {expected}",
                        expected=expected,
                        actual=slot.obj,
                        subject=binding.name,
                    )
            picks.append(positions[binding.name])

        dropped = [slot.name for i, slot in enumerate(live) if i not in picks]
        if dropped:
            logger.debug("deleting unused variables %s", dropped)
        projection = rewire([slot.obj for slot in live], picks)
        logger.debug("output projection %s : %s", projection,
                     format_objects(projection.cod))
        return projection


def compile_program(
    presentation: Presentation,
    inputs: Sequence[BindingLike],
    statements: Sequence[Statement],
    outputs: Sequence[BindingLike]
) -> Term:
    """Compile (inputs, statements, outputs) over a presentation into one term"""
    program = Program(list(inputs), list(statements), list(outputs))
    return ProgramCompiler(presentation).compile(program)
