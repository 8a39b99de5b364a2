"""
causal_theory: Presentations of causal theories and their composite models

Build a theory (objects, generators, equations), compile imperative
programs into composite morphisms, and validate homomorphisms between
theories, including refinements of one theory by a finer one.
"""

__version__ = "1.0.0"

from .errors import (
    TheoryError,
    NameCollision,
    UnknownObject,
    UnknownGenerator,
    UnknownVariable,
    TypeMismatch,
    ArityMismatch,
    ValidationFailure,
)

from .term import (
    Ob,
    Generator,
    Term,
    Identity,
    GeneratorRef,
    Compose,
    Tensor,
    Swap,
    Duplicate,
    Delete,
    identity,
    generator_ref,
    compose,
    compose_all,
    tensor,
    tensor_all,
    swap,
    duplicate,
    delete,
    copies,
    permutation,
    rewire,
    domain_of,
    codomain_of,
    structurally_equal,
)

from .presentation import (
    Presentation,
    Equation,
    Mutation,
    MutationKind,
)

from .program import (
    Binding,
    Statement,
    Program,
    ProgramCompiler,
    compile_program,
    assign,
)

from .rewriting import (
    RewriteConfig,
    EquationalChecker,
    EqualityVerdict,
    EqualityResult,
)

from .homomorphism import (
    Homomorphism,
    ValidationIssue,
    IssueKind,
    build_homomorphism,
    identity_homomorphism,
    refine,
    Refinement,
)

__all__ = [
    # Errors
    "TheoryError",
    "NameCollision",
    "UnknownObject",
    "UnknownGenerator",
    "UnknownVariable",
    "TypeMismatch",
    "ArityMismatch",
    "ValidationFailure",

    # Terms
    "Ob",
    "Generator",
    "Term",
    "Identity",
    "GeneratorRef",
    "Compose",
    "Tensor",
    "Swap",
    "Duplicate",
    "Delete",
    "identity",
    "generator_ref",
    "compose",
    "compose_all",
    "tensor",
    "tensor_all",
    "swap",
    "duplicate",
    "delete",
    "copies",
    "permutation",
    "rewire",
    "domain_of",
    "codomain_of",
    "structurally_equal",

    # Presentations
    "Presentation",
    "Equation",
    "Mutation",
    "MutationKind",

    # Programs
    "Binding",
    "Statement",
    "Program",
    "ProgramCompiler",
    "compile_program",
    "assign",

    # Equational reasoning
    "RewriteConfig",
    "EquationalChecker",
    "EqualityVerdict",
    "EqualityResult",

    # Homomorphisms
    "Homomorphism",
    "ValidationIssue",
    "IssueKind",
    "build_homomorphism",
    "identity_homomorphism",
    "refine",
    "Refinement",
]
