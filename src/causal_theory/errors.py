"""
ERRORS: Failure taxonomy for theories, programs and homomorphisms

Every failure is local and synchronous: it is raised at the offending call and
names the object, generator, variable or equation responsible.
"""

from typing import Any, List, Optional, Sequence


class TheoryError(Exception):
    """Base class for every error raised by causal_theory"""


class NameCollision(TheoryError):
    """A name is already taken inside one presentation or binding scope"""

    def __init__(self, name: str, existing: str = "name", scope: str = ""):
        self.name = name
        self.existing = existing
        self.scope = scope
        where = f" in {scope}" if scope else ""
        super().__init__(f"'{name}' is already defined as {existing}{where}")


class UnknownObject(TheoryError):
    """Reference to an object absent from the presentation"""

    def __init__(self, name: str, scope: str = ""):
        self.name = name
        self.scope = scope
        where = f" in {scope}" if scope else ""
        super().__init__(f"Unknown object '{name}'{where}")


class UnknownGenerator(TheoryError):
    """Reference to a generator absent from the presentation"""

    def __init__(self, name: str, scope: str = "", detail: str = ""):
        self.name = name
        self.scope = scope
        where = f" in {scope}" if scope else ""
        suffix = f": {detail}" if detail else ""
        super().__init__(f"Unknown generator '{name}'{where}{suffix}")


class UnknownVariable(TheoryError):
    """Program argument or output that is not bound at the point of use"""

    def __init__(self, name: str, statement: Optional[int] = None):
        self.name = name
        self.statement = statement
        where = f" (statement {statement})" if statement is not None else ""
        super().__init__(f"Variable '{name}' is not bound{where}")


class TypeMismatch(TheoryError):
    """
    Domain/codomain disagreement.

    Raised at composition, equation declaration, program argument or output
    checking, and homomorphism translation.
    """

    def __init__(self, message: str, expected: Any = None, actual: Any = None,
                 subject: Optional[str] = None):
        self.expected = expected
        self.actual = actual
        self.subject = subject
        super().__init__(message)


class ArityMismatch(TheoryError):
    """Wrong number of arguments (or result names) for a generator invocation"""

    def __init__(self, generator: str, expected: int, actual: int, what: str = "arguments"):
        self.generator = generator
        self.expected = expected
        self.actual = actual
        self.what = what
        super().__init__(
            f"Generator '{generator}' expects {expected} {what}, got {actual}"
        )


class ValidationFailure(TheoryError):
    """
    Homomorphism validation failed.

    Carries the full list of issues so a front end can report each failing
    object, generator or equation.
    """

    def __init__(self, issues: Sequence[Any], source: str = "", target: str = ""):
        self.issues: List[Any] = list(issues)
        self.source = source
        self.target = target
        arrow = f" {source} → {target}" if source or target else ""
        details = "; ".join(str(issue) for issue in self.issues)
        super().__init__(f"Homomorphism{arrow} is invalid: {details}")

    @property
    def subjects(self) -> List[str]:
        """Names of the failing objects/generators/equations"""
        return [issue.subject for issue in self.issues]
