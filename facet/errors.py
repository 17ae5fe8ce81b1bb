"""Fatal build errors raised by the facet pipeline.

Every error aborts the whole run; nothing is retried. Messages name the page
and, where one exists, the offending identifier or expression.
"""

from __future__ import annotations


class BuildError(RuntimeError):
    """Base class for every fatal documentation build error."""


class MissingSourceDirectoryError(BuildError):
    """Raised when the source (or configured assets) directory does not exist."""


class ReservedOutputPathError(BuildError):
    """Raised when a reserved output path such as ``build/assets`` already exists."""


class DuplicateHeaderIdError(BuildError):
    """Raised when two headers anywhere in the run share one id."""


class DuplicateDocumentationError(BuildError):
    """Raised when a symbol is spliced into the docs by more than one ``{docs}`` entry."""


class MissingDocumentationError(BuildError):
    """Raised when a ``{docs}`` entry names a symbol without documentation."""


class UnresolvedSymbolReferenceError(BuildError):
    """Raised when a ``{ref}`` link names a symbol no ``{docs}`` block documented."""


class UnresolvedHeaderReferenceError(BuildError):
    """Raised when a ``{ref}`` link names a header id that was never registered."""


class MalformedScriptDoctestError(BuildError):
    """Raised when a script doctest has zero or several ``# output:`` markers."""


class DoctestMismatchError(BuildError):
    """Raised when a doctest's rendered result is not a prefix of the expected text."""


class DirectiveEvaluationError(BuildError):
    """Raised when an expression inside a directive block cannot be evaluated."""


__all__ = [
    "BuildError",
    "DirectiveEvaluationError",
    "DoctestMismatchError",
    "DuplicateDocumentationError",
    "DuplicateHeaderIdError",
    "MalformedScriptDoctestError",
    "MissingDocumentationError",
    "MissingSourceDirectoryError",
    "ReservedOutputPathError",
    "UnresolvedHeaderReferenceError",
    "UnresolvedSymbolReferenceError",
]
