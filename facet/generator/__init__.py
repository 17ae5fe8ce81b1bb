"""Pipeline stages that expand, cross-reference, test and render facet pages."""

from .builder import DocumentBuilder, destination_for
from .cross_references import CrossReferenceResolver
from .doctests import DoctestVerifier
from .expander import BlockExpander
from .link_rewriter import RelativeLinkExtension
from .renderer import HtmlContentRenderer

__all__ = [
    "BlockExpander",
    "CrossReferenceResolver",
    "DoctestVerifier",
    "DocumentBuilder",
    "HtmlContentRenderer",
    "RelativeLinkExtension",
    "destination_for",
]
