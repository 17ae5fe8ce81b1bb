"""Common literal values used across facet.

These constants keep file extensions, manifest names, and directive markers
centralized so the build pipeline and tests import the same values without
drifting. Intended for internal use within the facet package.

Examples
--------
>>> from facet import _constants
>>> _constants.SOURCE_EXTENSION
'.md'
>>> sorted(_constants.DIRECTIVE_MARKERS)
['{contents}', '{docs}', '{index}', '{meta}']
"""

SOURCE_EXTENSION = ".md"
OUTPUT_EXTENSION = ".html"
ASSETS_DIRNAME = "assets"
MANIFEST_FILENAME = ".facet-manifest.json"

META_MARKER = "{meta}"
DOCS_MARKER = "{docs}"
INDEX_MARKER = "{index}"
CONTENTS_MARKER = "{contents}"
DIRECTIVE_MARKERS = frozenset({META_MARKER, DOCS_MARKER, INDEX_MARKER, CONTENTS_MARKER})

CURRENT_MODULE_KEY = "CurrentModule"
PAGES_KEY = "Pages"
DEPTH_KEY = "Depth"
DEFAULT_CONTENTS_DEPTH = 2
