r"""Run Python examples found in code blocks and check their recorded output.

Two shapes of example are executed; anything else is illustrative only.

Session examples contain ``>>> `` prompts. Each prompt starts a chunk whose
source continues over ``... `` lines; the lines after it, up to the next
prompt, are the expected output. Chunks share one namespace and ``_`` holds
the previous result. A trailing ``;`` suppresses the value display.

Script examples are plain code followed by a single ``# output:`` line and
the expected output of the final statement.

In both shapes the rendered result only has to be a prefix of the expected
text.

Example
-------
>>> from facet.generator.doctests import classify, split_session
>>> classify(">>> 1 + 1\n2\n")
'session'
>>> [(chunk.source, chunk.expected) for chunk in split_session(">>> 1 + 1\n2\n")]
[('1 + 1', '2')]
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ

from loguru import logger

from facet.document import walk
from facet.errors import DoctestMismatchError, MalformedScriptDoctestError
from facet.markdown_parser import read_code_block
from facet.runtime import Outcome, Sandbox, display, split_expressions

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from types import ModuleType

    from facet.document import PageState

PROMPT = ">>> "
CONTINUATION = "... "
SUPPRESS_TERMINATOR = ";"
SESSION_PATTERN = re.compile(r"^>>> ", re.MULTILINE)
SCRIPT_MARKER_PATTERN = re.compile(r"^# output:[ \t]*$", re.MULTILINE)
DEFAULT_LANGUAGES = ("python", "pycon")

Shape = typ.Literal["session", "script"]


@dc.dataclass(slots=True)
class SessionChunk:
    """Source after one prompt and the output the author recorded for it."""

    source: str
    expected: str


def classify(code: str) -> Shape | None:
    """Return the example shape of ``code``, or ``None`` for illustrative blocks."""
    if SESSION_PATTERN.search(code):
        return "session"
    if SCRIPT_MARKER_PATTERN.search(code):
        return "script"
    return None


def _is_prompt(line: str) -> bool:
    return line.startswith(PROMPT) or line == PROMPT.rstrip()


def _is_continuation(line: str) -> bool:
    return line.startswith(CONTINUATION) or line == CONTINUATION.rstrip()


def split_session(code: str) -> list[SessionChunk]:
    """Split a session transcript into prompt-delimited chunks."""
    chunks: list[tuple[list[str], list[str]]] = []
    for line in code.splitlines():
        if _is_prompt(line):
            chunks.append(([line[len(PROMPT) :]], []))
        elif not chunks:
            continue
        elif not chunks[-1][1] and _is_continuation(line):
            chunks[-1][0].append(line[len(CONTINUATION) :])
        else:
            chunks[-1][1].append(line)
    return [
        SessionChunk(source="\n".join(source), expected="\n".join(expected).strip("\n"))
        for source, expected in chunks
    ]


def split_script(code: str) -> tuple[str, str]:
    """Split a script example into its code and its expected output.

    Raises
    ------
    ValueError
        If the ``# output:`` marker does not appear exactly once.
    """
    parts = SCRIPT_MARKER_PATTERN.split(code)
    if len(parts) != 2:
        msg = f"expected exactly one '# output:' marker, found {len(parts) - 1}."
        raise ValueError(msg)
    source, expected = parts
    return source, expected.strip("\n")


def run_script(source: str, sandbox: Sandbox) -> Outcome:
    """Run each top-level statement in order, keeping the final outcome."""
    try:
        expressions = split_expressions(source)
    except SyntaxError as exc:
        return Outcome(error=exc)
    outcome = Outcome()
    output = ""
    for expression in expressions:
        outcome = sandbox.run(expression.source, filename="<script>")
        output += outcome.output
        if outcome.error is not None:
            break
    outcome.output = output
    return outcome


def matches(rendered: str, expected: str) -> bool:
    """Return whether ``expected`` starts with the rendered result."""
    return expected.startswith(rendered.strip("\n"))


class DoctestVerifier:
    """Execute every runnable example on every expanded page."""

    def __init__(
        self,
        *,
        default_module: ModuleType,
        languages: cabc.Iterable[str] = DEFAULT_LANGUAGES,
    ) -> None:
        self.default_module = default_module
        self.languages = frozenset(languages)

    def run(self, states: cabc.Iterable[PageState]) -> int:
        """Verify the examples of all pages, returning how many were executed.

        Raises
        ------
        DoctestMismatchError
            If an example's rendered result is not a prefix of its expected text.
        MalformedScriptDoctestError
            If a script example does not have exactly one ``# output:`` marker.
        """
        executed = 0
        for state in states:
            for element, _module in walk(state.blocks, self.default_module):
                sample = read_code_block(element)
                if sample is None or sample.language not in self.languages:
                    continue
                if self.verify(sample.code, page=state.source):
                    executed += 1
        return executed

    def verify(self, code: str, *, page: str) -> bool:
        """Verify one code block; return ``False`` when it is not executable."""
        shape = classify(code)
        if shape == "session":
            self._verify_session(code, page)
        elif shape == "script":
            self._verify_script(code, page)
        else:
            return False
        logger.debug("{} doctest passed in {}", shape, page)
        return True

    def _verify_session(self, code: str, page: str) -> None:
        sandbox = Sandbox()
        for chunk in split_session(code):
            outcome = sandbox.run(chunk.source, filename="<session>")
            show = not chunk.source.rstrip().endswith(SUPPRESS_TERMINATOR)
            rendered = display(outcome, show_value=show)
            if not matches(rendered, chunk.expected):
                self._fail(page, f">>> {chunk.source}", rendered, chunk.expected)

    def _verify_script(self, code: str, page: str) -> None:
        try:
            source, expected = split_script(code)
        except ValueError as exc:
            msg = f"malformed script doctest in '{page}': {exc}"
            raise MalformedScriptDoctestError(msg) from exc
        rendered = display(run_script(source, Sandbox()))
        if not matches(rendered, expected):
            self._fail(page, source.strip(), rendered, expected)

    @staticmethod
    def _fail(page: str, source: str, rendered: str, expected: str) -> typ.NoReturn:
        actual = rendered.strip("\n")
        msg = (
            f"doctest failed in '{page}':\n{source}\n"
            f"expected:\n{expected}\ngot:\n{actual}"
        )
        raise DoctestMismatchError(msg)


__all__ = [
    "DEFAULT_LANGUAGES",
    "DoctestVerifier",
    "SessionChunk",
    "classify",
    "matches",
    "run_script",
    "split_script",
    "split_session",
]
