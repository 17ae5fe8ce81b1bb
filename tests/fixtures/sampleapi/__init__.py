"""A tiny documented API used to exercise docstring splicing.

Pages in the test suite set ``CurrentModule = "sampleapi"`` and reference
the objects below from ``{docs}`` blocks and ``{ref}`` links.
"""

GREETING = "hello"
"""Word that [`greet`]({ref}) puts in front of every name."""

MAX_STEP: int = 5
"""Largest step accepted by `Counter.increment`."""

UNDOCUMENTED = 42


def greet(name: str) -> str:
    """Return a greeting for ``name``.

    ```python
    >>> from sampleapi import greet
    >>> greet("world")
    'hello, world'
    ```
    """
    return f"{GREETING}, {name}"


def shout(text):
    return text.upper()


class Counter:
    """Count upwards from a starting value.

    See [`Counter.increment`]({ref}) for the only way to change it.
    """

    limit = 10
    """Highest value a counter reaches."""

    def __init__(self, start: int = 0) -> None:
        self.value = start

    def increment(self, step: int = 1) -> int:
        """Add ``step`` to the counter and return the new value."""
        if step > MAX_STEP:
            msg = f"step {step} exceeds {MAX_STEP}"
            raise ValueError(msg)
        self.value = min(self.value + step, self.limit)
        return self.value

    @property
    def doubled(self) -> int:
        """Twice the current value."""
        return self.value * 2
