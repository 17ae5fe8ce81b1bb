"""Geometry helpers living in a submodule of :mod:`sampleapi`."""


def area(width: float, height: float) -> float:
    """Return the area of a ``width`` by ``height`` rectangle."""
    return width * height
