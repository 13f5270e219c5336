"""Client-side carousel navigation over already fetched feedback.

Pure functions: they reorder an in-memory sequence and never touch the store.
"""
from typing import List, Sequence, TypeVar

T = TypeVar("T")


def rotate(items: Sequence[T], steps: int) -> List[T]:
    """Rotate left by `steps` (negative rotates right). The first item is the one shown."""
    if not items:
        return []
    offset = steps % len(items)
    return list(items[offset:]) + list(items[:offset])


def visible_window(items: Sequence[T], position: int, size: int = 3) -> List[T]:
    """
    Items shown when the carousel sits at `position`, wrapping around the end.

    With fewer items than `size` the sequence is repeated so the window stays full,
    the same way the carousel fills its slots with duplicates.
    """
    if not items or size <= 0:
        return []
    n = len(items)
    return [items[(position + i) % n] for i in range(size)]
