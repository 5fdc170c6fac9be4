"""Semantic-version ordering used when searching release history.

Versions are compared component-wise as integers after splitting on ``.``.
Non-digit characters are stripped from each component (``0a`` -> ``0``) and
missing components count as 0, so ``1.2`` == ``1.2.0``. Versions that tie
numerically are ordered by their raw string so the result is deterministic.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import cmp_to_key

_NON_DIGIT = re.compile(r"\D")


def version_components(version: str) -> list[int]:
    """``"0.4.10"`` -> ``[0, 4, 10]``; ``"0.5.0a"`` -> ``[0, 5, 0]``."""
    components = []
    for part in version.split("."):
        digits = _NON_DIGIT.sub("", part)
        components.append(int(digits) if digits else 0)
    return components


def compare_versions(a: str, b: str) -> int:
    """Return negative, zero or positive as *a* sorts before, equal to, or after *b*."""
    a_parts = version_components(a)
    b_parts = version_components(b)
    width = max(len(a_parts), len(b_parts))
    a_parts += [0] * (width - len(a_parts))
    b_parts += [0] * (width - len(b_parts))
    if a_parts != b_parts:
        return -1 if a_parts < b_parts else 1
    if a == b:
        return 0
    return -1 if a < b else 1


def sort_versions_desc(versions: Iterable[str]) -> list[str]:
    """Deduplicate and sort *versions*, newest first."""
    return sorted(set(versions), key=cmp_to_key(compare_versions), reverse=True)


def newest_version(versions: Iterable[str]) -> str | None:
    ordered = sort_versions_desc(versions)
    return ordered[0] if ordered else None
