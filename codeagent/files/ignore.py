"""Layered, exclude-only ignore rules in .gitignore syntax.

Each layer (built-in excludes, then caller patterns, then the repository's
.gitignore) is compiled with pathspec's git-compatible matcher. Layers are
combined with OR: a path is ignored when any layer excludes it. A negation
("!pattern") only re-includes paths excluded earlier in its own layer; it
never undoes another layer's exclusion.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List

import pathspec

LOG = logging.getLogger("codeagent.files.ignore")


@dataclass(frozen=True)
class IgnoreLayer:
    """One source of ignore rules, compiled."""

    source: str
    spec: pathspec.GitIgnoreSpec

    @property
    def size(self) -> int:
        """Number of effective patterns (comments and blanks excluded)."""
        return sum(1 for pattern in self.spec.patterns if pattern.include is not None)

    def matches(self, path: str) -> bool:
        return self.spec.match_file(path)


class IgnoreMatcher:
    """Ordered ignore layers; any excluding layer excludes a path."""

    def __init__(self) -> None:
        self._layers: List[IgnoreLayer] = []

    @property
    def layers(self) -> List[IgnoreLayer]:
        return list(self._layers)

    def add(self, patterns: str | Iterable[str], source: str = "custom") -> int:
        """Add a layer from a .gitignore-style text or a list of patterns.

        Returns the number of patterns in the new layer.
        """
        lines = patterns.splitlines() if isinstance(patterns, str) else list(patterns)
        layer = IgnoreLayer(source=source, spec=pathspec.GitIgnoreSpec.from_lines(lines))
        if layer.size == 0:
            return 0
        self._layers.append(layer)
        LOG.debug("Added %s ignore patterns from %s", layer.size, source)
        return layer.size

    def ignores(self, path: str) -> bool:
        """True if any layer excludes the workspace-relative path."""
        return any(layer.matches(path) for layer in self._layers)

    def filter(self, paths: Iterable[str]) -> List[str]:
        """Return paths not excluded by any layer, order preserved."""
        return [p for p in paths if not self.ignores(p)]
