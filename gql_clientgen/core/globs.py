"""Glob pattern helpers shared by document discovery and the file watcher.

Patterns are matched against POSIX-style paths relative to the project root.
Supported syntax: ``*`` (within one segment), ``**`` (any number of
segments), ``?`` and ``{a,b}`` alternatives.
"""

import os
import re
from pathlib import Path

_GLOB_CHARS = set("*?[{")


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternatives, e.g. ``*.{ts,js}`` -> ``*.ts``, ``*.js``."""
    match = re.search(r"\{([^{}]*)\}", pattern)
    if not match:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end():]
    expanded = []
    for choice in match.group(1).split(","):
        expanded.extend(expand_braces(head + choice + tail))
    return expanded


def compile_glob(pattern: str) -> re.Pattern:
    """Translate a single (brace-free) glob into an anchored regex."""
    out = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(out) + r"\Z")


def static_root(pattern: str) -> str:
    """Return the leading directory of a pattern that contains no glob syntax."""
    parts = []
    for part in pattern.split("/"):
        if any(ch in _GLOB_CHARS for ch in part):
            break
        parts.append(part)
    else:
        # The whole pattern is literal; its parent is the directory to watch
        parts = parts[:-1]
    return "/".join(p for p in parts if p not in ("", ".")) or "."


def _normalize(pattern: str) -> str:
    pattern = pattern.replace("\\", "/")
    while pattern.startswith("./"):
        pattern = pattern[2:]
    return pattern


class GlobSet:
    """A set of include patterns minus a set of exclude patterns, rooted at a directory."""

    def __init__(self, includes: list[str], excludes: list[str] | None = None, root: str | Path = "."):
        self.root = Path(root).resolve()
        self.includes = [p for raw in includes for p in expand_braces(_normalize(raw))]
        self.excludes = [p for raw in (excludes or []) for p in expand_braces(_normalize(raw))]
        self._include_res = [compile_glob(p) for p in self.includes]
        self._exclude_res = [compile_glob(p) for p in self.excludes]

    def relative(self, path: str | Path) -> str | None:
        """Return path relative to the root in POSIX form, or None if outside it."""
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        try:
            return candidate.resolve().relative_to(self.root).as_posix()
        except ValueError:
            return None

    def is_excluded(self, rel_path: str) -> bool:
        """An exclude matches the path itself or any of its parent directories."""
        parts = rel_path.split("/")
        prefixes = ["/".join(parts[: i + 1]) for i in range(len(parts))]
        return any(rx.match(prefix) for rx in self._exclude_res for prefix in prefixes)

    def matches(self, path: str | Path) -> bool:
        """Check whether a path is included and not excluded."""
        rel_path = self.relative(path)
        if rel_path is None:
            return False
        if not any(rx.match(rel_path) for rx in self._include_res):
            return False
        return not self.is_excluded(rel_path)

    def files(self) -> list[Path]:
        """List matching files under the root, sorted by relative path."""
        found: dict[str, Path] = {}
        for pattern in self.includes:
            for path in self.root.glob(pattern):
                if not path.is_file():
                    continue
                rel_path = path.relative_to(self.root).as_posix()
                if rel_path not in found and not self.is_excluded(rel_path):
                    found[rel_path] = path
        return [found[key] for key in sorted(found)]

    def watch_roots(self) -> list[Path]:
        """Existing directories that cover every include pattern."""
        roots: list[Path] = []
        for pattern in self.includes:
            candidate = self.root / static_root(pattern)
            while not candidate.exists() and candidate != self.root:
                candidate = candidate.parent
            if candidate not in roots:
                roots.append(candidate)
        # Drop roots nested inside another root
        return [
            r for r in roots
            if not any(other != r and os.path.commonpath([other, r]) == str(other) for other in roots)
        ]
