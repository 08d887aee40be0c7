"""Dependency manifest recognition and validation.

The registry maps manifest file names to project types with ``fnmatch``
patterns. It only looks at the final path component, so
``services/api/package.json`` is recognised as an npm manifest.
"""

from __future__ import annotations

import dataclasses
import fnmatch
from pathlib import PurePosixPath

import msgspec

from depwatch.projects.errors import ManifestParseError

_DEFAULT_PATTERNS: tuple[tuple[str, str], ...] = (
    ("Gemfile", "RubyGem"),
    ("Gemfile.lock", "RubyGem"),
    ("*.gemspec", "RubyGem"),
    ("package.json", "npm"),
    ("bower.json", "Bower"),
    ("pom.xml", "Maven2"),
    ("build.gradle", "Gradle"),
    ("composer.json", "composer"),
    ("composer.lock", "composer"),
    ("requirements.txt", "PIP"),
    ("setup.py", "PIP"),
    ("Pipfile", "PIP"),
    ("project.clj", "Lein"),
    ("Podfile", "CocoaPods"),
    ("Podfile.lock", "CocoaPods"),
    ("Cartfile", "Carthage"),
    ("Berksfile", "Berkshelf"),
    ("metadata.rb", "Chef"),
    ("biicode.conf", "Biicode"),
    ("*.csproj", "Nuget"),
    ("packages.config", "Nuget"),
)

_JSON_MANIFESTS = frozenset(
    {"package.json", "bower.json", "composer.json", "composer.lock"}
)


def _basename(path: str) -> str:
    return PurePosixPath(path.strip().replace("\\", "/")).name


@dataclasses.dataclass(frozen=True, slots=True)
class ManifestRegistry:
    """Ordered set of ``(pattern, project_type)`` pairs; first match wins."""

    patterns: tuple[tuple[str, str], ...] = _DEFAULT_PATTERNS

    def type_by_filename(self, path: str) -> str | None:
        """Return the project type for *path*, or ``None`` if unrecognised."""
        name = _basename(path)
        if not name:
            return None
        for pattern, project_type in self.patterns:
            if fnmatch.fnmatchcase(name, pattern):
                return project_type
        return None

    def is_manifest(self, path: str) -> bool:
        """Return True when *path* names a recognised manifest."""
        return self.type_by_filename(path) is not None

    def with_pattern(self, pattern: str, project_type: str) -> ManifestRegistry:
        """Return a registry that also recognises *pattern*."""
        return dataclasses.replace(
            self, patterns=(*self.patterns, (pattern, project_type))
        )


DEFAULT_REGISTRY = ManifestRegistry()


def parse_manifest(filename: str, raw: bytes) -> str:
    """Decode and sanity-check manifest content.

    Parameters
    ----------
    filename
        Manifest path, used to pick format-specific checks.
    raw
        File content as returned by GitHub.

    Returns
    -------
    str
        The manifest text.

    Raises
    ------
    ManifestParseError
        If the content is not UTF-8, is blank, or a JSON manifest does not
        hold a JSON object.

    """
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ManifestParseError(filename, "content is not valid UTF-8") from exc

    if not text.strip():
        raise ManifestParseError(filename, "file is empty")

    if _basename(filename) in _JSON_MANIFESTS:
        try:
            document = msgspec.json.decode(raw)
        except msgspec.DecodeError as exc:
            raise ManifestParseError(filename, f"invalid JSON: {exc}") from exc
        if not isinstance(document, dict):
            raise ManifestParseError(filename, "expected a JSON object")

    return text
