"""
Semantic version helpers and Cargo-style version requirements.

Parsing, ordering and range matching are delegated to ``semantic_version``;
this module only adapts Cargo's requirement syntax to ``SimpleSpec`` and adds
Cargo's pre-release opt-in rule.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from semantic_version import SimpleSpec, Version


_BLOCK_RE = re.compile(r"^(?P<op><=|>=|<|>|=|\^|~)?(?P<body>.*)$")

_WILDCARDS = ("*", "x", "X")


def parse_version(value) -> Version:
    """Parse a semver string (a leading ``v`` is tolerated).

    Raises:
        ValueError: if the value is not a valid semantic version
    """
    if isinstance(value, Version):
        return value
    text = str(value).strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    try:
        return Version(text)
    except ValueError as e:
        raise ValueError(f"Invalid semantic version: {value!r}") from e


def try_parse_version(value) -> Optional[Version]:
    """Parse a version, returning None instead of raising."""
    try:
        return parse_version(value)
    except ValueError:
        return None


def release(version: Version) -> Tuple[int, int, int]:
    return (version.major, version.minor, version.patch)


def precedence(version: Version) -> Version:
    """The version without build metadata, which never affects precedence."""
    return version.truncate("prerelease")


def _normalize_block(block: str) -> Tuple[str, Optional[Version]]:
    """Rewrite one Cargo comparator in ``SimpleSpec`` syntax.

    Returns the rewritten block and, when the comparator names a
    pre-release, that version.
    """
    match = _BLOCK_RE.match(block)
    op, body = match.group("op"), match.group("body")
    if not body:
        raise ValueError(f"Invalid version comparator: {block!r}")
    body = body[1:] if body[:1] in ("v", "V") else body
    parts = body.split(".")
    wildcard = any(part in _WILDCARDS for part in parts)
    if wildcard:
        body = ".".join("*" if part in _WILDCARDS else part for part in parts)

    if op is None:
        # bare versions are caret requirements, bare wildcards exact ones
        op = "==" if wildcard else "^"
    elif op == "=":
        op = "=="

    target = None
    if "-" in body.split("+", 1)[0]:
        target = Version(body)
    return op + body, target


class VersionReq:
    """A comma-separated conjunction of comparators (Cargo requirement syntax)."""

    def __init__(self, spec: SimpleSpec, prerelease_targets: Tuple[Version, ...], text: str) -> None:
        self.spec = spec
        self.prerelease_targets = prerelease_targets
        self.text = text

    @classmethod
    def parse(cls, text: str) -> "VersionReq":
        """Parse a requirement such as ``">= 1.2.3, < 1.4"``.

        Raises:
            ValueError: if any comparator is malformed
        """
        stripped = text.strip()
        if not stripped:
            raise ValueError("Empty version requirement")

        blocks: List[str] = []
        targets: List[Version] = []
        for part in re.sub(r"\s+", "", stripped).split(","):
            block, target = _normalize_block(part)
            blocks.append(block)
            if target is not None:
                targets.append(target)
        return cls(SimpleSpec(",".join(blocks)), tuple(targets), stripped)

    def matches(self, version) -> bool:
        version = parse_version(version)
        if not self.spec.match(version):
            return False
        if not version.prerelease:
            return True
        # pre-releases only match when a comparator names the same release
        return any(target.truncate() == version.truncate() for target in self.prerelease_targets)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"VersionReq({self.text!r})"
