"""Syntax check and gofmt formatting of generated Go source."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Protocol

from wsdl2go.errors import FormatterUnavailable, GeneratedSyntaxError

logger = logging.getLogger(__name__)

_CLOSERS = {")": "(", "]": "[", "}": "{"}


class Formatter(Protocol):
    def format(self, source: str) -> str:
        ...


def check_syntax(source: str) -> None:
    """Lexical well-formedness check of a complete Go file.

    Verifies the package clause, that comments, strings and runes are
    terminated, and that brackets balance. Raises GeneratedSyntaxError with
    a numbered listing of source on the first problem.
    """
    stack: list[tuple[str, int]] = []
    line = 1
    i, n = 0, len(source)
    first_token = ""

    def fail(reason: str) -> None:
        raise GeneratedSyntaxError(f"line {line}: {reason}", source)

    while i < n:
        c = source[i]
        if c == "\n":
            line += 1
            i += 1
        elif source.startswith("//", i):
            end = source.find("\n", i)
            i = n if end < 0 else end
        elif source.startswith("/*", i):
            end = source.find("*/", i + 2)
            if end < 0:
                fail("comment not terminated")
            line += source.count("\n", i, end)
            i = end + 2
        elif c == "`":
            end = source.find("`", i + 1)
            if end < 0:
                fail("raw string literal not terminated")
            line += source.count("\n", i, end)
            i = end + 1
        elif c in "\"'":
            i += 1
            while i < n and source[i] != c:
                if source[i] == "\n":
                    fail("newline in string")
                i += 2 if source[i] == "\\" else 1
            if i >= n:
                fail("string literal not terminated")
            i += 1
        elif c in "([{":
            stack.append((c, line))
            i += 1
        elif c in ")]}":
            if not stack or stack[-1][0] != _CLOSERS[c]:
                fail(f"unexpected {c!r}")
            stack.pop()
            i += 1
        else:
            if not first_token and not c.isspace():
                first_token = source[i:i + 8]
            i += 1

    if stack:
        opener, opened = stack[-1]
        line = opened
        fail(f"unclosed {opener!r}")
    if not first_token.startswith("package "):
        line = 1
        fail("expected 'package' clause")


def find_gofmt() -> str | None:
    goroot = os.environ.get("GOROOT")
    if goroot:
        candidate = Path(goroot) / "bin" / "gofmt"
        if candidate.is_file():
            return str(candidate)
    return shutil.which("gofmt")


class GoFmt:
    """Pipes source through the gofmt binary."""

    def __init__(self, binary: str | None = None) -> None:
        self.binary = binary

    def format(self, source: str) -> str:
        binary = self.binary or find_gofmt()
        if not binary:
            raise FormatterUnavailable("gofmt not found: set GOROOT or add it to PATH")
        logger.debug("formatting with %s", binary)
        try:
            result = subprocess.run(
                [binary], input=source, capture_output=True, text=True, check=False,
            )
        except OSError as exc:
            raise FormatterUnavailable(f"cannot run {binary}: {exc}") from exc
        if result.returncode != 0:
            raise GeneratedSyntaxError(result.stderr.strip() or "gofmt failed", source)
        return result.stdout


class PassThrough:
    """Leaves source untouched."""

    def format(self, source: str) -> str:
        return source


def format_source(source: str, formatter: Formatter) -> str:
    """Check source, then hand the complete unit to the formatter."""
    check_syntax(source)
    return formatter.format(source)
