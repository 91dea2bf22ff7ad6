"""Replacement and bind-parameter processing.

Replacements (``:name`` or ``?``) are inlined into the SQL text as escaped
literals before dispatch. Bind parameters (``$name`` or ``$1``) are rewritten
into the driver's native placeholder with an ordered value list.

Both rewrites only touch executable SQL: string literals, quoted identifiers
and comments are left untouched, and PostgreSQL ``::typecast`` is not mistaken
for a named replacement.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from sqlweave.core.exceptions import UsageError

if TYPE_CHECKING:
    from sqlweave.dialects.base import QueryGenerator

# Matches :name but not ::typecast and not inside words
_NAMED_PATTERN = re.compile(r"(?<![:\w]):([a-zA-Z_]\w*)")

_POSITIONAL_PATTERN = re.compile(r"\?")

# $$ (escaped dollar), $1 (positional) or $name (named)
_BIND_PATTERN = re.compile(r"\$(\$|\d+|[a-zA-Z_]\w*)")

_QUOTES = {"'": "string", '"': "identifier", "`": "identifier"}


def tokenize(sql: str) -> list[tuple[str, str]]:
    """Split *sql* into ``(kind, text)`` tokens.

    Kinds are ``'code'``, ``'string'``, ``'identifier'`` and ``'comment'``.
    Quoted tokens use doubled-quote escapes. An unterminated literal runs to
    the end of the text; the backend reports the syntax error.
    """
    tokens: list[tuple[str, str]] = []
    i = 0
    n = len(sql)
    last = 0

    while i < n:
        ch = sql[i]
        if ch in _QUOTES:
            if i > last:
                tokens.append(("code", sql[last:i]))
            j = i + 1
            while j < n:
                if sql[j] == ch:
                    j += 1
                    if j >= n or sql[j] != ch:
                        break  # end of quoted token
                    j += 1  # doubled quote escape
                else:
                    j += 1
            tokens.append((_QUOTES[ch], sql[i:j]))
            last = i = j
        elif sql.startswith("--", i):
            if i > last:
                tokens.append(("code", sql[last:i]))
            j = sql.find("\n", i)
            j = n if j == -1 else j
            tokens.append(("comment", sql[i:j]))
            last = i = j
        elif sql.startswith("/*", i):
            if i > last:
                tokens.append(("code", sql[last:i]))
            j = sql.find("*/", i + 2)
            j = n if j == -1 else j + 2
            tokens.append(("comment", sql[i:j]))
            last = i = j
        else:
            i += 1

    if last < n:
        tokens.append(("code", sql[last:]))

    return tokens


def inject_replacements(
    sql: str,
    generator: QueryGenerator,
    replacements: Mapping[str, Any] | Sequence[Any],
) -> str:
    """Inline *replacements* into *sql* as dialect-escaped literals.

    A mapping fills ``:name`` placeholders, a list or tuple fills ``?``
    placeholders from left to right.

    Raises:
        UsageError: If a placeholder has no matching replacement value.
    """
    if isinstance(replacements, Mapping):
        def named(match: re.Match[str]) -> str:
            name = match.group(1)
            if name not in replacements:
                raise UsageError(
                    f"Named replacement ':{name}' has no entry in the replacement map."
                )
            return generator.escape(replacements[name])

        return _rewrite_code(sql, _NAMED_PATTERN, named)

    if isinstance(replacements, (list, tuple)):
        position = 0

        def positional(match: re.Match[str]) -> str:
            nonlocal position
            if position >= len(replacements):
                raise UsageError(
                    f"Replacement ? at position {position} has no matching value "
                    f"({len(replacements)} value(s) supplied)."
                )
            value = replacements[position]
            position += 1
            return generator.escape(value)

        return _rewrite_code(sql, _POSITIONAL_PATTERN, positional)

    raise UsageError(
        f"replacements must be a mapping or a list, got {type(replacements).__name__}"
    )


def format_bind_parameters(
    sql: str,
    bind: Mapping[str, Any] | Sequence[Any],
    generator: QueryGenerator,
) -> tuple[str, list[Any]]:
    """Rewrite ``$name`` / ``$1`` placeholders into the driver's native syntax.

    Returns:
        The rewritten SQL and the bind values in placeholder order.

    Raises:
        UsageError: If a placeholder has no matching bind value.
    """
    if not isinstance(bind, (Mapping, list, tuple)):
        raise UsageError(f"bind must be a mapping or a list, got {type(bind).__name__}")

    if generator.paramstyle == "format":
        # pyformat drivers treat every % in the statement text as a marker
        sql = sql.replace("%", "%%")

    values: list[Any] = []

    def substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key == "$":
            return "$"
        if key.isdigit():
            if isinstance(bind, Mapping):
                if key not in bind:
                    raise UsageError(f"Named bind parameter '${key}' has no value.")
                value = bind[key]
            else:
                index = int(key) - 1
                if index < 0 or index >= len(bind):
                    raise UsageError(
                        f"Positional bind parameter '${key}' has no value "
                        f"({len(bind)} value(s) supplied)."
                    )
                value = bind[index]
        else:
            if not isinstance(bind, Mapping):
                raise UsageError(
                    f"Named bind parameter '${key}' requires bind to be a mapping."
                )
            if key not in bind:
                raise UsageError(f"Named bind parameter '${key}' has no value.")
            value = bind[key]
        values.append(value)
        return generator.bind_placeholder(len(values))

    return _rewrite_code(sql, _BIND_PATTERN, substitute), values


def _rewrite_code(sql: str, pattern: re.Pattern[str], replace: Any) -> str:
    parts: list[str] = []
    for kind, content in tokenize(sql):
        if kind == "code":
            parts.append(pattern.sub(replace, content))
        else:
            parts.append(content)
    return "".join(parts)
