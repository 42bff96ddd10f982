"""
TypeScript source reader — top-level variable declarations of a module.

Not a TypeScript parser.  A small lexer strips comments and string,
template and regex literals, then the statement walker looks only at
nesting depth 0 for ``[export] [declare] const|let|var`` statements and
local ``export { ... }`` clauses.  That is all the extractor needs: the
name of each top-level binding, whether it is exported, and the text of
its initializer.

Malformed input never raises.  Unterminated literals run to end of file
and whatever declarations were recognised before that are returned.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from schemagen.core.errors import ScanError

logger = logging.getLogger(__name__)

# ── Lexer ──────────────────────────────────────────────────────────

_IDENT = re.compile(r"(?:[^\W\d]|\$)(?:\w|\$)*")
_NUMBER = re.compile(r"\d[\w.]*")
_PUNCT = re.compile(
    r"=>|===|!==|==|!=|<=|>=|\?\?=|\?\?|\?\.|\.\.\.|&&=|\|\|=|&&|\|\|"
    r"|\*\*=|\*\*|<<=|>>>=|>>=|<<|>>>|>>|\+\+|--|[-+*/%&|^]="
    r"|[{}()\[\];,<>=!?:.+\-*/%&|^~@#]"
)

_OPEN = {"(", "[", "{"}
_CLOSE = {")", "]", "}"}

# After these keywords a ``/`` starts a regex literal, not a division.
_REGEX_AFTER_KEYWORDS = {
    "return", "typeof", "case", "do", "else", "in", "instanceof", "new",
    "delete", "void", "throw", "yield", "await", "of",
}

_DECL_KEYWORDS = {"const", "let", "var"}


@dataclass(frozen=True)
class _Token:
    kind: str  # ident | punct | string | template | regex | number | newline
    text: str
    start: int
    end: int
    line: int


def tokenize(source: str) -> list[_Token]:
    """Split TypeScript source into tokens, dropping comments.

    Newlines are kept as ``newline`` tokens (collapsed) because the
    statement walker needs them for automatic semicolon insertion.
    """
    tokens: list[_Token] = []
    i = 0
    n = len(source)
    line = 1

    def add(kind: str, start: int, end: int, at_line: int) -> None:
        tokens.append(_Token(kind, source[start:end], start, end, at_line))

    def add_newline(at: int, at_line: int) -> None:
        if tokens and tokens[-1].kind == "newline":
            return
        add("newline", at, at + 1, at_line)

    while i < n:
        ch = source[i]

        if ch == "\n":
            add_newline(i, line)
            line += 1
            i += 1
            continue

        if ch in " \t\r\f\v\ufeff":
            i += 1
            continue

        if source.startswith("//", i):
            end = source.find("\n", i)
            i = n if end == -1 else end
            continue

        if source.startswith("/*", i):
            end = source.find("*/", i + 2)
            end = n if end == -1 else end + 2
            breaks = source.count("\n", i, end)
            if breaks:
                add_newline(i, line)
                line += breaks
            i = end
            continue

        if ch in "'\"":
            end = _skip_string(source, i)
            add("string", i, end, line)
            line += source.count("\n", i, end)
            i = end
            continue

        if ch == "`":
            end = _skip_template(source, i)
            add("template", i, end, line)
            line += source.count("\n", i, end)
            i = end
            continue

        if ch == "/" and _regex_allowed(tokens):
            end = _skip_regex(source, i)
            if end is not None:
                add("regex", i, end, line)
                i = end
                continue

        m = _IDENT.match(source, i)
        if m:
            add("ident", i, m.end(), line)
            i = m.end()
            continue

        m = _NUMBER.match(source, i)
        if m:
            add("number", i, m.end(), line)
            i = m.end()
            continue

        m = _PUNCT.match(source, i)
        if m:
            add("punct", i, m.end(), line)
            i = m.end()
            continue

        # Anything else (stray unicode, backslash) is skipped.
        i += 1

    return tokens


def _skip_string(source: str, i: int) -> int:
    quote = source[i]
    j = i + 1
    n = len(source)
    while j < n:
        ch = source[j]
        if ch == "\\":
            j += 2
            continue
        if ch == quote:
            return j + 1
        if ch == "\n":
            return j  # unterminated
        j += 1
    return n


def _skip_template(source: str, i: int) -> int:
    j = i + 1
    n = len(source)
    while j < n:
        ch = source[j]
        if ch == "\\":
            j += 2
            continue
        if ch == "`":
            return j + 1
        if source.startswith("${", j):
            j = _skip_embedded(source, j + 2)
            continue
        j += 1
    return n


def _skip_embedded(source: str, i: int) -> int:
    """Skip a ``${ ... }`` template expression, returning the index past ``}``."""
    depth = 0
    j = i
    n = len(source)
    while j < n:
        ch = source[j]
        if ch in "'\"":
            j = _skip_string(source, j)
            continue
        if ch == "`":
            j = _skip_template(source, j)
            continue
        if source.startswith("//", j):
            end = source.find("\n", j)
            j = n if end == -1 else end
            continue
        if source.startswith("/*", j):
            end = source.find("*/", j + 2)
            j = n if end == -1 else end + 2
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            if depth == 0:
                return j + 1
            depth -= 1
        j += 1
    return n


def _skip_regex(source: str, i: int) -> int | None:
    j = i + 1
    n = len(source)
    in_class = False
    while j < n:
        ch = source[j]
        if ch == "\n":
            return None
        if ch == "\\":
            j += 2
            continue
        if in_class:
            if ch == "]":
                in_class = False
        elif ch == "[":
            in_class = True
        elif ch == "/":
            j += 1
            while j < n and (source[j].isalnum() or source[j] == "_"):
                j += 1
            return j
        j += 1
    return None


def _regex_allowed(tokens: list[_Token]) -> bool:
    for tok in reversed(tokens):
        if tok.kind == "newline":
            continue
        if tok.kind == "punct":
            return tok.text not in (")", "]", "}")
        if tok.kind == "ident":
            return tok.text in _REGEX_AFTER_KEYWORDS
        return False
    return True


# ── Statement walker ───────────────────────────────────────────────


@dataclass(frozen=True)
class VariableDeclaration:
    """A top-level ``const``/``let``/``var`` declarator.

    ``export_name`` is the name other modules import it by, or None when
    the binding is not exported.
    """

    name: str
    initializer: str | None
    line: int
    keyword: str = "const"
    export_name: str | None = None

    @property
    def exported(self) -> bool:
        return self.export_name is not None


@dataclass
class SourceModule:
    """A loaded source file and its top-level declarations."""

    path: Path
    declarations: list[VariableDeclaration] = field(default_factory=list)


# Tokens that, at the end of a line, mean the expression continues.
_CONTINUE_AFTER = {
    "=", "+", "-", "*", "/", "%", "&", "|", "^", "!", "~", "?", ":", ",",
    ".", "?.", "(", "[", "{", "<", ">", "=>", "&&", "||", "??", "**",
    "==", "===", "!=", "!==", "<=", ">=", "<<", ">>", ">>>", "...",
}
_CONTINUE_AFTER_WORDS = {
    "new", "typeof", "await", "in", "instanceof", "as", "satisfies",
    "extends", "keyof", "void", "delete", "yield",
}
# Tokens that, at the start of a line, continue the previous expression.
_CONTINUE_BEFORE = {
    ".", "?.", ")", "]", "}", "?", ":", "+", "-", "*", "/", "%", "&", "|",
    "^", "=", "==", "===", "!=", "!==", "<", ">", "<=", ">=", "&&", "||",
    "??", "=>", "(", "[", "**", ",",
}
_CONTINUE_BEFORE_WORDS = {"as", "satisfies", "in", "instanceof"}


class _Walker:
    def __init__(self, source: str, tokens: list[_Token]) -> None:
        self.source = source
        self.tokens = tokens
        self.declarations: list[VariableDeclaration] = []
        self.local_exports: dict[str, str] = {}

    # -- helpers ------------------------------------------------------

    def _tok(self, i: int) -> _Token | None:
        return self.tokens[i] if 0 <= i < len(self.tokens) else None

    def _is(self, i: int, text: str) -> bool:
        tok = self._tok(i)
        return tok is not None and tok.kind in ("punct", "ident") and tok.text == text

    def _skip_newlines(self, i: int) -> int:
        while (tok := self._tok(i)) is not None and tok.kind == "newline":
            i += 1
        return i

    def _at_statement_start(self, i: int) -> bool:
        prev = self._tok(i - 1)
        if prev is None or prev.kind == "newline":
            return True
        return prev.kind == "punct" and prev.text in (";", "}")

    def _line_continues(self, i: int, in_type: bool = False) -> bool:
        """Whether the newline token at ``i`` is inside an expression."""
        prev = self._tok(i - 1)
        nxt = self._tok(i + 1)
        if nxt is None:
            return False
        # in a type, a trailing ``>`` closes a generic rather than comparing
        closes_generic = in_type and prev is not None and prev.text in (">", ">>", ">>>")
        if prev is not None and not closes_generic:
            if prev.kind == "punct" and prev.text in _CONTINUE_AFTER:
                return True
            if prev.kind == "ident" and prev.text in _CONTINUE_AFTER_WORDS:
                return True
        if nxt.kind == "punct" and nxt.text in _CONTINUE_BEFORE:
            return True
        if nxt.kind == "template":
            return True
        return nxt.kind == "ident" and nxt.text in _CONTINUE_BEFORE_WORDS

    def _skip_group(self, i: int) -> int:
        """Skip a balanced bracket group starting at ``i``; return index past it."""
        depth = 0
        while (tok := self._tok(i)) is not None:
            if tok.kind == "punct":
                if tok.text in _OPEN:
                    depth += 1
                elif tok.text in _CLOSE:
                    depth -= 1
                    if depth <= 0:
                        return i + 1
            i += 1
        return i

    # -- statements ---------------------------------------------------

    def walk(self) -> None:
        i = 0
        depth = 0
        while (tok := self._tok(i)) is not None:
            if tok.kind == "punct" and tok.text in _OPEN:
                depth += 1
            elif tok.kind == "punct" and tok.text in _CLOSE:
                depth = max(0, depth - 1)
            elif depth == 0 and tok.kind == "ident" and self._at_statement_start(i):
                nxt = self._statement(i)
                if nxt is not None:
                    i = nxt
                    continue
            i += 1

    def _statement(self, i: int) -> int | None:
        """Handle a top-level statement at ``i``; None if not interesting."""
        exported = False
        j = i
        if self._is(j, "export"):
            j = self._skip_newlines(j + 1)
            if self._is(j, "{"):
                return self._export_clause(j)
            if self._is(j, "default"):
                return None
            exported = True
        if self._is(j, "declare"):
            j = self._skip_newlines(j + 1)
        tok = self._tok(j)
        if tok is None or tok.kind != "ident" or tok.text not in _DECL_KEYWORDS:
            return None
        # ``const enum Foo {}`` is not a variable declaration
        after = self._skip_newlines(j + 1)
        if self._is(after, "enum"):
            return None
        return self._declarators(after, tok.text, exported)

    def _export_clause(self, i: int) -> int:
        """Record names from ``export { a, b as c }`` unless it re-exports."""
        end = self._skip_group(i)
        entries: list[tuple[str, str]] = []
        k = i + 1
        current: list[str] = []
        while k < end - 1:
            tok = self.tokens[k]
            if tok.kind == "punct" and tok.text == ",":
                entries.extend(_clause_entry(current))
                current = []
            elif tok.kind in ("ident", "string"):
                current.append(tok.text)
            k += 1
        entries.extend(_clause_entry(current))

        nxt = self._skip_newlines(end)
        if self._is(nxt, "from"):
            return nxt + 1
        for local, exported in entries:
            # a named alias wins over `as default`
            if self.local_exports.get(local) in (None, "default"):
                self.local_exports[local] = exported
        return end

    def _declarators(self, k: int, keyword: str, exported: bool) -> int:
        while True:
            k = self._skip_newlines(k)
            tok = self._tok(k)
            if tok is None:
                return k

            name: str | None = None
            if tok.kind == "punct" and tok.text in ("{", "["):
                k = self._skip_group(k)  # destructuring: no single name
            elif tok.kind == "ident":
                name = tok.text
                k += 1
            else:
                return k

            if self._is(k, "!"):
                k += 1
            if self._is(k, ":"):
                k = self._skip_type(k + 1)

            initializer: str | None = None
            if self._is(k, "="):
                start = k + 1
                k = self._skip_expression(start)
                initializer = self._text(start, k)

            if name is not None:
                self.declarations.append(
                    VariableDeclaration(
                        name=name,
                        initializer=initializer,
                        line=tok.line,
                        keyword=keyword,
                        export_name=name if exported else None,
                    )
                )

            if self._is(k, ","):
                k += 1
                continue
            return k

    def _skip_type(self, k: int) -> int:
        angle = 0
        depth = 0
        while (tok := self._tok(k)) is not None:
            if tok.kind == "punct":
                text = tok.text
                if text in _OPEN:
                    depth += 1
                elif text in _CLOSE:
                    if depth == 0:
                        return k
                    depth -= 1
                elif text == "<":
                    angle += 1
                elif text in (">", ">>", ">>>"):
                    angle = max(0, angle - len(text))
                elif depth == 0 and angle == 0 and text in ("=", ",", ";"):
                    return k
            elif tok.kind == "newline" and depth == 0 and angle == 0:
                if not self._line_continues(k, in_type=True):
                    return k
            k += 1
        return k

    def _skip_expression(self, k: int) -> int:
        depth = 0
        while (tok := self._tok(k)) is not None:
            if tok.kind == "punct":
                if tok.text in _OPEN:
                    depth += 1
                elif tok.text in _CLOSE:
                    if depth == 0:
                        return k
                    depth -= 1
                elif depth == 0 and tok.text in (",", ";"):
                    return k
            elif tok.kind == "newline" and depth == 0:
                if not self._line_continues(k):
                    return k
            k += 1
        return k

    def _text(self, start: int, end: int) -> str | None:
        """Source text covered by tokens ``start`` up to (excluding) ``end``."""
        significant = [
            t for t in self.tokens[start:end] if t.kind != "newline"
        ]
        if not significant:
            return None
        return self.source[significant[0].start:significant[-1].end]


def _clause_entry(words: list[str]) -> list[tuple[str, str]]:
    """Turn ``['type', 'a', 'as', 'b']`` into ``[('a', 'b')]``."""
    if words and words[0] == "type" and len(words) > 1:
        return []  # type-only exports are never runtime bindings
    if len(words) == 1:
        return [(words[0], words[0])]
    if len(words) == 3 and words[1] == "as":
        return [(words[0], words[2].strip("'\""))]
    return []


def parse_source(source: str) -> list[VariableDeclaration]:
    """Return the top-level variable declarations of a module, in order.

    Bindings declared without ``export`` but named in a local
    ``export { ... }`` clause are reported as exported under their
    exported name.
    """
    walker = _Walker(source, tokenize(source))
    walker.walk()

    declarations: list[VariableDeclaration] = []
    for decl in walker.declarations:
        if decl.export_name is None and decl.name in walker.local_exports:
            decl = VariableDeclaration(
                name=decl.name,
                initializer=decl.initializer,
                line=decl.line,
                keyword=decl.keyword,
                export_name=walker.local_exports[decl.name],
            )
        declarations.append(decl)
    return declarations


def load_module(path: Path) -> SourceModule:
    """Read and parse one source module.

    Raises:
        ScanError: If the file cannot be read as UTF-8 text.
    """
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ScanError(f"Cannot read module {path}: {e}") from e

    declarations = parse_source(source)
    logger.debug("%s: %d top-level declaration(s)", path, len(declarations))
    return SourceModule(path=path, declarations=declarations)
