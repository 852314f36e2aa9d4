"""Idempotent text merging for ``nuxt.config.ts``.

The document is never re-serialised. A small scanner that understands string,
template and regex literals, comments and bracket nesting locates the root
object passed to ``defineNuxtConfig`` (or a bare ``export default {}``) and
its top-level properties; fragments are then spliced in place:

* an existing array gets the missing entries appended after its last entry;
* an existing object gets the missing keys appended after its last property;
* an absent property is synthesised after the last property of its parent,
  which gains a terminating comma first if it had none.

Presence checks make every operation a no-op on the second run, and nothing
that was already in the document is removed or reordered. Inserted lines use
the line ending of the document.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .features import JsExpression, StorageDriver
from .files import read_file, write_file
from .logger import ScaffoldLogger

QUOTES = "'\"`"
OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = frozenset(")]}")
INDENT_UNIT = "  "

_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")
_PROPERTY_KEY = re.compile(r"""(?:(['"])(?P<quoted>(?:\\.|(?!\1).)*)\1|(?P<ident>[A-Za-z_$][\w$]*))\s*:""")
# Comments after the last property that stay on its line
_COMMENT_TAIL = re.compile(r"(?:[ \t]*/\*(?:(?!\*/)[^\r\n])*\*/)*(?:[ \t]*//[^\r\n]*)?")
# A slash after one of these starts a regular expression, not a division
_REGEX_PRECEDERS = frozenset("(,=:[!&|?{};")
_ROOT_PATTERNS = (
    re.compile(r"defineNuxtConfig\s*\(\s*\{"),
    re.compile(r"export\s+default\s+\{"),
)


class ConfigMergeError(ValueError):
    """The configuration document cannot be merged safely."""


@dataclass(frozen=True)
class ConfigFragments:
    modules: tuple[str, ...] = ()
    css: tuple[str, ...] = ()
    security: Mapping[str, object] | None = None
    storage: tuple[StorageDriver, ...] = ()

    def is_empty(self) -> bool:
        return not (self.modules or self.css or self.security or self.storage)


@dataclass(frozen=True)
class _Item:
    """One comma-separated entry of an array or object literal."""

    start: int
    end: int  # exclusive, trailing whitespace/comments not included
    comma: int | None  # offset of the separating comma, if any


@dataclass(frozen=True)
class _Property:
    key: str | None
    item: _Item
    value_start: int


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------


def _skip_comment(text: str, i: int) -> int | None:
    """Offset just past a comment starting at ``i``, or None if there is none."""
    if text.startswith("//", i):
        end = text.find("\n", i)
        return len(text) if end == -1 else end
    if text.startswith("/*", i):
        end = text.find("*/", i + 2)
        if end == -1:
            raise ConfigMergeError(f"Unterminated block comment at offset {i}")
        return end + 2
    return None


def _skip_string(text: str, i: int) -> int:
    """Offset just past the string or template literal opening at ``i``."""
    quote = text[i]
    i += 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if quote == "`" and text.startswith("${", i):
            i = _find_close(text, i + 1) + 1
            continue
        if ch == "\n" and quote != "`":
            break
        i += 1
    raise ConfigMergeError(f"Unterminated string literal near offset {i}")


def _skip_regex(text: str, i: int) -> int | None:
    """Offset just past a regex literal starting at ``i``, or None if the slash is not one."""
    if text[i] != "/" or text.startswith(("//", "/*"), i):
        return None
    j = i - 1
    while j >= 0 and text[j].isspace():
        j -= 1
    if j >= 0 and text[j] not in _REGEX_PRECEDERS:
        return None
    in_class = False
    i += 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch in "\r\n":
            break
        if in_class:
            in_class = ch != "]"
        elif ch == "[":
            in_class = True
        elif ch == "/":
            i += 1
            while i < len(text) and text[i].isalpha():
                i += 1
            return i
        i += 1
    raise ConfigMergeError(f"Unterminated regular expression literal near offset {i}")


def _skip_non_code(text: str, i: int) -> int | None:
    """Offset just past a string, comment or regex starting at ``i``, else None."""
    if text[i] in QUOTES:
        return _skip_string(text, i)
    after_comment = _skip_comment(text, i)
    if after_comment is not None:
        return after_comment
    return _skip_regex(text, i)


def _find_close(text: str, open_idx: int) -> int:
    """Offset of the bracket matching the one at ``open_idx``."""
    stack = [OPENERS[text[open_idx]]]
    i = open_idx + 1
    while i < len(text):
        ch = text[i]
        after_literal = _skip_non_code(text, i)
        if after_literal is not None:
            i = after_literal
            continue
        if ch in OPENERS:
            stack.append(OPENERS[ch])
        elif ch in CLOSERS:
            if ch != stack.pop():
                raise ConfigMergeError(f"Mismatched '{ch}' at offset {i}")
            if not stack:
                return i
        i += 1
    raise ConfigMergeError(f"Unclosed '{text[open_idx]}' at offset {open_idx}")


def _is_code(text: str, pos: int) -> bool:
    """True when ``pos`` is outside every comment, string and regex literal."""
    i = 0
    while i < pos:
        end = _skip_non_code(text, i)
        if end is None:
            i += 1
            continue
        if end > pos:
            return False
        i = end
    return True


def _split_items(text: str, open_idx: int, close_idx: int) -> list[_Item]:
    items = []
    start = None
    code_end = open_idx + 1
    i = open_idx + 1
    while i < close_idx:
        ch = text[i]
        if ch.isspace():
            i += 1
            continue
        after_comment = _skip_comment(text, i)
        if after_comment is not None:
            i = after_comment
            continue
        if ch == ",":
            if start is not None:
                items.append(_Item(start, code_end, i))
                start = None
            i += 1
            continue
        if start is None:
            start = i
        after_literal = _skip_non_code(text, i)
        if after_literal is not None:
            i = after_literal
        elif ch in OPENERS:
            i = _find_close(text, i) + 1
        else:
            i += 1
        code_end = i
    if start is not None:
        items.append(_Item(start, code_end, None))
    return items


def _properties(text: str, open_idx: int, close_idx: int) -> list[_Property]:
    props = []
    for item in _split_items(text, open_idx, close_idx):
        match = _PROPERTY_KEY.match(text, item.start, item.end)
        if match is None:
            # spread, shorthand or method: kept, but never a merge target
            props.append(_Property(None, item, item.start))
            continue
        key = match.group("quoted") if match.group("quoted") is not None else match.group("ident")
        value_start = match.end()
        while value_start < item.end:
            if text[value_start].isspace():
                value_start += 1
                continue
            after_comment = _skip_comment(text, value_start)
            if after_comment is None:
                break
            value_start = after_comment
        props.append(_Property(key, item, value_start))
    return props


def _find_property(text: str, open_idx: int, close_idx: int, key: str) -> _Property | None:
    for prop in _properties(text, open_idx, close_idx):
        if prop.key == key:
            return prop
    return None


def _locate_root(text: str) -> tuple[int, int]:
    for pattern in _ROOT_PATTERNS:
        for match in pattern.finditer(text):
            if _is_code(text, match.start()):
                open_idx = match.end() - 1
                return open_idx, _find_close(text, open_idx)
    raise ConfigMergeError("Could not locate the defineNuxtConfig({...}) object")


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _unquote(raw: str) -> str:
    return raw[1:-1].replace("\\'", "'").replace('\\"', '"').replace("\\`", "`").replace("\\\\", "\\")


def _render_key(key: str) -> str:
    return key if _IDENTIFIER.match(key) else _quote(key)


def render_js(value, indent: str = "", inline: bool = False) -> str:
    """Render a Python value as a TypeScript literal.

    Multi-line output places nested lines relative to ``indent``, the
    indentation of the line the literal starts on. ``inline`` keeps
    everything on one line.
    """
    if isinstance(value, JsExpression):
        return value.source
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return _quote(value)
    inner = indent + INDENT_UNIT
    if isinstance(value, Mapping):
        if not value:
            return "{}"
        if inline:
            body = ", ".join(f"{_render_key(k)}: {render_js(v, inline=True)}" for k, v in value.items())
            return "{ " + body + " }"
        body = "".join(f"{inner}{_render_key(k)}: {render_js(v, inner)},\n" for k, v in value.items())
        return "{\n" + body + indent + "}"
    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        if inline:
            return "[" + ", ".join(render_js(v, inline=True) for v in value) + "]"
        body = "".join(f"{inner}{render_js(v, inner)},\n" for v in value)
        return "[\n" + body + indent + "]"
    raise TypeError(f"Cannot render {type(value).__name__} as a TypeScript literal")


# ---------------------------------------------------------------------------
# Splicing
# ---------------------------------------------------------------------------


def _newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def _line_indent(text: str, pos: int) -> str:
    line_start = text.rfind("\n", 0, pos) + 1
    return re.match(r"[ \t]*", text[line_start:]).group(0)


def _starts_line(text: str, pos: int) -> bool:
    line_start = text.rfind("\n", 0, pos) + 1
    return not text[line_start:pos].strip()


def _child_indent(text: str, open_idx: int, items: list[_Item]) -> str:
    if items and _starts_line(text, items[0].start):
        return _line_indent(text, items[0].start)
    return _line_indent(text, open_idx) + INDENT_UNIT


def _literal_value(text: str, item: _Item) -> str:
    """Comparable value of an array entry (module tuples compare by name)."""
    raw = text[item.start:item.end]
    if raw[0] in QUOTES and _skip_string(text, item.start) == item.end:
        # a template literal with substitutions is not a fixed name
        if raw[0] == "`" and "${" in raw:
            return raw
        return _unquote(raw)
    if raw[0] == "[" and _find_close(text, item.start) == item.end - 1:
        inner = _split_items(text, item.start, item.end - 1)
        if inner:
            return _literal_value(text, inner[0])
    return raw


def _extend_array(text: str, open_idx: int, close_idx: int, values) -> str:
    items = _split_items(text, open_idx, close_idx)
    present = {_literal_value(text, item) for item in items}
    missing = [v for v in dict.fromkeys(values) if v not in present]
    if not missing:
        return text

    entries = [_quote(v) for v in missing]
    inner = text[open_idx + 1:close_idx]
    if not items:
        if not inner.strip():
            return text[:open_idx + 1] + ", ".join(entries) + text[close_idx:]
        # only comments inside: keep them after the new entries
        return text[:open_idx + 1] + ", ".join(entries) + inner + text[close_idx:]

    if "\n" in inner:
        separator = "," + _newline(text) + _child_indent(text, open_idx, items)
    else:
        separator = ", "
    last = items[-1]
    insertion = "".join(separator + entry for entry in entries)
    return text[:last.end] + insertion + text[last.end:]


def _insert_property(text: str, open_idx: int, close_idx: int, key: str, value) -> str:
    items = _split_items(text, open_idx, close_idx)
    inner = text[open_idx + 1:close_idx]
    rendered_key = _render_key(key)
    newline = _newline(text)

    if not items:
        parent = _line_indent(text, open_idx)
        child = parent + INDENT_UNIT
        entry = f"\n{child}{rendered_key}: {render_js(value, child)},".replace("\n", newline)
        if inner.strip():
            return text[:open_idx + 1] + entry + inner + text[close_idx:]
        return text[:open_idx + 1] + entry + newline + parent + text[close_idx:]

    last = items[-1]
    if "\n" not in inner:
        entry = f", {rendered_key}: {render_js(value, inline=True)}"
        return text[:last.end] + entry + text[last.end:]

    child = _child_indent(text, open_idx, items)
    entry = f"\n{child}{rendered_key}: {render_js(value, child)},".replace("\n", newline)
    if last.comma is None:
        text = text[:last.end] + "," + text[last.end:]
        anchor = last.end + 1
    else:
        anchor = last.comma + 1
    anchor = _COMMENT_TAIL.match(text, anchor).end()
    return text[:anchor] + entry + text[anchor:]


def _merge_array_property(text: str, key: str, values) -> str:
    if not values:
        return text
    open_idx, close_idx = _locate_root(text)
    prop = _find_property(text, open_idx, close_idx, key)
    if prop is None:
        return _insert_property(text, open_idx, close_idx, key, list(dict.fromkeys(values)))
    if text[prop.value_start] != "[":
        # computed value such as a spread or variable: leave it to the user
        return text
    return _extend_array(text, prop.value_start, _find_close(text, prop.value_start), values)


def _ensure_object_path(text: str, path: list[str], leaf) -> str:
    """Make sure ``root.<path>`` exists, creating ``leaf`` at the end if absent.

    An existing leaf is never touched; a non-object along the way stops the
    merge for that path.
    """
    open_idx, close_idx = _locate_root(text)
    for depth, key in enumerate(path):
        prop = _find_property(text, open_idx, close_idx, key)
        if prop is None:
            value = leaf
            for outer in reversed(path[depth + 1:]):
                value = {outer: value}
            return _insert_property(text, open_idx, close_idx, key, value)
        if depth == len(path) - 1 or text[prop.value_start] != "{":
            return text
        open_idx = prop.value_start
        close_idx = _find_close(text, open_idx)
    return text


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def merge_config(text: str, fragments: ConfigFragments) -> str:
    """Merge ``fragments`` into a ``nuxt.config.ts`` source text.

    Categories are applied in order (modules, css, security, nitro storage)
    and each one re-scans the text produced by the previous one.

    Raises:
        ConfigMergeError: the root config object cannot be found, or the
            document has unbalanced brackets or unterminated literals.
    """
    text = _merge_array_property(text, "modules", fragments.modules)
    text = _merge_array_property(text, "css", fragments.css)
    if fragments.security:
        for option, value in fragments.security.items():
            text = _ensure_object_path(text, ["security", option], value)
    for driver in fragments.storage:
        text = _ensure_object_path(text, ["nitro", "storage", driver.name], dict(driver.options))
    return text


def merge_config_file(
    path: Path,
    fragments: ConfigFragments,
    *,
    log: ScaffoldLogger,
    dry_run: bool = False,
    starter: str | None = None,
) -> bool:
    """Merge ``fragments`` into the config file at ``path``.

    An unreadable or unmergeable document is reported as a warning and
    returns False; the caller decides whether that matters. In dry-run mode
    a missing document is replaced by ``starter`` so the would-be result can
    still be shown, and the result is always True.
    """
    original = read_file(path)
    if original is None:
        if not dry_run or starter is None:
            log.warn(f"Could not read {path}; module registration skipped")
            return dry_run
        original = starter

    try:
        merged = merge_config(original, fragments)
    except ConfigMergeError as e:
        log.warn(f"Could not merge {path.name}: {e}")
        return dry_run

    if merged == original and path.exists():
        log.dim(f"{path.name} already up to date")
        return True
    return write_file(path, merged, dry_run=dry_run, log=log)
