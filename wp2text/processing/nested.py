"""Depth-counting scanner for nested wikitext constructs.

``{{...}}`` templates, ``[[...]]`` links and ``{|...|}`` tables nest
arbitrarily, which regular expressions cannot match. The helpers here walk
the opening/closing tokens with an explicit stack so that nesting is handled
in a single linear pass and unterminated constructs fall back to literal text.
"""

import re
from typing import Callable, Iterator, List, Pattern, Tuple, Union

# Hard cap on nesting; deeper input is left untouched.
MAX_NESTING_DEPTH = 100

Token = Union[str, Pattern[str]]

TEMPLATE_OPEN = "{{"
TEMPLATE_CLOSE = "}}"
LINK_OPEN = "[["
LINK_CLOSE = "]]"
# wiki tables only open/close at the start of a line
TABLE_OPEN = re.compile(r"^[ \t]*\{\|", re.MULTILINE)
TABLE_CLOSE = re.compile(r"^[ \t]*\|\}", re.MULTILINE)

_DELTA_TOKENS = {
    (TEMPLATE_OPEN, TEMPLATE_CLOSE): re.compile(r"\{\{|\}\}"),
    (LINK_OPEN, LINK_CLOSE): re.compile(r"\[\[|\]\]"),
}


def _token_regex(left: Token, right: Token) -> Pattern[str]:
    left_src = left.pattern if isinstance(left, re.Pattern) else re.escape(left)
    right_src = right.pattern if isinstance(right, re.Pattern) else re.escape(right)
    flags = 0
    for token in (left, right):
        if isinstance(token, re.Pattern):
            flags |= token.flags & (re.MULTILINE | re.IGNORECASE | re.DOTALL)
    return re.compile(f"(?P<left>{left_src})|(?P<right>{right_src})", flags)


def brace_delta(line: str, left: str = TEMPLATE_OPEN, right: str = TEMPLATE_CLOSE) -> int:
    """Net depth change of ``line``: openers minus closers (``{{``/``}}`` by default)."""
    depth = 0
    for match in _DELTA_TOKENS[(left, right)].finditer(line):
        depth += 1 if match.group() == left else -1
    return depth


def iter_balanced(text: str, left: Token = TEMPLATE_OPEN, right: Token = TEMPLATE_CLOSE,
                  max_depth: int = MAX_NESTING_DEPTH) -> Iterator[Tuple[int, int]]:
    """Yield ``(start, end)`` spans of top-level balanced constructs in ``text``.

    Unterminated openers are skipped; stray closers are ignored.
    """
    regex = _token_regex(left, right)
    depth = 0
    start = 0
    for match in regex.finditer(text):
        if match.lastgroup == "left":
            if depth == 0:
                start = match.start()
            depth += 1
            if depth > max_depth:
                return
        elif depth > 0:
            depth -= 1
            if depth == 0:
                yield start, match.end()


def is_isolated(text: str, left: Token = TEMPLATE_OPEN, right: Token = TEMPLATE_CLOSE) -> bool:
    """True when ``text`` (stripped) is exactly one balanced construct."""
    stripped = text.strip()
    if not stripped:
        return False
    for start, end in iter_balanced(stripped, left, right):
        return start == 0 and end == len(stripped)
    return False


def replace_nested(text: str, left: Token, right: Token,
                   replace: Callable[[str], str],
                   max_depth: int = MAX_NESTING_DEPTH) -> str:
    """Replace every balanced ``left ... right`` construct, innermost first.

    ``replace`` receives the inner content (with nested constructs already
    replaced) and returns the substitution. Unterminated openers and stray
    closers stay as literal text. Input nested deeper than ``max_depth`` is
    returned unchanged.
    """
    regex = _token_regex(left, right)
    if not regex.search(text):
        return text

    # stack of (opening token, buffered fragments)
    stack: List[Tuple[str, List[str]]] = []
    out: List[str] = []
    pos = 0
    for match in regex.finditer(text):
        chunk = text[pos:match.start()]
        (stack[-1][1] if stack else out).append(chunk)
        pos = match.end()
        if match.lastgroup == "left":
            if len(stack) >= max_depth:
                return text
            stack.append((match.group(), []))
        elif stack:
            _, fragments = stack.pop()
            replacement = replace("".join(fragments))
            (stack[-1][1] if stack else out).append(replacement)
        else:
            out.append(match.group())
    tail = text[pos:]
    (stack[-1][1] if stack else out).append(tail)

    # unterminated openers fall back to literal text
    while stack:
        opener, fragments = stack.pop()
        literal = opener + "".join(fragments)
        (stack[-1][1] if stack else out).append(literal)
    return "".join(out)


def split_arguments(content: str) -> List[str]:
    """Split template or link content on top-level ``|`` separators.

    Pipes inside nested ``{{...}}`` or ``[[...]]`` do not split.
    """
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    i = 0
    length = len(content)
    while i < length:
        pair = content[i:i + 2]
        if pair in (TEMPLATE_OPEN, LINK_OPEN):
            depth += 1
            current.append(pair)
            i += 2
            continue
        if pair in (TEMPLATE_CLOSE, LINK_CLOSE) and depth > 0:
            depth -= 1
            current.append(pair)
            i += 2
            continue
        char = content[i]
        if char == "|" and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1
    parts.append("".join(current))
    return parts


def template_name(content: str) -> str:
    """Normalized (lower-case, single-spaced) name of a template from its inner content."""
    name = split_arguments(content)[0]
    name = name.split(":", 1)[0] if name.lstrip().startswith("#") else name
    return " ".join(name.replace("_", " ").split()).lower()
