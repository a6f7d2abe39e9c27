"""Inline markup fragment utilities.

Text blocks store their content as an inline HTML fragment, while the host
reports cursor positions as offsets into the text the user sees. These
helpers work on the fragment through that plain-text coordinate system and
always hand back balanced markup.
"""

import html
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import Optional

VOID_ELEMENTS = frozenset({
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input',
    'link', 'meta', 'source', 'track', 'wbr',
})


@dataclass
class Token:
    kind: str  # 'text', 'start', 'end' or 'void'
    value: str  # Unescaped text, or the tag name
    raw: str = ""  # Source text of a start or void tag


class _FragmentTokenizer(HTMLParser):
    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.tokens: list[Token] = []

    def handle_starttag(self, tag, attrs):
        raw = self.get_starttag_text() or f"<{tag}>"
        kind = 'void' if tag in VOID_ELEMENTS else 'start'
        self.tokens.append(Token(kind, tag, raw))

    def handle_startendtag(self, tag, attrs):
        raw = self.get_starttag_text() or f"<{tag}/>"
        self.tokens.append(Token('void', tag, raw))

    def handle_endtag(self, tag):
        if tag in VOID_ELEMENTS:
            return
        self.tokens.append(Token('end', tag))

    def handle_data(self, data):
        if self.tokens and self.tokens[-1].kind == 'text':
            self.tokens[-1].value += data
        else:
            self.tokens.append(Token('text', data))

    def handle_comment(self, data):
        self.tokens.append(Token('void', '!--', f"<!--{data}-->"))


def tokenize(fragment: str) -> list[Token]:
    if not fragment:
        return []
    parser = _FragmentTokenizer()
    parser.feed(fragment)
    parser.close()
    return parser.tokens


def escape_text(text: str) -> str:
    """Escape plain text for use inside a fragment."""
    return html.escape(text, quote=False).replace('\xa0', '&nbsp;')


def render(tokens: list[Token]) -> str:
    parts = []
    for token in tokens:
        if token.kind == 'text':
            parts.append(escape_text(token.value))
        elif token.kind == 'end':
            parts.append(f"</{token.value}>")
        else:
            parts.append(token.raw)
    return ''.join(parts)


def plain_text(fragment: str) -> str:
    return ''.join(t.value for t in tokenize(fragment) if t.kind == 'text')


def text_length(fragment: str) -> int:
    return len(plain_text(fragment))


def is_empty(fragment: str) -> bool:
    """True when the fragment shows nothing but (at most) line breaks.

    Browsers leave a lone ``<br>`` behind in an emptied editable element,
    so that still counts as empty.
    """
    for token in tokenize(fragment):
        if token.kind == 'text':
            return False
        if token.kind == 'void' and token.value not in ('br', '!--'):
            return False
    return True


def _copy_tokens(tokens: list[Token]) -> list[Token]:
    return [Token(t.kind, t.value, t.raw) for t in tokens]


def _cut(tokens: list[Token], offset: int) -> tuple[list[Token], int]:
    """Return a copy of tokens with a boundary at offset, and its index.

    Closing tags that directly follow the offset stay before the boundary.
    """
    tokens = _copy_tokens(tokens)
    offset = max(0, offset)
    count = 0
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if count >= offset and token.kind != 'end':
            return tokens, i
        if token.kind == 'text':
            length = len(token.value)
            if count + length > offset:
                split_at = offset - count
                tail = token.value[split_at:]
                token.value = token.value[:split_at]
                tokens.insert(i + 1, Token('text', tail))
                return tokens, i + 1
            count += length
        i += 1
    return tokens, len(tokens)


def _open_elements(tokens: list[Token]) -> list[Token]:
    stack: list[Token] = []
    for token in tokens:
        if token.kind == 'start':
            stack.append(token)
        elif token.kind == 'end':
            for j in range(len(stack) - 1, -1, -1):
                if stack[j].value == token.value:
                    del stack[j:]
                    break
    return stack


def _prune_empty(tokens: list[Token]) -> list[Token]:
    """Drop elements that no longer contain anything."""
    result: list[Token] = []
    for token in tokens:
        if token.kind == 'text' and not token.value:
            continue
        if (token.kind == 'end' and result and result[-1].kind == 'start'
                and result[-1].value == token.value):
            result.pop()
            continue
        result.append(token)
    return result


def split_fragment(fragment: str, offset: int) -> tuple[str, str]:
    """Split a fragment at a text offset into two balanced fragments.

    Elements open at the split point are closed at the end of the first
    half and re-opened at the start of the second, so ``<b>hello</b>``
    split at 2 gives ``<b>he</b>`` and ``<b>llo</b>``.
    """
    tokens, cut = _cut(tokenize(fragment), offset)
    head, tail = tokens[:cut], tokens[cut:]
    stack = _open_elements(head)
    before = head + [Token('end', t.value) for t in reversed(stack)]
    after = [Token('start', t.value, t.raw) for t in stack] + tail
    return render(_prune_empty(before)), render(_prune_empty(after))


def insert_text(fragment: str, offset: int, text: str) -> str:
    """Insert plain text at a text offset, inheriting formatting from the left."""
    if not text:
        return fragment
    tokens = tokenize(fragment)
    count = 0
    for token in tokens:
        if token.kind != 'text':
            continue
        length = len(token.value)
        if count < offset <= count + length:
            at = offset - count
            token.value = token.value[:at] + text + token.value[at:]
            return render(tokens)
        count += length
    tokens, cut = _cut(tokens, offset)
    tokens.insert(cut, Token('text', text))
    return render(tokens)


def delete_text(fragment: str, start: int, end: int) -> str:
    """Remove the text between two offsets."""
    if end < start:
        start, end = end, start
    if start == end:
        return fragment
    tokens = tokenize(fragment)
    count = 0
    for token in tokens:
        if token.kind != 'text':
            continue
        length = len(token.value)
        lo = max(start - count, 0)
        hi = min(end - count, length)
        if lo < hi:
            token.value = token.value[:lo] + token.value[hi:]
        count += length
    return render(_prune_empty(tokens))


def wrap_fragment(fragment: str, start: int, end: int, tag: str,
                  attributes: Optional[dict[str, str]] = None) -> str:
    """Extract the text between two offsets and re-insert it in a new element."""
    if end < start:
        start, end = end, start
    before, rest = split_fragment(fragment, start)
    middle, after = split_fragment(rest, end - start)
    if not middle:
        return fragment
    attrs = ''.join(
        f' {name}="{html.escape(value, quote=True)}"'
        for name, value in (attributes or {}).items()
    )
    return f"{before}<{tag}{attrs}>{middle}</{tag}>{after}"
