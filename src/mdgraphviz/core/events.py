"""Markup event stream over markdown-it tokens.

A ``fence`` token is expanded into ``CodeBlockStart``, one ``Text`` event
per source line, and ``CodeBlockEnd``, so that code blocks can be scanned
incrementally. Every other token travels as ``Passthrough``. ``ImageRef``
is the replacement event for a rendered block.
"""

from dataclasses import dataclass, replace
from typing import Iterable, Iterator, Optional, Union

from markdown_it.token import Token


@dataclass(frozen=True)
class CodeBlockStart:
    info:  str
    token: Token        # original fence token, reused when the block is re-emitted


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class CodeBlockEnd:
    info: str


@dataclass(frozen=True)
class Passthrough:
    token: Token


@dataclass(frozen=True)
class ImageRef:
    src:   str
    alt:   str = ""
    title: Optional[str] = None


MarkupEvent = Union[CodeBlockStart, Text, CodeBlockEnd, Passthrough, ImageRef]


def tokens_to_events(tokens: Iterable[Token]) -> Iterator[MarkupEvent]:
    """Flatten block-level tokens into markup events."""
    for tok in tokens:
        if tok.type != 'fence':
            yield Passthrough(tok)
            continue
        info = tok.info.strip()
        yield CodeBlockStart(info, tok)
        for line in tok.content.splitlines(keepends=True):
            yield Text(line)
        yield CodeBlockEnd(info)


def _escape(text: str, chars: str) -> str:
    """Backslash-escape \\ and each of ``chars``; the serializer writes alt and title verbatim."""
    for ch in "\\" + chars:
        text = text.replace(ch, "\\" + ch)
    return text


def _image_tokens(ref: ImageRef) -> list[Token]:
    """Paragraph holding a single inline image."""
    attrs = {'src': ref.src, 'alt': ''}
    if ref.title is not None:
        attrs['title'] = _escape(ref.title, '"')
    alt = _escape(ref.alt, "[]")
    alt_text = Token('text', '', 0, content=alt)
    image = Token('image', 'img', 0, attrs=attrs, children=[alt_text], content=alt)
    return [
        Token('paragraph_open', 'p', 1, block=True),
        Token('inline', '', 0, content=f'![{ref.alt}]({ref.src})',
              children=[image], block=True),
        Token('paragraph_close', 'p', -1, block=True),
    ]


def events_to_tokens(events: Iterable[MarkupEvent]) -> list[Token]:
    """Rebuild a token list from markup events."""
    tokens: list[Token] = []
    open_fence: Optional[Token] = None
    code: list[str] = []
    for event in events:
        if isinstance(event, Passthrough):
            tokens.append(event.token)
        elif isinstance(event, ImageRef):
            tokens.extend(_image_tokens(event))
        elif isinstance(event, CodeBlockStart):
            open_fence, code = event.token, []
        elif isinstance(event, Text) and open_fence is not None:
            code.append(event.text)
        elif isinstance(event, CodeBlockEnd) and open_fence is not None:
            tokens.append(replace(open_fence, content=''.join(code)))
            open_fence = None
    return tokens
