# -*- coding: utf-8 -*-
"""
Source-preserving HTML node arena.

The document is tokenized with the standard library ``html.parser`` and every token is
kept as a byte span of the original text. Nodes live in one list and refer to each
other by integer index (parent / prev / next / first_child / last_child), so edits are
plain index updates.

Serialization copies every untouched span verbatim; only spliced or replaced nodes are
re-emitted, which keeps all unrelated markup byte-identical.

Public API
----------
DocumentArena(text)
arena.find_headers(scope)                 -> List[int]
arena.collect_run_after(header, scope)    -> List[int]
arena.splice_run(anchor, run, markup)     -> int
arena.insert_after(ref, markup)           -> int
arena.replace_markup(index, markup)       -> None
arena.serialize()                         -> str
arena.view(index)                         -> NodeView
"""

import html
import logging
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import Iterator, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

NO_NODE = -1
ROOT = 0

VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})

# Tags whose end is only ever closed explicitly by a matching end tag inside them
_SCOPE_TAGS = frozenset({"table", "tbody", "thead", "tfoot", "tr", "td", "th", "html", "body"})

_P_SCOPE = frozenset({"td", "th", "div", "table", "body", "li"})
_BLOCK_TAGS = (
    "div", "table", "ul", "ol", "blockquote", "pre", "hr",
    "h1", "h2", "h3", "h4", "h5", "h6",
)

# start tag -> (open tags it implicitly closes, tags that bound the search)
_IMPLIED_END = {tag: (frozenset({"p"}), _P_SCOPE) for tag in _BLOCK_TAGS}
_IMPLIED_END.update({
    "p": (frozenset({"p"}), _P_SCOPE),
    "td": (frozenset({"td", "th"}), frozenset({"tr", "table"})),
    "th": (frozenset({"td", "th"}), frozenset({"tr", "table"})),
    "tr": (frozenset({"tr", "td", "th"}), frozenset({"table"})),
    "li": (frozenset({"li"}), frozenset({"ul", "ol"})),
    "option": (frozenset({"option"}), frozenset({"select"})),
})


@dataclass
class Node:
    """One arena entry. ``start``/``end`` index into the original text."""
    kind: str  # root | element | text | comment | raw | synthetic
    start: int
    end: int
    tag: str = ""
    attrs: Tuple[Tuple[str, Optional[str]], ...] = ()
    inner_start: int = 0
    inner_end: int = 0
    parent: int = NO_NODE
    prev: int = NO_NODE
    next: int = NO_NODE
    first_child: int = NO_NODE
    last_child: int = NO_NODE
    markup: Optional[str] = None
    dirty: bool = False


@dataclass
class _Event:
    kind: str
    start: int
    end: Optional[int] = None
    tag: str = ""
    attrs: Tuple[Tuple[str, Optional[str]], ...] = ()
    self_closing: bool = False


class _EventCollector(HTMLParser):
    """Records the absolute start offset (and end, where known) of every token."""

    def __init__(self, text: str):
        super().__init__(convert_charrefs=False)
        self.text = text
        self.events: List[_Event] = []
        self._line_starts = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                self._line_starts.append(i + 1)

    def _offset(self) -> int:
        line, column = self.getpos()
        return self._line_starts[line - 1] + column

    def _start_tag(self, tag, attrs, self_closing):
        start = self._offset()
        raw = self.get_starttag_text() or ""
        self.events.append(_Event(
            kind="start", start=start, end=start + len(raw), tag=tag,
            attrs=tuple(attrs), self_closing=self_closing,
        ))

    def handle_starttag(self, tag, attrs):
        self._start_tag(tag, attrs, False)

    def handle_startendtag(self, tag, attrs):
        self._start_tag(tag, attrs, True)

    def handle_endtag(self, tag):
        start = self._offset()
        close = self.text.find(">", start)
        self.events.append(_Event(
            kind="end", start=start, end=close + 1 if close >= 0 else None, tag=tag,
        ))

    def handle_data(self, data):
        self.events.append(_Event(kind="text", start=self._offset()))

    def handle_entityref(self, name):
        self.events.append(_Event(kind="text", start=self._offset()))

    def handle_charref(self, name):
        self.events.append(_Event(kind="text", start=self._offset()))

    def handle_comment(self, data):
        self.events.append(_Event(kind="comment", start=self._offset()))

    def handle_decl(self, decl):
        self.events.append(_Event(kind="raw", start=self._offset()))

    def handle_pi(self, data):
        self.events.append(_Event(kind="raw", start=self._offset()))

    def unknown_decl(self, data):
        self.events.append(_Event(kind="raw", start=self._offset()))


def _tokenize(text: str) -> List[_Event]:
    """Tokens with resolved, contiguous spans covering the whole text."""
    collector = _EventCollector(text)
    collector.feed(text)
    collector.close()
    events = collector.events

    resolved: List[_Event] = []
    pos = 0
    for i, event in enumerate(events):
        next_start = events[i + 1].start if i + 1 < len(events) else len(text)
        start = max(event.start, pos)
        if start > pos:
            resolved.append(_Event(kind="raw", start=pos, end=start))
        end = next_start if event.end is None else min(event.end, next_start)
        if end <= start:
            continue
        if event.kind == "text" and resolved and resolved[-1].kind == "text" and resolved[-1].end == start:
            resolved[-1].end = end
        else:
            resolved.append(_Event(
                kind=event.kind, start=start, end=end, tag=event.tag,
                attrs=event.attrs, self_closing=event.self_closing,
            ))
        pos = end
    if pos < len(text):
        resolved.append(_Event(kind="raw", start=pos, end=len(text)))
    return resolved


class DocumentArena:
    """Index-addressed node tree over one HTML document."""

    def __init__(self, text: str):
        self.text = text
        self.nodes: List[Node] = [
            Node(kind="root", start=0, end=len(text), inner_start=0, inner_end=len(text))
        ]
        self._build(_tokenize(text))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def _build(self, events: Sequence[_Event]) -> None:
        stack = [ROOT]
        for event in events:
            if event.kind == "start":
                self._close_implied(stack, event.tag, event.start)
                index = self._new_child(stack[-1], Node(
                    kind="element", start=event.start, end=event.end, tag=event.tag,
                    attrs=event.attrs, inner_start=event.end, inner_end=event.end,
                ))
                if not (event.self_closing or event.tag in VOID_ELEMENTS):
                    stack.append(index)
            elif event.kind == "end":
                if not self._close_explicit(stack, event):
                    self._new_child(stack[-1], Node(kind="raw", start=event.start, end=event.end))
            else:
                self._new_child(stack[-1], Node(kind=event.kind, start=event.start, end=event.end))

        for index in stack[1:]:
            self.nodes[index].inner_end = self.nodes[index].end = len(self.text)

    def _close_implied(self, stack: List[int], tag: str, at: int) -> None:
        rule = _IMPLIED_END.get(tag)
        if rule is None:
            return
        closes, bounds = rule
        target = None
        for depth in range(len(stack) - 1, 0, -1):
            open_tag = self.nodes[stack[depth]].tag
            if open_tag in closes:
                target = depth
            elif open_tag in bounds:
                break
        if target is not None:
            while len(stack) > target:
                node = self.nodes[stack.pop()]
                node.inner_end = node.end = at

    def _close_explicit(self, stack: List[int], event: _Event) -> bool:
        target = None
        for depth in range(len(stack) - 1, 0, -1):
            open_tag = self.nodes[stack[depth]].tag
            if open_tag == event.tag:
                target = depth
                break
            if open_tag in _SCOPE_TAGS and event.tag not in _SCOPE_TAGS:
                break
        if target is None:
            logger.debug(f"Stray </{event.tag}> at offset {event.start}")
            return False
        while len(stack) > target + 1:
            node = self.nodes[stack.pop()]
            node.inner_end = node.end = event.start
        node = self.nodes[stack.pop()]
        node.inner_end = event.start
        node.end = event.end
        return True

    def _new_child(self, parent: int, node: Node) -> int:
        index = len(self.nodes)
        self.nodes.append(node)
        self._append_child(parent, index)
        return index

    def _append_child(self, parent: int, index: int) -> None:
        p = self.nodes[parent]
        node = self.nodes[index]
        node.parent = parent
        node.prev = p.last_child
        node.next = NO_NODE
        if p.last_child == NO_NODE:
            p.first_child = index
        else:
            self.nodes[p.last_child].next = index
        p.last_child = index

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def children(self, index: int) -> Iterator[int]:
        child = self.nodes[index].first_child
        while child != NO_NODE:
            yield child
            child = self.nodes[child].next

    def element_children(self, index: int, tag: Optional[str] = None) -> List[int]:
        return [
            c for c in self.children(index)
            if self.nodes[c].kind == "element" and (tag is None or self.nodes[c].tag == tag)
        ]

    def descendants(self, index: int, tag: Optional[str] = None) -> Iterator[int]:
        """Pre-order descendants, optionally filtered to one element tag."""
        pending = list(reversed(list(self.children(index))))
        while pending:
            current = pending.pop()
            node = self.nodes[current]
            if tag is None or (node.kind == "element" and node.tag == tag):
                yield current
            pending.extend(reversed(list(self.children(current))))

    def following_siblings(self, index: int) -> List[int]:
        found = []
        sibling = self.nodes[index].next
        while sibling != NO_NODE:
            found.append(sibling)
            sibling = self.nodes[sibling].next
        return found

    def get_attr(self, index: int, name: str) -> Optional[str]:
        for key, value in self.nodes[index].attrs:
            if key == name:
                return value
        return None

    def source(self, index: int) -> str:
        """Current markup of a subtree (reflects edits)."""
        return self._serialize(index)

    def inner_source(self, index: int) -> str:
        return "".join(self._serialize(c) for c in self.children(index))

    def text_content(self, index: int) -> str:
        """Entity-decoded text of a subtree."""
        node = self.nodes[index]
        if node.kind == "text":
            return html.unescape(self._serialize(index))
        return "".join(
            self.text_content(c) for c in self.children(index)
            if self.nodes[c].kind in ("text", "element")
        )

    def view(self, index: int) -> "NodeView":
        return NodeView(self, index)

    # ------------------------------------------------------------------
    # Rank headers
    # ------------------------------------------------------------------

    def is_header(self, index: int) -> bool:
        """A rank header is a <span> with a <u> child."""
        node = self.nodes[index]
        return node.kind == "element" and node.tag == "span" and bool(self.element_children(index, "u"))

    def header_label(self, index: int) -> str:
        """Header text: entity-decoded, trimmed, trailing colon removed."""
        underline = self.element_children(index, "u")[0]
        return " ".join(self.text_content(underline).split()).rstrip(":").strip()

    def contains_header(self, index: int) -> bool:
        return self.is_header(index) or any(self.is_header(d) for d in self.descendants(index, "span"))

    def find_headers(self, scope: int) -> List[int]:
        """Every rank header inside ``scope``, in document order."""
        return [d for d in self.descendants(scope, "span") if self.is_header(d)]

    def _run_anchor(self, header: int, scope: Optional[int]) -> int:
        # A header wrapped in inline markup (<b><span><u>..</u></span></b>) delimits from
        # its outermost wrapper that holds nothing after it.
        anchor = header
        while True:
            parent = self.nodes[anchor].parent
            if parent in (NO_NODE, ROOT) or parent == scope:
                return anchor
            trailing = self.following_siblings(anchor)
            if any(self._has_content(s) for s in trailing):
                return anchor
            anchor = parent

    def _has_content(self, index: int) -> bool:
        node = self.nodes[index]
        if node.kind == "text":
            return bool(self._serialize(index).strip())
        return node.kind != "comment"

    def collect_run_after(self, header: int, scope: Optional[int] = None) -> List[int]:
        """Siblings following a header up to the next header (or the end of its parent)."""
        run = []
        for sibling in self.following_siblings(self._run_anchor(header, scope)):
            if self.contains_header(sibling):
                break
            run.append(sibling)
        return run

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def _mark_dirty(self, index: int) -> None:
        while index != NO_NODE:
            self.nodes[index].dirty = True
            index = self.nodes[index].parent

    def _unlink(self, index: int) -> None:
        node = self.nodes[index]
        parent = self.nodes[node.parent]
        if node.prev != NO_NODE:
            self.nodes[node.prev].next = node.next
        else:
            parent.first_child = node.next
        if node.next != NO_NODE:
            self.nodes[node.next].prev = node.prev
        else:
            parent.last_child = node.prev
        self._mark_dirty(node.parent)
        node.parent = node.prev = node.next = NO_NODE

    def insert_after(self, ref: int, markup: str) -> int:
        """Insert a synthetic node carrying ``markup`` right after ``ref``."""
        ref_node = self.nodes[ref]
        index = len(self.nodes)
        self.nodes.append(Node(kind="synthetic", start=ref_node.end, end=ref_node.end, markup=markup))
        node = self.nodes[index]
        node.parent = ref_node.parent
        node.prev = ref
        node.next = ref_node.next
        if ref_node.next != NO_NODE:
            self.nodes[ref_node.next].prev = index
        else:
            self.nodes[ref_node.parent].last_child = index
        ref_node.next = index
        self._mark_dirty(ref_node.parent)
        return index

    def splice_run(
        self,
        anchor: int,
        run: Sequence[int],
        markup: str,
        scope: Optional[int] = None,
    ) -> int:
        """
        Replace ``run`` with one synthetic node carrying ``markup``.

        ``run`` must be what ``collect_run_after(anchor, scope)`` returned (contiguous
        siblings after the anchor); an empty run inserts right after the anchor.

        Returns:
            Index of the inserted node
        """
        after = self._run_anchor(anchor, scope) if self.is_header(anchor) else anchor
        expected = self.nodes[after].next
        for index in run:
            if index != expected:
                raise ValueError(f"Node {index} does not follow node {anchor}")
            expected = self.nodes[index].next
        for index in run:
            self._unlink(index)
        return self.insert_after(after, markup)

    def replace_markup(self, index: int, markup: str) -> None:
        """Emit ``markup`` in place of a node's source."""
        self.nodes[index].markup = markup
        self._mark_dirty(index)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def _serialize(self, index: int) -> str:
        node = self.nodes[index]
        if node.markup is not None:
            return node.markup
        if not node.dirty or node.kind not in ("root", "element"):
            return self.text[node.start:node.end]
        parts = [self.text[node.start:node.inner_start]]
        parts.extend(self._serialize(c) for c in self.children(index))
        parts.append(self.text[node.inner_end:node.end])
        return "".join(parts)

    def serialize(self) -> str:
        """The whole document, untouched spans copied verbatim."""
        return self._serialize(ROOT)


class NodeView:
    """Read-only handle over one arena node."""

    def __init__(self, arena: DocumentArena, index: int):
        self.arena = arena
        self.index = index

    @property
    def tag(self) -> str:
        return self.arena.nodes[self.index].tag

    def get(self, name: str) -> Optional[str]:
        return self.arena.get_attr(self.index, name)

    def element_children(self, tag: Optional[str] = None) -> List["NodeView"]:
        return [NodeView(self.arena, c) for c in self.arena.element_children(self.index, tag)]

    def descendants(self, tag: Optional[str] = None) -> List["NodeView"]:
        return [NodeView(self.arena, d) for d in self.arena.descendants(self.index, tag)]

    def text(self) -> str:
        return self.arena.text_content(self.index)

    def source(self) -> str:
        return self.arena.source(self.index)

    def __repr__(self) -> str:
        return f"NodeView(index={self.index}, tag={self.tag!r})"
