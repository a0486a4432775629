"""
Highlight pattern definitions.

Three textual encodings mark a highlight in raw document text:

- delimiter pair:  ==text==
- mark element:    <mark style="background-color: #ff0">text</mark>
- span element:    <span style="background-color: #ff0">text</span>

They are combined into one alternation, tried left to right at each scan
position, so at a given offset the delimiter pair wins over mark, and mark
wins over span. Captures use named groups and every match is turned into a
HighlightMatch instead of being destructured positionally.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum


class HighlightKind(Enum):
    """Which encoding produced a match"""

    DOUBLE_EQUALS = "double_equals"
    MARK = "mark"
    SPAN = "span"


# rgb()/rgba() with integer channels, #rgb/#rgba/#rrggbb/#rrggbbaa, var(--name)
COLOR_PATTERN = (
    r"rgba?\(\d+,\s*\d+,\s*\d+(?:,\s*[0-9.]+)?\)"
    r"|#(?:[0-9a-fA-F]{8}|[0-9a-fA-F]{6}|[0-9a-fA-F]{3,4})(?![0-9a-fA-F])"
    r"|var\(--[^)]+\)"
)

DOUBLE_EQUALS_PATTERN = r"==\s*(?P<eq_text>.*?)\s*=="

# Attributes repeat in any order. A color captured from a style attribute
# is kept when a later attribute (such as class) matches without one.
MARK_TAG_PATTERN = (
    r"<mark(?:\s+class=\"[^\"]*\""
    r"|\s+style=[\"'][^\"']*?background(?:-color)?:\s*"
    rf"(?P<mark_color>{COLOR_PATTERN})[^\"']*[\"'])*"
    r"\s*>(?P<mark_text>.*?)</mark>"
)

SPAN_TAG_PATTERN = (
    r"<span\s+style=[\"']background(?:-color)?:\s*"
    rf"(?P<span_color>{COLOR_PATTERN})[\"']>"
    r"\s*(?P<span_text>.*?)\s*</span>"
)

HIGHLIGHT_PATTERN = re.compile(
    f"{DOUBLE_EQUALS_PATTERN}|{MARK_TAG_PATTERN}|{SPAN_TAG_PATTERN}"
)

# Loose superset of HIGHLIGHT_PATTERN used to skip documents cheaply
QUICK_CHECK_PATTERN = re.compile(
    r"==.*?==|<mark[^>]*>.*?</mark>"
    r"|<span[^>]*style=[\"'][^\"']*background[^\"']*[\"'][^>]*>.*?</span>"
)


@dataclass(frozen=True)
class HighlightMatch:
    """One raw match of the combined pattern"""

    kind: HighlightKind
    text: str
    color: str | None
    start: int
    end: int
    raw: str

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


def _to_match(match: re.Match) -> HighlightMatch:
    groups = match.groupdict()
    if groups["eq_text"]:
        kind, text, color = HighlightKind.DOUBLE_EQUALS, groups["eq_text"], None
    elif groups["mark_text"]:
        kind, text, color = HighlightKind.MARK, groups["mark_text"], groups["mark_color"]
    elif groups["span_text"]:
        kind, text, color = HighlightKind.SPAN, groups["span_text"], groups["span_color"]
    else:
        # Matched with an empty body; the caller discards it
        kind = _kind_of_empty(match)
        text = ""
        color = groups["mark_color"] or groups["span_color"]

    return HighlightMatch(
        kind=kind,
        text=text,
        color=color,
        start=match.start(),
        end=match.end(),
        raw=match.group(0),
    )


def _kind_of_empty(match: re.Match) -> HighlightKind:
    raw = match.group(0)
    if raw.startswith("<mark"):
        return HighlightKind.MARK
    if raw.startswith("<span"):
        return HighlightKind.SPAN
    return HighlightKind.DOUBLE_EQUALS


def iter_matches(text: str) -> Iterator[HighlightMatch]:
    """Yield every match of the combined pattern in scan order"""
    for match in HIGHLIGHT_PATTERN.finditer(text):
        yield _to_match(match)


def may_contain_highlights(text: str) -> bool:
    return QUICK_CHECK_PATTERN.search(text) is not None
