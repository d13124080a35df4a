"""Classification of CSS class names into dynamic, utility and semantic."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Tuple

_DYNAMIC_PATTERNS = tuple(
    re.compile(pattern, flags)
    for pattern, flags in (
        # CSS-in-JS
        (r"^css-[a-z0-9]+$", re.I),
        (r"^sc-[a-z0-9]+-\d+$", re.I),
        (r"^[a-z]{5,8}$", re.I),
        # MUI
        (r"^Mui[A-Z]\w+-\w+-\w+", 0),
        (r"^makeStyles-\w+-\d+$", 0),
        # JSS
        (r"^jss\d+$", 0),
        (r"^(emotion|linaria)-[a-z0-9]+", re.I),
        (r"^(chakra|tw-|ant-)[a-z0-9]+-\w+", re.I),
        # hashes
        (r"-[a-f0-9]{6,}$", re.I),
        (r"^_[a-z0-9]{5,}$", re.I),
        (r"\d{5,}", 0),
    )
)

_UTILITY_PATTERNS = tuple(
    re.compile(pattern)
    for pattern in (
        # arbitrary values and variants
        r"^\[",
        r"^(first|last|odd|even|only|first-of-type|last-of-type|only-of-type):",
        r"^(hover|focus|active|disabled|enabled|checked|indeterminate|default|required|valid|invalid"
        r"|in-range|out-of-range|placeholder-shown|autofill|read-only):",
        r"^(focus-within|focus-visible|visited|target|open):",
        r"^(sm|md|lg|xl|2xl|3xl|4xl|5xl|6xl|7xl):",
        r"^dark:",
        r"^(rtl|ltr):",
        r"^(group|peer)(-hover|-focus|-active)?:",
        r"/([\d.]+|full|auto|screen)$",
        r"^(inset|top|right|bottom|left)(-|$)",
        # layout and display
        r"^(flex|inline-flex|grid|block|inline|inline-block|hidden|visible)$",
        r"^(absolute|relative|fixed|sticky|static)$",
        r"^(items|justify|content|self|place)-",
        r"^flex-(row|col|wrap|nowrap|1|auto|initial|none)",
        r"^grid-(cols|rows|flow)",
        # spacing and sizing
        r"^(gap|space)-",
        r"^[mp][trblxy]?-(\d+|auto|px)$",
        r"^(w|h|min-w|min-h|max-w|max-h|size)-",
        # colour, typography
        r"^text-(center|left|right|justify|start|end|xs|sm|base|lg|xl|2xl|3xl|4xl|5xl|6xl|7xl|8xl|9xl)$",
        r"^text-(uppercase|lowercase|capitalize|normal-case|underline|line-through|no-underline)$",
        r"^text-(truncate|ellipsis|clip)$",
        r"^(bg|border|ring|shadow|outline)-",
        r"^rounded(-|$)",
        r"^(font|leading|tracking|whitespace|break|truncate)-",
        r"^(uppercase|lowercase|capitalize|normal-case)$",
        # transform and animation
        r"^(transform|transition|duration|delay|ease|animate)-",
        r"^(scale|rotate|translate|skew)-",
        r"^transform$",
        r"^backdrop-blur-",
        r"^motion-",
        r"^(fade|slide|zoom|bounce|pulse|spin|ping)-",
        r"^(overflow|overscroll|scroll)-",
        r"^(cursor|pointer-events|select|resize)-",
        r"^(opacity|z)-",
        r"^(visible|invisible|collapse)$",
        # bootstrap
        r"^d-(none|inline|inline-block|block|grid|table|flex)$",
        r"^(float|clearfix|text)-(left|right|center|justify|start|end)$",
        r"^(m|p)[trblxy]?-[0-5]$",
        r"^(w|h)-(25|50|75|100|auto)$",
        r"^btn-(sm|lg|block)$",
        r"^text-(muted|primary|success|danger|warning|info|light|dark|white)$",
        r"^bg-(primary|secondary|success|danger|warning|info|light|dark|white|transparent)$",
        r"^border(-top|-bottom|-left|-right)?(-0)?$",
        r"^rounded(-top|-bottom|-left|-right|-circle|-pill|-0)?$",
        r"^shadow(-sm|-lg|-none)?$",
        r"^(align|justify|order|flex)-(start|end|center|between|around|fill|grow|shrink)$",
        r"^col(-sm|-md|-lg|-xl)?(-\d+|-auto)?$",
        r"^row(-cols)?(-\d+)?$",
        r"^g[xy]?-[0-5]$",
        r"^(show|hide|invisible|visible)$",
        r"^(position|top|bottom|start|end)-(static|relative|absolute|fixed|sticky|-\d+)$",
        r"^(row|col)$",
        r"^clearfix$",
        r"^pull-(left|right)$",
        r"^float-(left|right|none)$",
    )
)

_SEMANTIC_PATTERNS = tuple(
    re.compile(pattern)
    for pattern in (
        r"^(nav|menu|header|footer|sidebar|topbar|navbar|breadcrumb)",
        r"(navigation|dropdown|megamenu)$",
        r"^(btn|button|link|card|modal|dialog|popup|tooltip|alert|badge|chip)",
        r"^(form|input|select|checkbox|radio|textarea|label|fieldset)",
        r"^(table|list|item|row|cell|column)",
        r"^(accordion|tab|carousel|slider|gallery)",
        r"^(content|main|article|post|comment|title|subtitle|description|caption)",
        r"^(hero|banner|jumbotron|section|wrapper|box)",
        r"^(user|profile|avatar|account|auth)",
        r"^(product|item|price|cart|checkout|order)",
        r"^(page|layout|panel|widget|block)",
        r"-(primary|secondary|tertiary|success|error|warning|info|danger)$",
        r"-(active|inactive|disabled|enabled|selected|highlighted|focused)$",
        r"-(open|closed|expanded|collapsed|visible|hidden)$",
        r"-(large|medium|small|tiny|xs|sm|md|lg|xl)$",
        r"^(submit|cancel|close|delete|edit|save|back|next|prev|search)",
        r"^(loading|pending|complete|failed|draft|published)",
    )
)


@dataclass(frozen=True, slots=True)
class ClassClassification:
    is_dynamic: bool
    is_utility: bool
    is_semantic: bool

    @property
    def is_stable(self) -> bool:
        return not self.is_dynamic and not self.is_utility


def is_dynamic_class(name: str) -> bool:
    return any(pattern.search(name) for pattern in _DYNAMIC_PATTERNS)


def is_utility_class(name: str) -> bool:
    if len(name) <= 2 or name[0].isdigit():
        return True
    # negative tailwind values: -mt-2, -translate-x-4
    if name.startswith("-") and is_utility_class(name[1:]):
        return True
    return any(pattern.search(name) for pattern in _UTILITY_PATTERNS)


def is_semantic_class(name: str) -> bool:
    if is_dynamic_class(name) or is_utility_class(name):
        return False
    return any(pattern.search(name) for pattern in _SEMANTIC_PATTERNS)


def is_stable_class(name: str) -> bool:
    return not is_dynamic_class(name) and not is_utility_class(name)


def classify_class(name: str) -> ClassClassification:
    dynamic = is_dynamic_class(name)
    utility = is_utility_class(name)
    semantic = not dynamic and not utility and any(pattern.search(name) for pattern in _SEMANTIC_PATTERNS)
    return ClassClassification(is_dynamic=dynamic, is_utility=utility, is_semantic=semantic)


def filter_classes(classes: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Split ``classes`` into ``(stable, rejected)`` keeping their order."""
    stable: List[str] = []
    rejected: List[str] = []
    for cls in classes:
        (stable if is_stable_class(cls) else rejected).append(cls)
    return stable, rejected


def score_class(name: str) -> float:
    """Rough 0..1 value of a class as an identity signal."""
    if not is_stable_class(name):
        return 0.0
    score = 0.8 if is_semantic_class(name) else 0.5
    if len(name) < 5:
        score *= 0.6
    if any(char.isdigit() for char in name):
        score *= 0.7
    return min(score, 1.0)


class ClassStabilityClassifier:
    """Object form of the module functions, for injection into extractors."""

    def classify(self, name: str) -> ClassClassification:
        return classify_class(name)

    def stable(self, classes: Iterable[str]) -> List[str]:
        return filter_classes(classes)[0]

    def rank(self, classes: Iterable[str]) -> List[str]:
        """Order classes by value: semantic first, then the remaining stable ones."""
        return sorted(classes, key=lambda cls: (not is_semantic_class(cls), -score_class(cls)))


__all__ = [
    "ClassClassification",
    "ClassStabilityClassifier",
    "classify_class",
    "filter_classes",
    "is_dynamic_class",
    "is_semantic_class",
    "is_stable_class",
    "is_utility_class",
    "score_class",
]
