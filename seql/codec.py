"""Canonical string form of an identity.

::

    v1: form#login-form :: div.field > button[text="Sign in",type="submit"] {unique=true}

A node is written as its tag followed by the components of
:data:`NODE_LAYOUT`, in that order: ``.class`` tokens, an ``[attr="value"]``
block, ``#id`` and ``#ordinal``. The writer and the reader both walk this one
table. An id made only of digits is never stored (such ids are classified as
generated), so a ``#`` followed by digits is always the ordinal.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Type

from seql.classify.classes import ClassStabilityClassifier
from seql.classify.text import looks_like_pii, normalize_text
from seql.errors import (
    InvalidConstraintError,
    InvalidNodeError,
    MissingAnchorSeparatorError,
    MissingVersionError,
    SeqlParseError,
    UnexpectedTrailingContentError,
    UnsupportedVersionError,
    UnterminatedNodeError,
)
from seql.generator.anchor import ANCHOR_TAGS, DEGRADED_SCORE
from seql.generator.scoring import ConfidenceScorer
from seql.generator.semantics import score_semantics
from seql.models import (
    IDENTITY_VERSION,
    AnchorNode,
    Constraint,
    Identity,
    IdentityMeta,
    PathNode,
    Semantics,
    TargetNode,
    TextContent,
)
from seql.options import CodecOptions


SUPPORTED_VERSIONS = frozenset({"1", "1.0"})
ANCHOR_SEPARATOR = " :: "
PATH_SEPARATOR = " > "
TEXT_ATTRIBUTE = "text"
PARSED_SOURCE_TAG = "seql-string"

# Escaped inside quoted values.
VALUE_SPECIALS = '\\">:'
# Escaped inside bare tokens (class names, ids).
TOKEN_SPECIALS = VALUE_SPECIALS + ".[]#{},= \t"

_VERSION = re.compile(r"v(\d+(?:\.\d+)?)\s*:\s*")
_TAG = re.compile(r"[A-Za-z][A-Za-z0-9-]*")
_ATTR_NAME = re.compile(r"[^\s=~\]\[,\"]+")
_CONSTRAINT_KEY = re.compile(r"[a-z][a-z-]*")

_TEST_ID_PRIORITY = {"data-testid": 100, "data-qa": 99, "data-cy": 98, "data-test": 97, "data-test-id": 96}


def attribute_rank(name: str) -> int:
    """Selection priority of an attribute when a node has more than fit."""
    if name in _TEST_ID_PRIORITY:
        return _TEST_ID_PRIORITY[name]
    if name == "role":
        return 90
    if name in ("name", "type"):
        return 80
    if name.startswith(("data-", "aria-")):
        return 50
    return 10


def escape_value(value: str) -> str:
    return "".join("\\" + char if char in VALUE_SPECIALS else char for char in value)


def escape_token(value: str) -> str:
    return "".join("\\" + char if char in TOKEN_SPECIALS else char for char in value)


def unescape(value: str) -> str:
    out = []
    chars = iter(value)
    for char in chars:
        if char == "\\":
            out.append(next(chars, "\\"))
        else:
            out.append(char)
    return "".join(out)


@dataclass(slots=True)
class NodeFields:
    """Node components as read from or written to the string."""

    tag: str
    classes: List[str] = field(default_factory=list)
    attributes: List[Tuple[str, str, str]] = field(default_factory=list)
    node_id: Optional[str] = None
    ordinal: Optional[int] = None


class _Scanner:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.text[index] if index < len(self.text) else ""

    def startswith(self, token: str) -> bool:
        return self.text.startswith(token, self.pos)

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def skip_spaces(self) -> None:
        while self.peek().isspace():
            self.pos += 1

    def match(self, pattern: "re.Pattern[str]") -> Optional[str]:
        found = pattern.match(self.text, self.pos)
        if found is None:
            return None
        self.pos = found.end()
        return found.group(0)

    def fail(self, error: Type[SeqlParseError], message: str) -> SeqlParseError:
        return error(f"{message} at offset {self.pos}", source=self.text, position=self.pos)

    def token(self) -> str:
        """Bare token with backslash escapes, up to the next special character."""
        start = self.pos
        out = []
        while not self.at_end():
            char = self.peek()
            if char == "\\":
                if self.pos + 1 >= len(self.text):
                    raise self.fail(UnterminatedNodeError, "Dangling escape")
                out.append(self.text[self.pos + 1])
                self.pos += 2
                continue
            if char in TOKEN_SPECIALS or char.isspace():
                break
            out.append(char)
            self.pos += 1
        if self.pos == start:
            raise self.fail(InvalidNodeError, "Empty token")
        return "".join(out)

    def quoted(self) -> str:
        if self.peek() != '"':
            raise self.fail(InvalidNodeError, "Expected a quoted value")
        self.pos += 1
        start = self.pos
        while True:
            char = self.peek()
            if not char:
                raise self.fail(UnterminatedNodeError, "Unterminated quoted value")
            if char == "\\":
                self.pos += 2
                continue
            if char == '"':
                raw = self.text[start : self.pos]
                self.pos += 1
                return unescape(raw)
            self.pos += 1


# -- node layout ---------------------------------------------------------


def _write_classes(fields: NodeFields) -> str:
    return "".join("." + escape_token(cls) for cls in fields.classes)


def _read_classes(scanner: _Scanner, fields: NodeFields) -> None:
    while scanner.peek() == ".":
        scanner.pos += 1
        fields.classes.append(scanner.token())


def _write_attributes(fields: NodeFields) -> str:
    if not fields.attributes:
        return ""
    body = ",".join(f'{name}{op}"{escape_value(value)}"' for name, op, value in fields.attributes)
    return f"[{body}]"


def _read_attributes(scanner: _Scanner, fields: NodeFields) -> None:
    if scanner.peek() != "[":
        return
    scanner.pos += 1
    while True:
        scanner.skip_spaces()
        if scanner.at_end():
            raise scanner.fail(UnterminatedNodeError, "Unclosed attribute block")
        name = scanner.match(_ATTR_NAME)
        if name is None:
            raise scanner.fail(InvalidNodeError, "Expected an attribute name")
        if scanner.startswith("~="):
            op = "~="
        elif scanner.startswith("="):
            op = "="
        else:
            raise scanner.fail(InvalidNodeError, f"Expected '=' after attribute {name!r}")
        scanner.pos += len(op)
        fields.attributes.append((name, op, scanner.quoted()))
        scanner.skip_spaces()
        char = scanner.peek()
        if char == ",":
            scanner.pos += 1
            continue
        if char == "]":
            scanner.pos += 1
            return
        if not char:
            raise scanner.fail(UnterminatedNodeError, "Unclosed attribute block")
        raise scanner.fail(InvalidNodeError, f"Unexpected {char!r} in attribute block")


def _is_ordinal_next(scanner: _Scanner) -> bool:
    index = scanner.pos + 1
    end = index
    while end < len(scanner.text) and scanner.text[end].isdigit():
        end += 1
    if end == index:
        return False
    return end == len(scanner.text) or scanner.text[end] in TOKEN_SPECIALS or scanner.text[end].isspace()


def _write_id(fields: NodeFields) -> str:
    if not fields.node_id or fields.node_id.isdigit():
        return ""
    return "#" + escape_token(fields.node_id)


def _read_id(scanner: _Scanner, fields: NodeFields) -> None:
    if scanner.peek() == "#" and not _is_ordinal_next(scanner):
        scanner.pos += 1
        fields.node_id = scanner.token()


def _write_ordinal(fields: NodeFields) -> str:
    return f"#{fields.ordinal}" if fields.ordinal is not None else ""


def _read_ordinal(scanner: _Scanner, fields: NodeFields) -> None:
    if scanner.peek() == "#" and _is_ordinal_next(scanner):
        scanner.pos += 1
        value = int(scanner.token())
        if value < 1:
            raise scanner.fail(InvalidNodeError, "Ordinal must be 1 or greater")
        fields.ordinal = value


@dataclass(frozen=True, slots=True)
class LayoutComponent:
    name: str
    write: Callable[[NodeFields], str]
    read: Callable[[_Scanner, NodeFields], None]


NODE_LAYOUT: Tuple[LayoutComponent, ...] = (
    LayoutComponent("classes", _write_classes, _read_classes),
    LayoutComponent("attributes", _write_attributes, _read_attributes),
    LayoutComponent("id", _write_id, _read_id),
    LayoutComponent("ordinal", _write_ordinal, _read_ordinal),
)


def write_node(fields: NodeFields) -> str:
    return fields.tag + "".join(component.write(fields) for component in NODE_LAYOUT)


def read_node(scanner: _Scanner) -> NodeFields:
    tag = scanner.match(_TAG)
    if tag is None:
        raise scanner.fail(InvalidNodeError, "Node is missing a tag name")
    fields = NodeFields(tag=tag.lower())
    for component in NODE_LAYOUT:
        component.read(scanner, fields)
    return fields


# -- codec ---------------------------------------------------------------


class SeqlCodec:
    """Deterministic conversion between :class:`Identity` and its string."""

    def __init__(self, options: Optional[CodecOptions] = None) -> None:
        self.options = options or CodecOptions()
        self._classes = ClassStabilityClassifier()
        self._scorer = ConfidenceScorer()

    # writing

    def stringify(self, identity: Identity) -> str:
        version = "1" if identity.version in SUPPORTED_VERSIONS else identity.version
        body = [self.node_fields(node) for node in (*identity.path, identity.target)]
        return (
            f"v{version}: {write_node(self.node_fields(identity.anchor))}{ANCHOR_SEPARATOR}"
            + PATH_SEPARATOR.join(write_node(fields) for fields in body)
            + self._constraints(identity.constraints)
        )

    def node_fields(self, node: PathNode) -> NodeFields:
        semantics = node.semantics
        options = self.options
        classes = self._classes.rank(semantics.classes)[: options.max_classes]
        ranked = sorted(semantics.attributes.items(), key=lambda item: (-attribute_rank(item[0]), item[0]))
        attributes = [(name, "=", value) for name, value in ranked[: options.max_attributes]]
        text = semantics.text
        if (
            options.include_text
            and text is not None
            and text.normalized
            and len(text.normalized) <= options.max_text_length
            and not looks_like_pii(text.normalized)
        ):
            attributes.append((TEXT_ATTRIBUTE, "~=" if text.match_mode == "partial" else "=", text.normalized))
        return NodeFields(
            tag=node.tag,
            classes=sorted(classes),
            attributes=sorted(attributes),
            node_id=semantics.id,
            ordinal=node.ordinal,
        )

    def _constraints(self, constraints: Tuple[Constraint, ...]) -> str:
        pairs: List[str] = []
        for constraint in constraints:
            params = constraint.params
            if constraint.kind == "uniqueness":
                mode = params.get("mode", "best-score")
                pairs.append("unique=true" if mode == "best-score" else f"unique={mode}")
            elif constraint.kind == "visibility" and params.get("required", True):
                pairs.append("visible=true")
            elif constraint.kind == "position" and params.get("strategy"):
                pairs.append(f"pos={params['strategy']}")
            elif constraint.kind == "text-proximity" and params.get("reference"):
                pairs.append(f'text="{escape_value(str(params["reference"]))}"')
        return " {" + ",".join(pairs) + "}" if pairs else ""

    # reading

    def parse(self, text: str) -> Identity:
        source = text.strip()
        scanner = _Scanner(source)
        if not source.startswith("v"):
            raise scanner.fail(MissingVersionError, 'Missing version prefix (expected "v1:")')
        version_match = scanner.match(_VERSION)
        if version_match is None:
            raise scanner.fail(MissingVersionError, 'Missing version prefix (expected "v1:")')
        version = _VERSION.match(version_match).group(1)
        if version not in SUPPORTED_VERSIONS:
            raise UnsupportedVersionError(f"Unsupported version v{version}", source=source, position=1)

        anchor = read_node(scanner)
        scanner.skip_spaces()
        if not scanner.startswith("::"):
            if _find_unquoted(source, "::", scanner.pos) >= 0:
                raise scanner.fail(UnexpectedTrailingContentError, "Unexpected content after anchor")
            raise scanner.fail(MissingAnchorSeparatorError, 'Missing anchor separator "::"')
        scanner.pos += 2
        scanner.skip_spaces()

        nodes = [read_node(scanner)]
        constraints: List[Constraint] = []
        while True:
            scanner.skip_spaces()
            char = scanner.peek()
            if not char:
                break
            if char == ">":
                scanner.pos += 1
                scanner.skip_spaces()
                nodes.append(read_node(scanner))
                continue
            if char == "{":
                constraints = self._read_constraints(scanner)
                scanner.skip_spaces()
                if not scanner.at_end():
                    raise scanner.fail(UnexpectedTrailingContentError, "Unexpected content after constraints")
                break
            raise scanner.fail(UnexpectedTrailingContentError, f"Unexpected {char!r} after node")

        *path, target = nodes
        identity = Identity(
            version=IDENTITY_VERSION,
            anchor=self._anchor(anchor),
            path=tuple(self._node(fields, PathNode) for fields in path),
            target=self._node(target, TargetNode),
            constraints=tuple(constraints),
        )
        confidence = self._scorer.score_identity(identity, "unique")
        return identity.model_copy(
            update={"meta": IdentityMeta(confidence=confidence, degraded=identity.anchor.degraded, source_tag=PARSED_SOURCE_TAG)}
        )

    def _semantics(self, fields: NodeFields) -> Semantics:
        attributes: Dict[str, str] = {}
        text = None
        for name, op, value in fields.attributes:
            if name == TEXT_ATTRIBUTE:
                text = TextContent(
                    raw=value,
                    normalized=normalize_text(value),
                    match_mode="partial" if op == "~=" else "exact",
                )
            else:
                attributes[name] = value
        return Semantics(
            id=fields.node_id,
            classes=fields.classes,
            attributes=attributes,
            text=text,
            role=attributes.get("role"),
        )

    def _node(self, fields: NodeFields, model: Type[PathNode]) -> PathNode:
        semantics = self._semantics(fields)
        return model(tag=fields.tag, semantics=semantics, score=score_semantics(semantics), ordinal=fields.ordinal)

    def _anchor(self, fields: NodeFields) -> AnchorNode:
        semantics = self._semantics(fields)
        degraded = fields.tag in ("body", "html") and semantics.is_empty()
        score = DEGRADED_SCORE if degraded else score_semantics(semantics)
        if fields.tag in ANCHOR_TAGS:
            score = max(score, 0.5)
        return AnchorNode(tag=fields.tag, semantics=semantics, score=score, degraded=degraded, ordinal=fields.ordinal)

    def _read_constraints(self, scanner: _Scanner) -> List[Constraint]:
        scanner.pos += 1
        constraints: List[Constraint] = []
        while True:
            scanner.skip_spaces()
            if scanner.at_end():
                raise scanner.fail(UnterminatedNodeError, "Unclosed constraint block")
            if scanner.peek() == "}":
                scanner.pos += 1
                return constraints
            key = scanner.match(_CONSTRAINT_KEY)
            if key is None or scanner.peek() != "=":
                raise scanner.fail(InvalidConstraintError, "Expected key=value")
            scanner.pos += 1
            value = scanner.quoted() if scanner.peek() == '"' else scanner.token()
            constraint = _constraint(key, value)
            if constraint is not None:
                constraints.append(constraint)
            scanner.skip_spaces()
            if scanner.peek() == ",":
                scanner.pos += 1
            elif scanner.peek() != "}" and not scanner.at_end():
                raise scanner.fail(InvalidConstraintError, "Expected ',' or '}' after constraint")


def _constraint(key: str, value: str) -> Optional[Constraint]:
    """Constraint for one ``key=value`` pair; ``None`` for an explicit opt-out."""
    if key == "unique":
        if value in ("true", "best-score"):
            return Constraint.uniqueness("best-score")
        if value in ("strict", "allow-multiple"):
            return Constraint.uniqueness(value)  # type: ignore[arg-type]
        if value == "false":
            return None
        raise InvalidConstraintError(f"Invalid unique value {value!r}")
    if key == "visible":
        if value == "true":
            return Constraint.visibility()
        if value == "false":
            return None
        raise InvalidConstraintError(f"Invalid visible value {value!r}")
    if key == "pos":
        if value not in ("first-in-dom", "top-most", "left-most"):
            raise InvalidConstraintError(f"Unknown position strategy {value!r}")
        return Constraint.position(value)  # type: ignore[arg-type]
    if key == "text":
        return Constraint.text_proximity(value)
    raise InvalidConstraintError(f"Unknown constraint key {key!r}")


def _find_unquoted(text: str, token: str, start: int) -> int:
    quoted = False
    index = start
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == '"':
            quoted = not quoted
        elif not quoted and text.startswith(token, index):
            return index
        index += 1
    return -1


_default_codec = SeqlCodec()


def stringify(identity: Identity, options: Optional[CodecOptions] = None) -> str:
    codec = _default_codec if options is None else SeqlCodec(options)
    return codec.stringify(identity)


def parse(text: str) -> Identity:
    return _default_codec.parse(text)


__all__ = [
    "NODE_LAYOUT",
    "SeqlCodec",
    "attribute_rank",
    "escape_token",
    "escape_value",
    "looks_like_pii",
    "parse",
    "stringify",
    "unescape",
]
