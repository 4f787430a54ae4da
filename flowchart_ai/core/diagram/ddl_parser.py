"""
Diagram description parser.

Parses the Mermaid flowchart subset into a DiagramSkeleton: nodes and edges
keyed by their DDL identifiers, with no host-recognized identity yet.

Dependencies: re
System role: Stage one of diagram synthesis
"""

import logging
import re
from dataclasses import dataclass, field

from flowchart_ai.core.exceptions import ConversionError

logger = logging.getLogger(__name__)

DEFAULT_MAX_EDGES = 500
DEFAULT_MAX_TEXT_SIZE = 50_000

DIRECTIONS = {"TB": "TB", "TD": "TB", "BT": "BT", "LR": "LR", "RL": "RL"}

HEADER_RE = re.compile(r"^(?:flowchart|graph)(?:\s+(?P<direction>TB|TD|BT|LR|RL))?\s*$", re.IGNORECASE)

UNSUPPORTED_DIAGRAM_TYPES = (
    "sequenceDiagram",
    "classDiagram",
    "stateDiagram",
    "erDiagram",
    "journey",
    "gantt",
    "pie",
    "gitGraph",
    "mindmap",
    "timeline",
    "quadrantChart",
    "requirementDiagram",
    "C4Context",
)

# Mermaid reserved words, matched case-sensitively.
IGNORED_KEYWORDS = frozenset({"end", "subgraph", "classDef", "class", "style", "linkStyle", "click", "direction"})

# Longest openers first so "([" is not read as "(".
_LABEL = r'(?P<label>"[^"]*"|.*?)'
NODE_SHAPES: list[tuple[str, re.Pattern[str]]] = [
    ("stadium", re.compile(r"\(\[" + _LABEL + r"\]\)")),
    ("subroutine", re.compile(r"\[\[" + _LABEL + r"\]\]")),
    ("cylinder", re.compile(r"\[\(" + _LABEL + r"\)\]")),
    ("circle", re.compile(r"\(\(" + _LABEL + r"\)\)")),
    ("hexagon", re.compile(r"\{\{" + _LABEL + r"\}\}")),
    ("parallelogram", re.compile(r"\[/" + _LABEL + r"[/\\]\]")),
    ("parallelogram", re.compile(r"\[\\" + _LABEL + r"[/\\]\]")),
    ("flag", re.compile(r">" + _LABEL + r"\]")),
    ("rectangle", re.compile(r"\[" + _LABEL + r"\]")),
    ("round", re.compile(r"\(" + _LABEL + r"\)")),
    ("decision", re.compile(r"\{" + _LABEL + r"\}")),
]

# Host shape for each DDL shape.
SCENE_SHAPES = {"circle": "ellipse", "decision": "diamond"}

NODE_ID_RE = re.compile(r"\s*(?P<id>\w+)")
AMPERSAND_RE = re.compile(r"\s*&")
CLASS_SUFFIX_RE = re.compile(r":::[\w-]+")
STATEMENT_SPLIT_RE = re.compile(r';(?=(?:[^"]*"[^"]*")*[^"]*$)')

LINK_RE = re.compile(
    r"""\s*(?:
        (?P<plain>-{2,}>|-\.+->|={2,}>|-{3,}|-\.+-|={3,})
      | --\s*(?P<solid_text>[^->|].*?)\s*-{2,}>
      | -\.\s*(?P<dotted_text>.+?)\s*\.-+>
      | ==\s*(?P<thick_text>[^=>|].*?)\s*={2,}>
    )
    (?:\s*\|(?P<pipe_text>[^|]*)\|)?""",
    re.VERBOSE,
)


@dataclass
class SkeletonNode:
    """Node with DDL identity and relative layout (filled by layout)."""

    key: str
    label: str
    shape: str = "rectangle"
    rank: int = 0
    order: int = 0
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def scene_shape(self) -> str:
        return SCENE_SHAPES.get(self.shape, "rectangle")


@dataclass
class SkeletonEdge:
    source: str
    target: str
    label: str | None = None
    arrow: bool = True


@dataclass
class DiagramSkeleton:
    """Parsed diagram. Nodes keep first-declaration order."""

    direction: str = "TB"
    nodes: dict[str, SkeletonNode] = field(default_factory=dict)
    edges: list[SkeletonEdge] = field(default_factory=list)


def _strip_quotes(label: str) -> str:
    label = label.strip()
    if len(label) >= 2 and label[0] == label[-1] == '"':
        label = label[1:-1]
    return label.strip()


def _statements(text: str) -> list[tuple[int, str]]:
    """Split text into (line number, statement) pairs, dropping blanks and comments."""
    statements = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("%%"):
            continue
        for part in STATEMENT_SPLIT_RE.split(stripped):
            part = part.strip()
            if part:
                statements.append((line_no, part))
    return statements


def _detect_unsupported(header: str) -> str | None:
    lowered = header.lower()
    for diagram_type in UNSUPPORTED_DIAGRAM_TYPES:
        if lowered.startswith(diagram_type.lower()):
            return diagram_type
    return None


def _is_ignored(statement: str) -> bool:
    return statement.split(maxsplit=1)[0] in IGNORED_KEYWORDS


class FlowchartParser:
    """
    Parser for one DDL document.

    Usage:
        skeleton = FlowchartParser().parse(text)
    """

    def __init__(
        self,
        max_edges: int = DEFAULT_MAX_EDGES,
        max_text_size: int = DEFAULT_MAX_TEXT_SIZE,
    ) -> None:
        self.max_edges = max_edges
        self.max_text_size = max_text_size

    def parse(self, text: str) -> DiagramSkeleton:
        """
        Parse DDL text into a skeleton.

        Args:
            text: Mermaid flowchart source

        Returns:
            DiagramSkeleton: Nodes and edges in declaration order

        Raises:
            ConversionError: On any syntax error, unsupported diagram type or limit breach
        """
        if not text or not text.strip():
            raise ConversionError("Diagram text is empty")
        if len(text) > self.max_text_size:
            raise ConversionError(
                f"Diagram text too large: {len(text)} characters (maximum {self.max_text_size})"
            )

        statements = _statements(text)
        if not statements:
            raise ConversionError("Diagram text contains only comments")

        header_line, header = statements[0]
        skeleton = DiagramSkeleton(direction=self._parse_header(header, header_line))

        for line_no, statement in statements[1:]:
            if _is_ignored(statement):
                continue
            self._parse_statement(CLASS_SUFFIX_RE.sub("", statement), line_no, skeleton)
            if len(skeleton.edges) > self.max_edges:
                raise ConversionError(
                    f"Too many connections: more than {self.max_edges}", line=line_no
                )

        if not skeleton.nodes:
            raise ConversionError("Diagram contains no nodes")

        logger.debug(
            f"{__name__}:parse - Parsed diagram",
            extra={
                "direction": skeleton.direction,
                "node_count": len(skeleton.nodes),
                "edge_count": len(skeleton.edges),
            },
        )
        return skeleton

    def _parse_header(self, header: str, line_no: int) -> str:
        match = HEADER_RE.match(header)
        if match:
            return DIRECTIONS[(match.group("direction") or "TB").upper()]

        unsupported = _detect_unsupported(header)
        if unsupported:
            raise ConversionError(
                f"Unsupported diagram type '{unsupported}'. Only flowchart diagrams can be converted",
                line=line_no,
            )
        raise ConversionError(
            "Missing diagram declaration. Start with 'flowchart TD' or 'graph LR'",
            line=line_no,
        )

    def _parse_statement(self, statement: str, line_no: int, skeleton: DiagramSkeleton) -> None:
        pos, group = self._parse_node_group(statement, 0, line_no, skeleton)

        while pos < len(statement) and statement[pos:].strip():
            link = LINK_RE.match(statement, pos)
            if not link:
                raise ConversionError(
                    f"Unexpected text '{statement[pos:].strip()}'", line=line_no
                )
            label = next(
                (
                    link.group(name)
                    for name in ("pipe_text", "solid_text", "dotted_text", "thick_text")
                    if link.group(name)
                ),
                None,
            )
            plain = link.group("plain")
            arrow = plain is None or plain.endswith(">")

            pos, next_group = self._parse_node_group(statement, link.end(), line_no, skeleton)
            for source in group:
                for target in next_group:
                    skeleton.edges.append(
                        SkeletonEdge(
                            source=source,
                            target=target,
                            label=_strip_quotes(label) if label else None,
                            arrow=arrow,
                        )
                    )
            group = next_group

    def _parse_node_group(
        self, statement: str, pos: int, line_no: int, skeleton: DiagramSkeleton
    ) -> tuple[int, list[str]]:
        keys = []
        while True:
            pos, key = self._parse_node(statement, pos, line_no, skeleton)
            keys.append(key)
            ampersand = AMPERSAND_RE.match(statement, pos)
            if not ampersand:
                return pos, keys
            pos = ampersand.end()

    def _parse_node(
        self, statement: str, pos: int, line_no: int, skeleton: DiagramSkeleton
    ) -> tuple[int, str]:
        match = NODE_ID_RE.match(statement, pos)
        if not match:
            raise ConversionError(
                f"Expected a node id at '{statement[pos:].strip() or statement}'", line=line_no
            )
        key = match.group("id")
        pos = match.end()

        for shape, pattern in NODE_SHAPES:
            shape_match = pattern.match(statement, pos)
            if shape_match:
                self._register(skeleton, key, _strip_quotes(shape_match.group("label")), shape)
                return shape_match.end(), key

        if pos < len(statement) and statement[pos] in "[({>":
            raise ConversionError(f"Unclosed shape for node '{key}'", line=line_no)

        self._register(skeleton, key, None, None)
        return pos, key

    @staticmethod
    def _register(
        skeleton: DiagramSkeleton, key: str, label: str | None, shape: str | None
    ) -> None:
        node = skeleton.nodes.get(key)
        if node is None:
            skeleton.nodes[key] = SkeletonNode(
                key=key, label=label or key, shape=shape or "rectangle"
            )
            return
        # Last explicit definition wins.
        if shape is not None:
            node.label = label or key
            node.shape = shape


def parse_ddl(
    text: str,
    max_edges: int = DEFAULT_MAX_EDGES,
    max_text_size: int = DEFAULT_MAX_TEXT_SIZE,
) -> DiagramSkeleton:
    """Parse DDL text with the given limits."""
    return FlowchartParser(max_edges=max_edges, max_text_size=max_text_size).parse(text)
