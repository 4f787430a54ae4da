"""
Test suite for the diagram description parser.

Covers headers and directions, node shapes, link styles and labels, chains
and groups, ignored statements, and every conversion failure.

System role: Verification of diagram synthesis stage one
"""

import pytest

from flowchart_ai.core.diagram.ddl_parser import FlowchartParser, parse_ddl
from flowchart_ai.core.exceptions import ConversionError


class TestParseHeader:
    """Test suite for the diagram declaration line."""

    @pytest.mark.parametrize(
        "header, expected",
        [
            ("flowchart TD", "TB"),
            ("flowchart TB", "TB"),
            ("graph LR", "LR"),
            ("graph RL", "RL"),
            ("flowchart BT", "BT"),
            ("flowchart", "TB"),
        ],
    )
    def test_parse_should_read_direction(self, header: str, expected: str) -> None:
        """Test every supported direction, defaulting to top-to-bottom."""
        skeleton = parse_ddl(f"{header}\n  A --> B")

        assert skeleton.direction == expected

    def test_parse_should_reject_unsupported_diagram_type(self) -> None:
        """Test a recognized non-flowchart type is named in the error."""
        with pytest.raises(ConversionError) as exc_info:
            parse_ddl("sequenceDiagram\n  Alice->>Bob: Hi")

        assert "sequenceDiagram" in exc_info.value.reason
        assert exc_info.value.line == 1

    def test_parse_should_reject_missing_declaration(self) -> None:
        """Test text without a diagram declaration fails."""
        with pytest.raises(ConversionError, match="Missing diagram declaration"):
            parse_ddl("A --> B")


class TestParseNodes:
    """Test suite for node declarations."""

    @pytest.mark.parametrize(
        "declaration, shape, scene_shape",
        [
            ("A[Label]", "rectangle", "rectangle"),
            ("A(Label)", "round", "rectangle"),
            ("A([Label])", "stadium", "rectangle"),
            ("A[[Label]]", "subroutine", "rectangle"),
            ("A[(Label)]", "cylinder", "rectangle"),
            ("A((Label))", "circle", "ellipse"),
            ("A{Label}", "decision", "diamond"),
            ("A{{Label}}", "hexagon", "rectangle"),
            ("A[/Label/]", "parallelogram", "rectangle"),
            ("A[\\Label\\]", "parallelogram", "rectangle"),
            ("A>Label]", "flag", "rectangle"),
        ],
    )
    def test_parse_should_recognize_shape(self, declaration: str, shape: str, scene_shape: str) -> None:
        """Test each node shape and its host shape mapping."""
        skeleton = parse_ddl(f"flowchart TD\n  {declaration}")

        node = skeleton.nodes["A"]
        assert node.label == "Label"
        assert node.shape == shape
        assert node.scene_shape == scene_shape

    def test_parse_should_use_id_as_label_for_bare_nodes(self) -> None:
        """Test an undecorated node id is its own label."""
        skeleton = parse_ddl("graph LR\n  Start --> Stop")

        assert skeleton.nodes["Start"].label == "Start"
        assert skeleton.nodes["Start"].shape == "rectangle"

    def test_parse_should_strip_quotes_and_keep_semicolons_inside_them(self) -> None:
        """Test quoted labels may contain statement separators."""
        skeleton = parse_ddl('flowchart TD\n  A["Load; validate"] --> B')

        assert skeleton.nodes["A"].label == "Load; validate"
        assert len(skeleton.edges) == 1

    def test_parse_should_let_later_definition_win(self) -> None:
        """Test a node referenced first and defined later takes the definition."""
        skeleton = parse_ddl("flowchart TD\n  A --> B\n  B{Ready?}")

        assert skeleton.nodes["B"].label == "Ready?"
        assert skeleton.nodes["B"].shape == "decision"

    def test_parse_should_keep_declaration_order(self) -> None:
        """Test nodes are ordered by first appearance."""
        skeleton = parse_ddl("flowchart TD\n  C --> A\n  B --> C")

        assert list(skeleton.nodes) == ["C", "A", "B"]


class TestParseLinks:
    """Test suite for edges."""

    @pytest.mark.parametrize(
        "link, arrow",
        [
            ("-->", True),
            ("--->", True),
            ("---", False),
            ("-.->", True),
            ("-.-", False),
            ("==>", True),
            ("===", False),
        ],
    )
    def test_parse_should_read_link_style(self, link: str, arrow: bool) -> None:
        """Test arrowed and plain link variants."""
        skeleton = parse_ddl(f"flowchart TD\n  A {link} B")

        assert len(skeleton.edges) == 1
        edge = skeleton.edges[0]
        assert (edge.source, edge.target) == ("A", "B")
        assert edge.arrow is arrow

    @pytest.mark.parametrize(
        "statement",
        [
            "A -->|Yes| B",
            "A -- Yes --> B",
            "A -. Yes .-> B",
            "A == Yes ==> B",
        ],
    )
    def test_parse_should_read_edge_label(self, statement: str) -> None:
        """Test pipe and inline edge labels."""
        skeleton = parse_ddl(f"flowchart TD\n  {statement}")

        assert skeleton.edges[0].label == "Yes"

    def test_parse_should_expand_chains(self) -> None:
        """Test A --> B --> C yields two edges."""
        skeleton = parse_ddl("flowchart TD\n  A --> B --> C")

        assert [(e.source, e.target) for e in skeleton.edges] == [("A", "B"), ("B", "C")]

    def test_parse_should_expand_ampersand_groups(self) -> None:
        """Test A & B --> C & D yields the cross product."""
        skeleton = parse_ddl("flowchart TD\n  A & B --> C & D")

        assert [(e.source, e.target) for e in skeleton.edges] == [
            ("A", "C"),
            ("A", "D"),
            ("B", "C"),
            ("B", "D"),
        ]

    def test_parse_should_split_statements_on_semicolons(self) -> None:
        """Test several statements on one line."""
        skeleton = parse_ddl("graph LR; A --> B; B --> C")

        assert skeleton.direction == "LR"
        assert len(skeleton.edges) == 2


class TestParseIgnoredStatements:
    """Test suite for statements that carry no structure."""

    def test_parse_should_skip_comments_styles_and_subgraphs(self) -> None:
        """Test styling, comments and subgraph wrappers are ignored."""
        text = """flowchart TD
            %% a comment
            classDef important fill:#f96
            subgraph Checkout
              A[Cart]:::important --> B[Pay]
            end
            style A fill:#f9f
            linkStyle 0 stroke:#333
            click A "https://example.com"
        """

        skeleton = parse_ddl(text)

        assert list(skeleton.nodes) == ["A", "B"]
        assert skeleton.nodes["A"].label == "Cart"
        assert len(skeleton.edges) == 1

    @pytest.mark.parametrize("node_id", ["End", "Class", "Style", "Click", "Subgraph"])
    def test_parse_should_keep_statements_starting_with_capitalized_keywords(self, node_id: str) -> None:
        """Test only the lowercase reserved words are skipped."""
        skeleton = parse_ddl(f"flowchart TD\n  A[Start] --> {node_id}[Done]\n  {node_id} --> A")

        assert [(edge.source, edge.target) for edge in skeleton.edges] == [("A", node_id), (node_id, "A")]
        assert skeleton.nodes[node_id].label == "Done"


class TestParseErrors:
    """Test suite for conversion failures."""

    def test_parse_should_reject_empty_text(self) -> None:
        with pytest.raises(ConversionError, match="empty"):
            parse_ddl("   \n ")

    def test_parse_should_reject_text_over_size_limit(self) -> None:
        """Test the configurable character limit."""
        with pytest.raises(ConversionError, match="too large"):
            FlowchartParser(max_text_size=20).parse("flowchart TD\n  A --> B --> C")

    def test_parse_should_reject_too_many_edges(self) -> None:
        """Test the configurable connection limit reports the line."""
        with pytest.raises(ConversionError, match="Too many connections") as exc_info:
            parse_ddl("flowchart TD\n  A --> B --> C --> D", max_edges=2)

        assert exc_info.value.line == 2

    def test_parse_should_reject_diagram_without_nodes(self) -> None:
        with pytest.raises(ConversionError, match="no nodes"):
            parse_ddl("flowchart TD\n  %% nothing here")

    def test_parse_should_report_unclosed_shape_with_line(self) -> None:
        """Test an unterminated bracket names the node and its line."""
        with pytest.raises(ConversionError) as exc_info:
            parse_ddl("flowchart TD\n  A --> B\n  C[Broken --> D")

        assert "Unclosed shape for node 'C'" in exc_info.value.reason
        assert exc_info.value.line == 3

    def test_parse_should_reject_dangling_link(self) -> None:
        """Test a link without a target node fails."""
        with pytest.raises(ConversionError, match="Expected a node id"):
            parse_ddl("flowchart TD\n  A -->")
