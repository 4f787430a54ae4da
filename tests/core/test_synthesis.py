"""
Test suite for diagram layout and synthesis.

Covers rank assignment (including cycles), direction handling, node sizing,
element materialization and the result-returning synthesize_spec wrapper.

System role: Verification of diagram synthesis stage two
"""

import pytest

from flowchart_ai.core.diagram.ddl_parser import parse_ddl
from flowchart_ai.core.diagram.layout import (
    MAX_NODE_WIDTH,
    MIN_NODE_WIDTH,
    NODE_HEIGHT,
    RANK_GAP,
    find_back_edges,
    layout,
    node_size,
)
from flowchart_ai.core.diagram.synthesizer import synthesize, synthesize_spec
from flowchart_ai.core.exceptions import ConversionError
from flowchart_ai.models.diagram import DiagramSpec, MergeMode
from flowchart_ai.models.scene import ElementKind, Point, Provenance

DIAMOND_TEXT = "flowchart TD\n  A --> B\n  A --> C\n  B --> D\n  C --> D"


class TestLayout:
    """Test suite for layered layout."""

    def test_layout_should_rank_by_longest_path(self) -> None:
        """Test a diamond-shaped graph gets three ranks."""
        skeleton = layout(parse_ddl(DIAMOND_TEXT))

        ranks = {key: node.rank for key, node in skeleton.nodes.items()}
        assert ranks == {"A": 0, "B": 1, "C": 1, "D": 2}
        assert (skeleton.nodes["B"].order, skeleton.nodes["C"].order) == (0, 1)

    def test_layout_should_center_layers(self) -> None:
        """Test narrower layers are centered under the widest one."""
        skeleton = layout(parse_ddl(DIAMOND_TEXT))

        a, b, c, d = (skeleton.nodes[key] for key in "ABCD")
        assert b.x == 0
        assert c.x > b.x
        assert a.x == pytest.approx((b.x + c.x + c.width - a.width) / 2)
        assert d.x == pytest.approx(a.x)
        assert a.y < b.y == c.y < d.y

    def test_find_back_edges_should_break_cycles(self) -> None:
        """Test the edge closing a loop is detected and ranking still terminates."""
        skeleton = parse_ddl("flowchart TD\n  A --> B --> C --> A")

        assert find_back_edges(skeleton) == {("C", "A")}
        layout(skeleton)
        assert [skeleton.nodes[key].rank for key in "ABC"] == [0, 1, 2]

    def test_layout_should_run_left_to_right(self) -> None:
        """Test LR places ranks along the x axis."""
        skeleton = layout(parse_ddl("flowchart LR\n  A --> B"))

        a, b = skeleton.nodes["A"], skeleton.nodes["B"]
        assert a.y == b.y
        assert b.x == pytest.approx(a.x + a.width + RANK_GAP)

    def test_layout_should_mirror_bottom_to_top(self) -> None:
        """Test BT puts the first rank at the bottom."""
        skeleton = layout(parse_ddl("flowchart BT\n  A --> B"))

        assert skeleton.nodes["A"].y > skeleton.nodes["B"].y
        assert skeleton.nodes["B"].y == 0

    def test_layout_should_mirror_right_to_left(self) -> None:
        skeleton = layout(parse_ddl("flowchart RL\n  A --> B"))

        assert skeleton.nodes["A"].x > skeleton.nodes["B"].x

    def test_node_size_should_grow_with_label_and_cap(self) -> None:
        """Test width bounds and per-shape heights."""
        skeleton = parse_ddl(
            "flowchart TD\n  A[x] --> B[" + "long label " * 10 + "]\n  B --> C{Ready?}"
        )

        assert node_size(skeleton.nodes["A"]) == (MIN_NODE_WIDTH, NODE_HEIGHT)
        assert node_size(skeleton.nodes["B"])[0] == MAX_NODE_WIDTH
        width, height = node_size(skeleton.nodes["C"])
        assert width > MIN_NODE_WIDTH
        assert height > NODE_HEIGHT


class TestSynthesize:
    """Test suite for synthesize()."""

    def test_synthesize_should_emit_nodes_then_edges(self) -> None:
        """Test element counts, ordering and kinds."""
        elements = synthesize("flowchart TD\n  A[Start] --> B{Ok?}\n  B -->|Yes| C[Done]")

        kinds = [element.kind for element in elements]
        assert kinds == [ElementKind.NODE] * 3 + [ElementKind.EDGE] * 2
        assert [element.text for element in elements[:3]] == ["Start", "Ok?", "Done"]
        assert elements[1].shape == "diamond"
        assert elements[4].text == "Yes"

    def test_synthesize_should_tag_provenance_and_generation(self) -> None:
        """Test every element is ai-tagged with one shared generation id and a fresh id."""
        elements = synthesize("flowchart TD\n  A --> B --> C")

        assert all(element.provenance == Provenance.AI for element in elements)
        assert len({element.generation_id for element in elements}) == 1
        assert len({element.id for element in elements}) == len(elements)

    def test_synthesize_should_build_two_nodes_and_one_edge_for_start_end(self) -> None:
        elements = synthesize("flowchart LR\nA[Start] --> B[End]")

        nodes = [element for element in elements if element.kind == ElementKind.NODE]
        edges = [element for element in elements if element.kind == ElementKind.EDGE]
        assert len(nodes) == 2
        assert len(edges) == 1
        assert [node.text for node in nodes] == ["Start", "End"]
        assert (edges[0].source_id, edges[0].target_id) == (nodes[0].id, nodes[1].id)

    def test_synthesize_should_generate_new_ids_each_time(self) -> None:
        first = synthesize("flowchart TD\n  A --> B")
        second = synthesize("flowchart TD\n  A --> B")

        assert not {e.id for e in first} & {e.id for e in second}
        assert first[0].generation_id != second[0].generation_id

    def test_synthesize_should_bind_edges_between_node_centers(self) -> None:
        """Test edge endpoints reference node ids and points span the centers."""
        elements = synthesize("flowchart TD\n  A --> B", origin=Point(x=500, y=100))

        a, b, edge = elements
        assert (edge.source_id, edge.target_id) == (a.id, b.id)
        assert edge.shape == "arrow"
        start, end = a.geometry.center, b.geometry.center
        assert (edge.geometry.x, edge.geometry.y) == (start.x, start.y)
        assert edge.points[0] == Point(x=0, y=0)
        assert edge.points[1] == Point(x=end.x - start.x, y=end.y - start.y)

    def test_synthesize_should_offset_by_origin(self) -> None:
        """Test the placement origin shifts every node."""
        at_zero = synthesize("flowchart TD\n  A --> B")
        shifted = synthesize("flowchart TD\n  A --> B", origin=Point(x=300, y=-40))

        assert shifted[0].geometry.x == at_zero[0].geometry.x + 300
        assert shifted[0].geometry.y == at_zero[0].geometry.y - 40

    def test_synthesize_should_draw_plain_links_as_lines(self) -> None:
        elements = synthesize("flowchart TD\n  A --- B")

        assert elements[-1].shape == "line"

    def test_synthesize_should_raise_conversion_error(self) -> None:
        with pytest.raises(ConversionError):
            synthesize("classDiagram\n  Animal <|-- Duck")


class TestSynthesizeSpec:
    """Test suite for synthesize_spec()."""

    def test_synthesize_spec_should_return_elements_on_success(self) -> None:
        spec = DiagramSpec(ddl_text="flowchart TD\n  A --> B", merge_mode=MergeMode.EXTEND)

        result = synthesize_spec(spec)

        assert result.ok
        assert result.spec == spec
        assert len(result.elements) == 3

    def test_synthesize_spec_should_report_reason_with_line(self) -> None:
        """Test a failure is reported in the result, not raised."""
        result = synthesize_spec(DiagramSpec(ddl_text="sequenceDiagram\n  A->>B: hi"))

        assert not result.ok
        assert result.elements == []
        assert "sequenceDiagram" in result.error
        assert result.error.endswith("(line 1)")

    def test_synthesize_spec_should_report_reason_without_line(self) -> None:
        result = synthesize_spec(DiagramSpec(ddl_text="   "))

        assert result.error == "Diagram text is empty"
