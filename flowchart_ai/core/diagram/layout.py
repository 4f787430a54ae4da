"""
Layered layout for diagram skeletons.

Assigns ranks by longest path over the graph with back edges removed, keeps
declaration order within a rank, then places nodes on a grid oriented by the
diagram direction. Coordinates are relative to (0, 0).

Dependencies: None
System role: Stage one of diagram synthesis (relative geometry)
"""

from flowchart_ai.core.diagram.ddl_parser import DiagramSkeleton, SkeletonNode

CHAR_WIDTH = 8.8
MIN_NODE_WIDTH = 140.0
MAX_NODE_WIDTH = 320.0
NODE_HEIGHT = 60.0
DIAMOND_HEIGHT = 90.0
LABEL_PADDING = 40.0
RANK_GAP = 80.0
ORDER_GAP = 60.0


def node_size(node: SkeletonNode) -> tuple[float, float]:
    """Width grows with label length; decisions and circles get extra room."""
    width = min(MAX_NODE_WIDTH, max(MIN_NODE_WIDTH, len(node.label) * CHAR_WIDTH + LABEL_PADDING))
    if node.scene_shape == "diamond":
        return width * 1.3, DIAMOND_HEIGHT
    if node.scene_shape == "ellipse":
        return width * 1.15, NODE_HEIGHT * 1.2
    return width, NODE_HEIGHT


def find_back_edges(skeleton: DiagramSkeleton) -> set[tuple[str, str]]:
    """
    Depth-first search in declaration order; an edge into a node still on the
    stack closes a cycle.
    """
    adjacency: dict[str, list[str]] = {key: [] for key in skeleton.nodes}
    for edge in skeleton.edges:
        if edge.source != edge.target and edge.target not in adjacency[edge.source]:
            adjacency[edge.source].append(edge.target)

    back_edges: set[tuple[str, str]] = set()
    state: dict[str, int] = {}  # 1 on stack, 2 done

    for root in skeleton.nodes:
        if root in state:
            continue
        state[root] = 1
        stack = [(root, iter(adjacency[root]))]
        while stack:
            node, children = stack[-1]
            child = next(children, None)
            if child is None:
                state[node] = 2
                stack.pop()
            elif state.get(child) == 1:
                back_edges.add((node, child))
            elif child not in state:
                state[child] = 1
                stack.append((child, iter(adjacency[child])))
    return back_edges


def assign_ranks(skeleton: DiagramSkeleton) -> None:
    """Longest-path ranking over the acyclic part of the graph."""
    back_edges = find_back_edges(skeleton)
    forward = [
        (edge.source, edge.target)
        for edge in skeleton.edges
        if edge.source != edge.target and (edge.source, edge.target) not in back_edges
    ]

    indegree = {key: 0 for key in skeleton.nodes}
    successors: dict[str, list[str]] = {key: [] for key in skeleton.nodes}
    for source, target in forward:
        successors[source].append(target)
        indegree[target] += 1

    rank = {key: 0 for key in skeleton.nodes}
    ready = [key for key in skeleton.nodes if indegree[key] == 0]
    while ready:
        key = ready.pop(0)
        for target in successors[key]:
            rank[target] = max(rank[target], rank[key] + 1)
            indegree[target] -= 1
            if indegree[target] == 0:
                ready.append(target)

    counters: dict[int, int] = {}
    for key, node in skeleton.nodes.items():
        node.rank = rank[key]
        node.order = counters.get(node.rank, 0)
        counters[node.rank] = node.order + 1


def layout(skeleton: DiagramSkeleton) -> DiagramSkeleton:
    """
    Compute relative geometry for every node in place.

    Args:
        skeleton: Parsed diagram

    Returns:
        DiagramSkeleton: The same skeleton, with rank, order and geometry set
    """
    assign_ranks(skeleton)
    vertical = skeleton.direction in ("TB", "BT")

    layers: dict[int, list[SkeletonNode]] = {}
    for node in skeleton.nodes.values():
        node.width, node.height = node_size(node)
        layers.setdefault(node.rank, []).append(node)

    # Main axis runs across ranks, cross axis within a rank.
    def main_extent(node: SkeletonNode) -> float:
        return node.height if vertical else node.width

    def cross_extent(node: SkeletonNode) -> float:
        return node.width if vertical else node.height

    layer_depth = {r: max(main_extent(n) for n in nodes) for r, nodes in layers.items()}
    layer_span = {
        r: sum(cross_extent(n) for n in nodes) + ORDER_GAP * (len(nodes) - 1)
        for r, nodes in layers.items()
    }
    widest = max(layer_span.values())

    main = 0.0
    for r in sorted(layers):
        cross = (widest - layer_span[r]) / 2
        for node in layers[r]:
            offset = (layer_depth[r] - main_extent(node)) / 2
            if vertical:
                node.x, node.y = cross, main + offset
            else:
                node.x, node.y = main + offset, cross
            cross += cross_extent(node) + ORDER_GAP
        main += layer_depth[r] + RANK_GAP
    total_main = main - RANK_GAP

    if skeleton.direction == "BT":
        for node in skeleton.nodes.values():
            node.y = total_main - node.y - node.height
    elif skeleton.direction == "RL":
        for node in skeleton.nodes.values():
            node.x = total_main - node.x - node.width

    return skeleton
