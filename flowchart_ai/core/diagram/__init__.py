"""
Diagram synthesizer and merge engine.

Exports:
  - parse_ddl, DiagramSkeleton: Stage one (DDL to skeleton)
  - synthesize, synthesize_spec: DDL to scene elements
  - merge, placement_origin, bounding_box: Scene reconciliation
"""

from flowchart_ai.core.diagram.ddl_parser import DiagramSkeleton, parse_ddl
from flowchart_ai.core.diagram.merge import (
    bounding_box,
    count_ai_elements,
    has_ai_diagram,
    merge,
    placement_origin,
)
from flowchart_ai.core.diagram.synthesizer import synthesize, synthesize_spec

__all__ = [
    "DiagramSkeleton",
    "parse_ddl",
    "synthesize",
    "synthesize_spec",
    "merge",
    "placement_origin",
    "bounding_box",
    "count_ai_elements",
    "has_ai_diagram",
]
