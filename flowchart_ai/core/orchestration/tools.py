"""
Tool definitions offered to the model.

Schemas use the OpenAI function format, which LangChain's bind_tools accepts
for every provider.

Dependencies: None
System role: Tool catalogue for the conversation orchestrator
"""

SYNTHESIZE_DIAGRAM = "synthesize_diagram"
INSPECT_CANVAS = "inspect_canvas"

# Executed inside the orchestrator.
LOCAL_TOOLS = frozenset({SYNTHESIZE_DIAGRAM})
# Need data only the canvas host has; the turn suspends.
HOST_TOOLS = frozenset({INSPECT_CANVAS})

SYNTHESIZE_DIAGRAM_SCHEMA = {
    "type": "function",
    "function": {
        "name": SYNTHESIZE_DIAGRAM,
        "description": (
            "Draw a flowchart on the user's canvas from Mermaid flowchart syntax. "
            "Use merge_mode 'replace' to redraw your previous diagram and 'extend' "
            "to add to the existing content."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "ddl_text": {
                    "type": "string",
                    "description": "Mermaid flowchart source starting with 'flowchart TD' or 'graph LR'",
                },
                "merge_mode": {
                    "type": "string",
                    "enum": ["replace", "extend"],
                    "description": "How the diagram combines with existing canvas content",
                },
                "description": {
                    "type": "string",
                    "description": "One-sentence summary of what the diagram shows",
                },
            },
            "required": ["ddl_text", "merge_mode"],
        },
    },
}

INSPECT_CANVAS_SCHEMA = {
    "type": "function",
    "function": {
        "name": INSPECT_CANVAS,
        "description": (
            "Read the current contents of the user's canvas: shapes, their text, "
            "connections and layout. Call this before modifying a diagram you did not just create."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "focus": {
                    "type": "string",
                    "description": "Optional aspect of the canvas to concentrate on",
                },
            },
        },
    },
}

TOOL_SCHEMAS = [SYNTHESIZE_DIAGRAM_SCHEMA, INSPECT_CANVAS_SCHEMA]
