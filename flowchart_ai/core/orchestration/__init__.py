"""
Conversation orchestration.

Exports:
  - ConversationOrchestrator: Turn state machine
  - InferenceClient, LangChainInferenceClient, CompletionChunk: Inference port and adapter
  - ToolCallAccumulator, ToolCallFragment: Streamed tool-call reassembly
  - TOOL_SCHEMAS: Tools offered to the model
"""

from flowchart_ai.core.orchestration.inference import (
    CompletionChunk,
    FinishReason,
    InferenceClient,
    LangChainInferenceClient,
)
from flowchart_ai.core.orchestration.orchestrator import ConversationOrchestrator, validate_transcript
from flowchart_ai.core.orchestration.tool_calls import ToolCallAccumulator, ToolCallFragment
from flowchart_ai.core.orchestration.tools import INSPECT_CANVAS, SYNTHESIZE_DIAGRAM, TOOL_SCHEMAS

__all__ = [
    "CompletionChunk",
    "FinishReason",
    "InferenceClient",
    "LangChainInferenceClient",
    "ConversationOrchestrator",
    "validate_transcript",
    "ToolCallAccumulator",
    "ToolCallFragment",
    "TOOL_SCHEMAS",
    "SYNTHESIZE_DIAGRAM",
    "INSPECT_CANVAS",
]
