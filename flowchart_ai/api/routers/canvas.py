"""
Canvas API endpoints.

Routes:
- POST /canvas/analyze - Summarize a scene
- POST /canvas/inspect - Build the tool message answering a pending inspect_canvas call
- POST /canvas/merge - Synthesize a diagram and merge it into a scene

Dependencies: flowchart_ai.application.services.canvas_service, flowchart_ai.boundary.scene
System role: Canvas HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from flowchart_ai.api.deps import get_canvas_service
from flowchart_ai.application.services.canvas_service import CanvasService
from flowchart_ai.boundary.scene.host import InMemorySceneHost
from flowchart_ai.core.exceptions import ConversionError
from flowchart_ai.models.conversation import Message
from flowchart_ai.models.diagram import AnalyzeRequest, InspectRequest, MergeOutcome, MergeRequest
from flowchart_ai.models.scene import CanvasSnapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/canvas", tags=["canvas"])


@router.post("/analyze", response_model=CanvasSnapshot, response_model_by_alias=True)
async def analyze_canvas(
    request: AnalyzeRequest,
    canvas_service: CanvasService = Depends(get_canvas_service),
) -> CanvasSnapshot:
    """Summarize a scene for display or as model context."""
    return canvas_service.analyze(request.elements, request.last_synthesized_ddl)


@router.post("/inspect", response_model=Message, response_model_by_alias=True)
async def inspect_canvas(
    request: InspectRequest,
    canvas_service: CanvasService = Depends(get_canvas_service),
) -> Message:
    """
    Answer a suspended inspect_canvas invocation.

    The returned message is appended to the suspended transcript before
    re-submitting it to the chat endpoint.
    """
    return canvas_service.inspect(request.tool_call_id, request.elements, request.last_synthesized_ddl)


@router.post("/merge", response_model=MergeOutcome, response_model_by_alias=True)
async def merge_diagram(
    request: MergeRequest,
    canvas_service: CanvasService = Depends(get_canvas_service),
) -> MergeOutcome:
    """
    Apply a diagram to the submitted scene.

    Returns:
        MergeOutcome: New scene, added/removed ids and the re-frame box

    Raises:
        HTTPException(422): Diagram text could not be converted
    """
    host = InMemorySceneHost(request.elements)
    try:
        return await canvas_service.apply_diagram(host, request.diagram)
    except ConversionError as e:
        logger.info(f"{__name__}:merge_diagram - Conversion failed: {e.reason}", extra={"line": e.line})
        detail = e.reason if e.line is None else f"{e.reason} (line {e.line})"
        raise HTTPException(status_code=422, detail=detail)
