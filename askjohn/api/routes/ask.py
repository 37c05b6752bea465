"""Ask John API Routes.

- POST /ask: answer a question
- GET /knowledge/status: index state and last indexing report
- POST /knowledge/reindex: rebuild the index from the source document
"""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from askjohn.api.routes import health
from askjohn.assistant.ask_john import AskJohnInput, AskJohnOutput, ChatTurn, get_assistant
from askjohn.knowledge.base import get_knowledge_base
from askjohn.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["ask"])


# Request/Response models
class AskRequest(BaseModel):
    """A question for John."""

    query: str = Field(..., min_length=1, description="The user's current question")
    chat_history: list[ChatTurn] = Field(
        default_factory=list,
        description="Prior conversation turns, oldest first",
    )


class AskResponse(BaseModel):
    answer: str


class KnowledgeStatusResponse(BaseModel):
    """State of the knowledge index."""

    state: str
    chunks: int
    report: dict[str, Any] | None = None


@router.post("/ask", response_model=AskResponse)
async def ask(request: AskRequest) -> AskResponse:
    """Answer a question about ACA health insurance."""
    output: AskJohnOutput = await get_assistant().ask(
        AskJohnInput(query=request.query, chat_history=request.chat_history)
    )
    return AskResponse(answer=output.answer)


@router.get("/knowledge/status", response_model=KnowledgeStatusResponse)
async def knowledge_status() -> KnowledgeStatusResponse:
    """Report the knowledge index state."""
    kb = get_knowledge_base()
    return KnowledgeStatusResponse(
        state=kb.state.value,
        chunks=kb.chunk_count,
        report=kb.report.to_dict() if kb.report else None,
    )


@router.post("/knowledge/reindex", response_model=KnowledgeStatusResponse)
async def knowledge_reindex() -> KnowledgeStatusResponse:
    """Rebuild the knowledge index and swap it in."""
    kb = get_knowledge_base()
    report = await kb.reindex()
    health.set_component_health("knowledge_base", kb.is_ready)
    logger.info("knowledge_reindexed", **report.to_dict())
    return KnowledgeStatusResponse(
        state=kb.state.value,
        chunks=kb.chunk_count,
        report=report.to_dict(),
    )
