from fastapi import APIRouter, Depends, Query
from typing import List
from eonchat.models.user import User
from eonchat.schemas.bot import BotMetrics, BotQuestion, BotReply, BotSuggestion
from eonchat.core.auth import get_current_user
from eonchat.services.bot import get_engine

router = APIRouter()


@router.post("/ask", response_model=BotReply)
async def ask_bot(
    question: BotQuestion,
    current_user: User = Depends(get_current_user)
):
    """
    Answer a question from the bot's knowledge base
    """
    return get_engine(current_user.id).get_response(question.text)


@router.get("/suggest", response_model=List[BotSuggestion])
async def suggest_keywords(
    prefix: str = Query("", max_length=50),
    current_user: User = Depends(get_current_user)
):
    if not prefix.strip():
        return []
    return get_engine(current_user.id).autocomplete(prefix)[:5]


@router.get("/metrics", response_model=BotMetrics)
async def bot_metrics(current_user: User = Depends(get_current_user)):
    return get_engine(current_user.id).get_metrics()
