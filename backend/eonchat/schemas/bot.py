from typing import List
from pydantic import BaseModel, Field

class BotQuestion(BaseModel):
    text: str = Field(..., max_length=500)

class BotReply(BaseModel):
    text: str
    options: List[str] = []
    fallback: bool = False

class BotSuggestion(BaseModel):
    word: str
    keys: List[str]
    weight: int

class BotMetrics(BaseModel):
    trie_nodes: int
    knowledge_nodes: int
    total_keywords: int
    unique_keywords: int
    avg_keywords_per_node: float
    history_size: int
