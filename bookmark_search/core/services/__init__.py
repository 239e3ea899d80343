"""Core business services."""
from .chat_search_agent import ChatSearchAgent
from .conversation_session import ConversationSession
from .hybrid_retriever import HybridRetriever, HybridWeights
from .keyword_retriever import KeywordRetriever
from .query_planner import PlannerContext, QueryPlanner
from .semantic_retriever import SemanticRetriever

__all__ = [
    "KeywordRetriever",
    "SemanticRetriever",
    "HybridRetriever",
    "HybridWeights",
    "QueryPlanner",
    "PlannerContext",
    "ChatSearchAgent",
    "ConversationSession",
]
