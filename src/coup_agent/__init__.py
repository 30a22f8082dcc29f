"""
Coup AI Agent.
Rule-based player with claim tracking, bluffing and end-game look-ahead.
"""
from .agent import CoupAIPlayer, create_ai_player
from .models import AgentOptions, GameStateSnapshot

__all__ = ["CoupAIPlayer", "create_ai_player", "AgentOptions", "GameStateSnapshot"]
