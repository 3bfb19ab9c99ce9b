"""
Agent Base Classes

LLM-backed phase executors for the publishing pipeline.
"""

from .base_agent import BaseAgent, LLMBackend
from .phase_agents import (
    CriticAgent,
    EditorAgent,
    FactCheckerAgent,
    ResearchAgent,
    WriterAgent,
    build_agents,
)

__all__ = [
    "BaseAgent",
    "CriticAgent",
    "EditorAgent",
    "FactCheckerAgent",
    "LLMBackend",
    "ResearchAgent",
    "WriterAgent",
    "build_agents",
]
