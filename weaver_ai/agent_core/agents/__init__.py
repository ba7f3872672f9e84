from .base import AgentMeta, AgentRunOptions, BaseAgent, BaseMemory

__all__ = ["AgentMeta", "AgentRunOptions", "BaseAgent", "BaseMemory"]
