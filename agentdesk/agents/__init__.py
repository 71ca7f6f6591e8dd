"""AgentDesk agents using OpenAI Agents SDK."""

from agentdesk.agents.prompt_review_agent import PromptReviewAgent

__all__ = ["PromptReviewAgent"]
