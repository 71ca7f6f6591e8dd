"""AgentDesk: management back-end for restaurant voice assistants."""

__version__ = "0.1.0"
