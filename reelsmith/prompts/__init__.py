"""Prompt templates and their loader."""

from reelsmith.prompts.manager import PromptManager, PromptType, RenderedPrompt

__all__ = [
    "PromptManager",
    "PromptType",
    "RenderedPrompt",
]
