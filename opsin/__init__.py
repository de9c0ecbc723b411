"""Azure OpenAI chat client and diagnostics service for color analysis of exported photos."""

from .azure_openai import AzureChatClient

__all__ = ["AzureChatClient"]
