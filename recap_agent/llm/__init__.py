from .openai_compat import ChatCompletionResult, LLMConfigError, OpenAICompatibleChatClient
from .toolbox import CompletionClient, GenerationToolbox

__all__ = [
    "ChatCompletionResult",
    "CompletionClient",
    "GenerationToolbox",
    "LLMConfigError",
    "OpenAICompatibleChatClient",
]
