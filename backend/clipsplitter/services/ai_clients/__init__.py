"""
AI Clients package for speech-to-text and chat providers.

Speech backends (SpeechClient):
- OpenAISpeechClient: OpenAI whisper-1
- AssemblyAIClient: AssemblyAI upload + poll
- DeepgramClient: Deepgram /v1/listen
- WhisperClient: self-hosted Whisper server

Chat backends (ChatClient):
- OpenAIChatClient: OpenAI chat completions
- ClaudeClient: Anthropic Claude API
- OllamaClient: local Ollama

Usage:
    from clipsplitter.services.ai_clients import ChatClient, OpenAIChatClient

    async def summarize(client: ChatClient, text: str) -> str:
        content, _ = await client.chat([{"role": "user", "content": text}])
        return content
"""

from clipsplitter.services.ai_clients.assemblyai_client import AssemblyAIClient
from clipsplitter.services.ai_clients.base import (
    AIClientConfig,
    AIClientConnectionError,
    AIClientError,
    AIClientResponseError,
    AIClientTimeoutError,
    ChatClient,
    ChatUsage,
    HTTPClientBase,
    SpeechClient,
)
from clipsplitter.services.ai_clients.claude_client import ClaudeClient
from clipsplitter.services.ai_clients.deepgram_client import DeepgramClient
from clipsplitter.services.ai_clients.ollama_client import OllamaClient
from clipsplitter.services.ai_clients.openai_client import (
    OpenAIChatClient,
    OpenAISpeechClient,
)
from clipsplitter.services.ai_clients.whisper_client import WhisperClient

__all__ = [
    # Protocols and base classes
    "ChatClient",
    "SpeechClient",
    "HTTPClientBase",
    "AIClientConfig",
    "ChatUsage",
    # Errors
    "AIClientError",
    "AIClientTimeoutError",
    "AIClientConnectionError",
    "AIClientResponseError",
    # Speech implementations
    "OpenAISpeechClient",
    "AssemblyAIClient",
    "DeepgramClient",
    "WhisperClient",
    # Chat implementations
    "OpenAIChatClient",
    "ClaudeClient",
    "OllamaClient",
]
