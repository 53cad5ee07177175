"""
Stage providers: backend selection and capability bundle.

Transcription and summarization each have a closed set of backends. The
backend is chosen once, at startup, as the first entry of the configured
priority list whose credentials are present. Call sites never branch on
provider names; they receive ready capability objects in StageProviders.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from clipsplitter.config import Settings
from clipsplitter.services.ai_clients import (
    AssemblyAIClient,
    ChatClient,
    ClaudeClient,
    DeepgramClient,
    OllamaClient,
    OpenAIChatClient,
    OpenAISpeechClient,
    SpeechClient,
    WhisperClient,
)
from clipsplitter.services.summarizer import TextSummarizer
from clipsplitter.services.title_renderer import TitleRenderer
from clipsplitter.services.transcoder import FFmpegTranscoder
from clipsplitter.services.transcriber import ClipTranscriber

logger = logging.getLogger(__name__)


class TranscriptionBackend(str, Enum):
    """Speech-to-text backends."""

    OPENAI = "openai"
    ASSEMBLYAI = "assemblyai"
    DEEPGRAM = "deepgram"
    WHISPER = "whisper"


class SummarizationBackend(str, Enum):
    """Chat backends used for summaries and captions."""

    OPENAI = "openai"
    CLAUDE = "claude"
    OLLAMA = "ollama"


# Settings field that marks a backend as configured
TRANSCRIPTION_CREDENTIALS: dict[TranscriptionBackend, str] = {
    TranscriptionBackend.OPENAI: "openai_api_key",
    TranscriptionBackend.ASSEMBLYAI: "assemblyai_api_key",
    TranscriptionBackend.DEEPGRAM: "deepgram_api_key",
    TranscriptionBackend.WHISPER: "whisper_url",
}

SUMMARIZATION_CREDENTIALS: dict[SummarizationBackend, str] = {
    SummarizationBackend.OPENAI: "openai_api_key",
    SummarizationBackend.CLAUDE: "anthropic_api_key",
    SummarizationBackend.OLLAMA: "ollama_url",
}

SPEECH_CLIENTS: dict[TranscriptionBackend, type] = {
    TranscriptionBackend.OPENAI: OpenAISpeechClient,
    TranscriptionBackend.ASSEMBLYAI: AssemblyAIClient,
    TranscriptionBackend.DEEPGRAM: DeepgramClient,
    TranscriptionBackend.WHISPER: WhisperClient,
}

CHAT_CLIENTS: dict[SummarizationBackend, type] = {
    SummarizationBackend.OPENAI: OpenAIChatClient,
    SummarizationBackend.CLAUDE: ClaudeClient,
    SummarizationBackend.OLLAMA: OllamaClient,
}


class ProviderUnavailableError(Exception):
    """No backend is configured for an optional capability."""

    def __init__(self, capability: str):
        self.capability = capability
        super().__init__(f"no {capability} backend configured")


@dataclass
class ProviderInfo:
    """
    Selected backend for one capability.

    Attributes:
        capability: "transcription" or "summarization"
        backend: Selected backend name, None if nothing is configured
        priority: Priority list the selection was made from
    """

    capability: str
    backend: str | None
    priority: list[str] = field(default_factory=list)


def _select(priority: list[str], enum_type: type[Enum], credentials: dict, settings: Settings):
    """First backend in priority order whose credential field is set."""
    for raw_name in priority:
        try:
            backend = enum_type(raw_name.strip().lower())
        except ValueError:
            logger.warning(f"Unknown {enum_type.__name__} in priority list: {raw_name!r}")
            continue
        if getattr(settings, credentials[backend], None):
            return backend
    return None


def select_transcription_backend(settings: Settings) -> TranscriptionBackend | None:
    """Resolve the transcription backend from settings.transcription_priority."""
    return _select(
        settings.transcription_priority,
        TranscriptionBackend,
        TRANSCRIPTION_CREDENTIALS,
        settings,
    )


def select_summarization_backend(settings: Settings) -> SummarizationBackend | None:
    """Resolve the summarization backend from settings.summarization_priority."""
    return _select(
        settings.summarization_priority,
        SummarizationBackend,
        SUMMARIZATION_CREDENTIALS,
        settings,
    )


@dataclass
class StageProviders:
    """
    Capability objects handed to the pipeline.

    transcriber/summarizer are None when no backend is configured; the
    corresponding stages then fail non-fatally via require_*().

    Attributes:
        transcoder: Segment cutter/reframer (always available)
        title_renderer: Title image renderer/compositor (always available)
        transcriber: Speech-to-text service or None
        summarizer: Summary/caption service or None
    """

    transcoder: FFmpegTranscoder
    title_renderer: TitleRenderer
    transcriber: ClipTranscriber | None = None
    summarizer: TextSummarizer | None = None

    @property
    def transcription_backend(self) -> str | None:
        return self.transcriber.backend if self.transcriber else None

    @property
    def summarization_backend(self) -> str | None:
        return self.summarizer.backend if self.summarizer else None

    def require_transcriber(self) -> ClipTranscriber:
        if self.transcriber is None:
            raise ProviderUnavailableError("transcription")
        return self.transcriber

    def require_summarizer(self) -> TextSummarizer:
        if self.summarizer is None:
            raise ProviderUnavailableError("summarization")
        return self.summarizer

    async def aclose(self) -> None:
        """Close backend HTTP clients."""
        if self.transcriber is not None:
            await self.transcriber.speech_client.close()
        if self.summarizer is not None:
            await self.summarizer.chat_client.close()


class ProcessingStrategy:
    """
    Builds StageProviders from settings.

    Missing credentials are not a startup error: the capability is simply
    left unset and reported by describe().

    Example:
        strategy = ProcessingStrategy(settings)
        providers = strategy.build_providers()
        try:
            ...
        finally:
            await providers.aclose()
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.transcription = select_transcription_backend(settings)
        self.summarization = select_summarization_backend(settings)

    def describe(self) -> list[ProviderInfo]:
        """Selected backends, for logging and the /api/providers endpoint."""
        return [
            ProviderInfo(
                capability="transcription",
                backend=self.transcription.value if self.transcription else None,
                priority=list(self.settings.transcription_priority),
            ),
            ProviderInfo(
                capability="summarization",
                backend=self.summarization.value if self.summarization else None,
                priority=list(self.settings.summarization_priority),
            ),
        ]

    def create_speech_client(self) -> SpeechClient | None:
        if self.transcription is None:
            return None
        return SPEECH_CLIENTS[self.transcription].from_settings(self.settings)

    def create_chat_client(self) -> ChatClient | None:
        if self.summarization is None:
            return None
        return CHAT_CLIENTS[self.summarization].from_settings(self.settings)

    def build_providers(self) -> StageProviders:
        """Instantiate the capability objects for the selected backends."""
        speech_client = self.create_speech_client()
        chat_client = self.create_chat_client()

        for info in self.describe():
            if info.backend:
                logger.info(f"{info.capability} backend: {info.backend}")
            else:
                logger.warning(
                    f"No {info.capability} backend configured "
                    f"(priority: {', '.join(info.priority)}); stage will be recorded as failed"
                )

        return StageProviders(
            transcoder=FFmpegTranscoder(self.settings),
            title_renderer=TitleRenderer(self.settings),
            transcriber=ClipTranscriber(speech_client, self.settings) if speech_client else None,
            summarizer=TextSummarizer(chat_client, self.settings) if chat_client else None,
        )
