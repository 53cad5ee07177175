"""
Transcript summarizer service.

Condenses clip transcripts into summaries and social captions using the
selected chat backend and the YAML prompt catalogue.
"""

import logging
import re
import time

from clipsplitter.config import Settings, load_prompts
from clipsplitter.models.schemas import SocialCaption, SummaryStyle
from clipsplitter.services.ai_clients import ChatClient

logger = logging.getLogger(__name__)
perf_logger = logging.getLogger("clipsplitter.perf")

EMPTY_SUMMARY = "No content to summarize."
DEFAULT_TITLE = "Video Content"

SUMMARY_MAX_WORDS = 100
SUMMARY_TEMPERATURE = 0.3
DESCRIPTION_MAX_WORDS = 150
DESCRIPTION_TEMPERATURE = 0.7
TITLE_MAX_WORDS = 7
TITLE_TEMPERATURE = 0.6
TITLE_MAX_TOKENS = 30

# Quote characters stripped from generated titles
_QUOTES = "\"'“”‘’«»"


class TextSummarizer:
    """
    Summary and social caption generator.

    Example:
        async with OpenAIChatClient.from_settings(settings) as client:
            summarizer = TextSummarizer(client, settings)
            summary = await summarizer.summarize(transcript.text, SummaryStyle.CONCISE)
            caption = await summarizer.social_caption(transcript.text)
    """

    def __init__(self, chat_client: ChatClient, settings: Settings):
        """
        Initialize summarizer.

        Args:
            chat_client: Backend used for completions
            settings: Application settings (prompt catalogue location)
        """
        self.chat_client = chat_client
        self.settings = settings
        self.prompts = load_prompts(settings)

    @property
    def backend(self) -> str:
        """Name of the chat backend in use."""
        return self.chat_client.name

    async def summarize(
        self,
        text: str,
        style: SummaryStyle = SummaryStyle.CONCISE,
        max_length: int = SUMMARY_MAX_WORDS,
    ) -> str:
        """
        Summarize text in the given style.

        Empty text short-circuits to a fixed placeholder without a backend call.

        Args:
            text: Source text (clip transcript)
            style: Summary style
            max_length: Target length in words

        Returns:
            Summary text

        Raises:
            AIClientError: If the backend call fails
        """
        if not text or not text.strip():
            return EMPTY_SUMMARY

        instruction = self.prompts["styles"][style.value].format(max_length=max_length)
        messages = [
            {"role": "system", "content": self.prompts["system"]},
            {"role": "user", "content": f"{instruction}\n\nText to summarize:\n{text}"},
        ]

        start_time = time.time()
        summary, usage = await self.chat_client.chat(
            messages,
            temperature=SUMMARY_TEMPERATURE,
            num_predict=min(max_length * 2, 500),
        )
        elapsed = time.time() - start_time

        perf_logger.info(
            f"PERF | summarize | backend={self.backend} | style={style.value} | "
            f"chars={len(text)} | tokens={usage.total_tokens} | time={elapsed:.1f}s"
        )
        return summary or EMPTY_SUMMARY

    async def social_caption(self, text: str) -> SocialCaption:
        """
        Generate a short title and a hashtag description.

        Args:
            text: Clip transcript

        Returns:
            SocialCaption with cleaned title and description

        Raises:
            ValueError: If text is empty (nothing to caption)
            AIClientError: If a backend call fails
        """
        if not text or not text.strip():
            raise ValueError("Cannot caption empty transcript")

        description_prompts = self.prompts["social_description"]
        description, _ = await self.chat_client.chat(
            [
                {"role": "system", "content": description_prompts["system"]},
                {
                    "role": "user",
                    "content": description_prompts["user"].format(
                        max_length=DESCRIPTION_MAX_WORDS, text=text
                    ),
                },
            ],
            temperature=DESCRIPTION_TEMPERATURE,
            num_predict=min(DESCRIPTION_MAX_WORDS * 2, 500),
        )

        title_prompts = self.prompts["social_title"]
        raw_title, _ = await self.chat_client.chat(
            [
                {"role": "system", "content": title_prompts["system"]},
                {"role": "user", "content": title_prompts["user"].format(text=text)},
            ],
            temperature=TITLE_TEMPERATURE,
            num_predict=TITLE_MAX_TOKENS,
        )

        title = clean_title(raw_title)
        logger.info(f"Social caption: '{title}' ({len(description.split())} words)")
        return SocialCaption(title=title, description=description.strip())


def clean_title(raw: str, max_words: int = TITLE_MAX_WORDS) -> str:
    """
    Normalize a generated title.

    Takes the first line, strips surrounding quotes and a "Title:" prefix,
    truncates to max_words and falls back to DEFAULT_TITLE when empty.

    Example:
        >>> clean_title('"Why Cats Rule The Internet Forever And Ever"')
        'Why Cats Rule The Internet Forever And'
    """
    lines = raw.strip().splitlines()
    line = lines[0] if lines else ""
    line = re.sub(r"^\s*title\s*:\s*", "", line, flags=re.IGNORECASE)
    line = line.strip().strip(_QUOTES).strip()
    words = line.split()
    if not words:
        return DEFAULT_TITLE
    return " ".join(words[:max_words])
