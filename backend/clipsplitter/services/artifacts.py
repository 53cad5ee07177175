"""
Artifact naming convention.

All files of one batch live in output_dir/<video_id>/. Segment numbers on
disk are 1-based (plan index + 1); the id is random per segment so repeated
runs never collide.

    segment_{n}_{id}.mp4                    reframed clip (title burned in place)
    segment_{n}_{id}.txt                    transcript
    segment_{n}_{id}_summary.txt            summary
    segment_{n}_{id}_social_title.txt       caption title
    segment_{n}_{id}_social_description.txt caption description
"""

import uuid
from dataclasses import dataclass
from pathlib import Path

CLIP_EXTENSION = ".mp4"


def new_segment_id() -> str:
    """Random 12-hex-char segment id."""
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class ArtifactPaths:
    """Deterministic file locations for one segment."""

    directory: Path
    stem: str

    @classmethod
    def for_segment(
        cls,
        output_dir: Path,
        video_id: str,
        index: int,
        segment_id: str,
    ) -> "ArtifactPaths":
        return cls(
            directory=output_dir / video_id,
            stem=f"segment_{index + 1}_{segment_id}",
        )

    @property
    def clip(self) -> Path:
        return self.directory / f"{self.stem}{CLIP_EXTENSION}"

    @property
    def transcript(self) -> Path:
        return self.directory / f"{self.stem}.txt"

    @property
    def summary(self) -> Path:
        return self.directory / f"{self.stem}_summary.txt"

    @property
    def social_title(self) -> Path:
        return self.directory / f"{self.stem}_social_title.txt"

    @property
    def social_description(self) -> Path:
        return self.directory / f"{self.stem}_social_description.txt"
