"""Parsed assistant reply and its source citations."""

from pydantic import BaseModel, Field, TypeAdapter

SOURCES_SEPARATOR = "||"


class SourceMetadata(BaseModel):
    """Optional metadata attached to a cited source."""

    title: str | None = None


class Source(BaseModel):
    """A documentation page cited by the assistant."""

    link: str
    metadata: SourceMetadata | None = None

    @property
    def title(self) -> str | None:
        return self.metadata.title if self.metadata else None


_sources_adapter: TypeAdapter[list[Source]] = TypeAdapter(list[Source])


class AssistantReply(BaseModel):
    """Assistant response split into display text and raw sources block.

    The wire payload is ``<display text>||<sources json>``. Without the
    separator the reply carries no sources.
    """

    display_text: str
    sources_raw: str | None = None
    sources: list[Source] = Field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: str) -> "AssistantReply":
        """Split a raw response body on the first separator.

        Only the first two segments are used; anything after a second
        separator is ignored.
        """
        parts = payload.split(SOURCES_SEPARATOR)
        sources_raw = parts[1].strip() if len(parts) > 1 else None
        return cls(display_text=parts[0], sources_raw=sources_raw or None)

    def parse_sources(self) -> list[Source]:
        """Parse the raw sources block and cache the result on ``sources``.

        Returns:
            Parsed sources, empty if the reply carries none.

        Raises:
            pydantic.ValidationError: If the block is not a JSON list of sources.
        """
        if self.sources_raw is None:
            return []
        self.sources = _sources_adapter.validate_json(self.sources_raw)
        return self.sources
