from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from . import config


class ChunkOptions(BaseModel):
    """Chunking knobs; defaults follow the active settings."""

    # chunkSize-style keys are accepted alongside chunk_size
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    chunk_size: int = Field(
        default_factory=lambda: config.SETTINGS.CHUNK_SIZE, gt=0
    )  # characters
    chunk_overlap: int = Field(
        default_factory=lambda: config.SETTINGS.CHUNK_OVERLAP, ge=0
    )
    preserve_code_blocks: bool = Field(
        default_factory=lambda: config.SETTINGS.PRESERVE_CODE_BLOCKS
    )
    preserve_sections: bool = Field(
        default_factory=lambda: config.SETTINGS.PRESERVE_SECTIONS
    )


class RawDocument(BaseModel):
    text: Any = ""  # non-string text degrades to no chunks
    metadata: dict[str, Any] = {}

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata_as_dict(cls, value: Any) -> dict[str, Any]:
        if isinstance(value, Mapping):
            return dict(value)
        return {}

    @classmethod
    def coerce(cls, document: Any) -> "RawDocument":
        """Accept a RawDocument, a mapping with text/metadata keys, or a bare string."""
        if isinstance(document, cls):
            return document
        if isinstance(document, str):
            return cls(text=document)
        if isinstance(document, Mapping):
            return cls(
                text=document.get("text", ""),
                metadata=document.get("metadata") or {},
            )
        return cls(
            text=getattr(document, "text", ""),
            metadata=getattr(document, "metadata", None) or {},
        )
