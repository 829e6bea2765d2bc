"""Normalized record handed to storage and search collaborators."""
from __future__ import annotations

import secrets
import string
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ...shared import MetadataSource, ms

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LEN = 7


def generate_record_id() -> str:
    """`<epoch ms>_<7 base36 chars>`, unique enough for a local gallery."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LEN))
    return f"{ms()}_{suffix}"


@dataclass(frozen=True)
class NormalizedRecord:
    prompt: str
    negative_prompt: str
    seed: int
    steps: int
    cfg_scale: float
    sampler: str
    tags: List[str]
    character_prompts: Optional[List[str]] = None
    character_ucs: Optional[List[str]] = None
    file_name: str = ""
    source_format: str = ""
    metadata_source: MetadataSource = "none"
    is_favorite: bool = False
    id: str = field(default_factory=generate_record_id)
    date_added: int = field(default_factory=ms)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready camelCase payload; absent character lists are omitted."""
        out: Dict[str, Any] = {
            "id": self.id,
            "fileName": self.file_name,
            "prompt": self.prompt,
            "negativePrompt": self.negative_prompt,
            "seed": self.seed,
            "steps": self.steps,
            "cfgScale": self.cfg_scale,
            "sampler": self.sampler,
            "tags": list(self.tags),
            "dateAdded": self.date_added,
            "isFavorite": self.is_favorite,
            "sourceFormat": self.source_format,
            "metadataSource": self.metadata_source,
        }
        if self.character_prompts is not None:
            out["characterPrompts"] = list(self.character_prompts)
        if self.character_ucs is not None:
            out["characterUCs"] = list(self.character_ucs)
        return out

    def to_index_document(self) -> Dict[str, Any]:
        """Text fields consumed by the search index."""
        character_text = " ".join([*(self.character_prompts or []), *(self.character_ucs or [])])
        return {
            "id": self.id,
            "fileName": self.file_name,
            "prompt": self.prompt,
            "negativePrompt": self.negative_prompt,
            "tags": list(self.tags),
            "characterText": character_text,
        }
