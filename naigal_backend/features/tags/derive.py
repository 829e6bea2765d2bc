"""
Tag derivation from comma-separated prompts.
"""
from __future__ import annotations

from typing import Iterable, List, Optional


def split_tags(text: str) -> List[str]:
    """Split on commas, trim, drop empty segments, keep first occurrence."""
    out: List[str] = []
    seen: set[str] = set()
    for part in str(text or "").split(","):
        tag = part.strip()
        if not tag or tag in seen:
            continue
        seen.add(tag)
        out.append(tag)
    return out


def derive_tags(prompt: str, character_prompts: Optional[Iterable[str]] = None) -> List[str]:
    """
    Base tags from the prompt, then character-prompt tags not seen yet.

    Matching is exact and case-sensitive; the list is never truncated.
    """
    tags = split_tags(prompt)
    seen = set(tags)
    for char_prompt in character_prompts or ():
        for tag in split_tags(char_prompt):
            if tag in seen:
                continue
            seen.add(tag)
            tags.append(tag)
    return tags
