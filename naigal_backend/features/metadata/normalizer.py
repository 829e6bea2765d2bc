"""
Normalization of schema-ambiguous generator metadata.

The generator has shipped several Comment layouts without a version tag.
Scalar fields are read with coercion and defaults; character prompts are
collected by an ordered tuple of independent extractors whose contributions
are concatenated, since several layouts may coexist in one payload.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ...shared import get_logger
from .parsing_utils import coerce_float, coerce_int, coerce_str

logger = get_logger(__name__)

DEFAULT_SEED = 0
DEFAULT_STEPS = 28
DEFAULT_CFG_SCALE = 7.0
DEFAULT_SAMPLER = "k_euler"

Contribution = Tuple[List[str], List[str]]
CharacterExtractor = Callable[[Dict[str, Any]], Contribution]


@dataclass(frozen=True)
class NormalizedFields:
    prompt: str
    negative_prompt: str
    seed: int
    steps: int
    cfg_scale: float
    sampler: str
    character_prompts: Optional[List[str]]
    character_ucs: Optional[List[str]]


def comment_of(raw: Dict[str, Any]) -> Dict[str, Any]:
    comment = raw.get("Comment") if isinstance(raw, dict) else None
    return comment if isinstance(comment, dict) else {}


def _non_empty_strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str) and item]


def _char_captions(container: Any) -> List[str]:
    if not isinstance(container, dict):
        return []
    caption = container.get("caption")
    if not isinstance(caption, dict):
        return []
    items = caption.get("char_captions")
    if not isinstance(items, list):
        return []
    out: List[str] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        text = item.get("char_caption")
        if isinstance(text, str) and text.strip():
            out.append(text)
    return out


def _from_reference_information(comment: Dict[str, Any]) -> Contribution:
    """Vibe transfer references: one `information` string per reference."""
    refs = comment.get("reference_information_extracted_multiple")
    if not isinstance(refs, list):
        return [], []
    prompts = [
        ref["information"]
        for ref in refs
        if isinstance(ref, dict) and isinstance(ref.get("information"), str) and ref["information"]
    ]
    return prompts, []


def _from_char_arrays(comment: Dict[str, Any]) -> Contribution:
    return _non_empty_strings(comment.get("char_prompts")), _non_empty_strings(comment.get("char_ucs"))


def _from_v4_captions(comment: Dict[str, Any]) -> Contribution:
    return _char_captions(comment.get("v4_prompt")), _char_captions(comment.get("v4_negative_prompt"))


# Keys owned by the fixed-layout extractors above
_STRUCTURED_KEYS = frozenset(
    {
        "reference_information_extracted_multiple",
        "char_prompts",
        "char_ucs",
        "v4_prompt",
        "v4_negative_prompt",
    }
)
_LOCALIZED_CHARACTER = "キャラクター"
_LOCALIZED_PROMPT = "プロンプト"


def is_character_prompt_key(key: str) -> bool:
    lower = key.lower()
    return (
        ("char" in lower and ("prompt" in lower or "caption" in lower))
        or (
            _LOCALIZED_CHARACTER in lower
            and (_LOCALIZED_PROMPT in lower or "prompt" in lower or "caption" in lower)
        )
    )


def is_character_uc_key(key: str) -> bool:
    lower = key.lower()
    return ("char" in lower or _LOCALIZED_CHARACTER in lower) and ("uc" in lower or "negative" in lower)


def _string_entries(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value] if value else []
    return _non_empty_strings(value)


def _from_dynamic_keys(comment: Dict[str, Any]) -> Contribution:
    """
    Substring match on key names to pick up undocumented layouts.

    Permissive on purpose: false positives are accepted so that new field
    names work without a schema update.
    """
    prompts: List[str] = []
    ucs: List[str] = []
    for key, value in comment.items():
        if not isinstance(key, str) or key in _STRUCTURED_KEYS:
            continue
        if is_character_prompt_key(key):
            logger.debug("Matched %r as character prompt source", key)
            prompts.extend(_string_entries(value))
        if is_character_uc_key(key):
            logger.debug("Matched %r as character UC source", key)
            ucs.extend(_string_entries(value))
    return prompts, ucs


CHARACTER_EXTRACTORS: Tuple[CharacterExtractor, ...] = (
    _from_reference_information,
    _from_char_arrays,
    _from_v4_captions,
    _from_dynamic_keys,
)


def extract_character_prompts(
    comment: Dict[str, Any],
    extractors: Tuple[CharacterExtractor, ...] = CHARACTER_EXTRACTORS,
) -> Tuple[Optional[List[str]], Optional[List[str]]]:
    """
    Concatenate every extractor's contribution, in order.

    The two lists are sized independently; None means no extractor
    produced anything for that list.
    """
    prompts: List[str] = []
    ucs: List[str] = []
    for extractor in extractors:
        found_prompts, found_ucs = extractor(comment)
        prompts.extend(found_prompts)
        ucs.extend(found_ucs)
    return (prompts or None), (ucs or None)


def _positive_or_default(value: Any, default: Any) -> Any:
    # Zero counts as absent for steps and scale.
    return value if value else default


def normalize_metadata(raw: Dict[str, Any]) -> NormalizedFields:
    comment = comment_of(raw)

    prompt = coerce_str(comment.get("prompt")) or ""
    if not prompt:
        prompt = coerce_str(raw.get("Description") if isinstance(raw, dict) else None) or ""

    seed = coerce_int(comment.get("seed"))
    character_prompts, character_ucs = extract_character_prompts(comment)

    return NormalizedFields(
        prompt=prompt,
        negative_prompt=coerce_str(comment.get("uc")) or "",
        seed=seed if seed is not None else DEFAULT_SEED,
        steps=_positive_or_default(coerce_int(comment.get("steps")), DEFAULT_STEPS),
        cfg_scale=float(_positive_or_default(coerce_float(comment.get("scale")), DEFAULT_CFG_SCALE)),
        sampler=coerce_str(comment.get("sampler")) or DEFAULT_SAMPLER,
        character_prompts=character_prompts,
        character_ucs=character_ucs,
    )
