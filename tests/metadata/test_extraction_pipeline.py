import io
import json
import re

from PIL import Image
from PIL.PngImagePlugin import PngInfo

from naigal_backend.features.metadata import build_record, extract_raw_metadata, extract_record
from naigal_backend.features.metadata.record import NormalizedRecord, generate_record_id
from naigal_backend.shared import ErrorCode

from tests.builders import ihdr_chunk, png_with_comment, raw_png, rgb_png_bytes, riff_chunk, stealth_png, text_chunk, webp


def _pillow_png_with_comment(comment: dict) -> bytes:
    info = PngInfo()
    info.add_text("Title", "NovelAI generated image")
    info.add_text("Comment", json.dumps(comment))
    buf = io.BytesIO()
    Image.new("RGBA", (1, 1), (0, 0, 0, 255)).save(buf, format="PNG", pnginfo=info)
    return buf.getvalue()


def test_png_with_visible_comment_yields_full_record() -> None:
    comment = {"prompt": "a, b, c", "seed": 42, "steps": 20, "scale": 5.5, "sampler": "k_euler_ancestral"}
    res = extract_record(_pillow_png_with_comment(comment), "one.png")
    assert res.ok, res.error
    record = res.data
    assert record.prompt == "a, b, c"
    assert record.seed == 42
    assert record.steps == 20
    assert record.cfg_scale == 5.5
    assert record.sampler == "k_euler_ancestral"
    assert record.tags == ["a", "b", "c"]
    assert record.file_name == "one.png"
    assert record.source_format == "png"
    assert record.metadata_source == "text_chunk"
    assert res.meta["source"] == "text_chunk"


def test_png_without_text_falls_back_to_stealth() -> None:
    res = extract_record(stealth_png("stealth_pnginfo", {"prompt": "sky"}), "hidden.png")
    assert res.ok, res.error
    record = res.data
    assert record.prompt == "sky"
    assert record.steps == 28
    assert record.sampler == "k_euler"
    assert record.tags == ["sky"]
    assert record.metadata_source == "stealth"
    assert res.meta["signature"] == "stealth_pnginfo"


def test_jpeg_is_rejected_without_a_record() -> None:
    jpeg = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01"
    res = extract_record(jpeg, "photo.jpg")
    assert not res.ok
    assert not res.soft
    assert res.data is None
    assert res.code == ErrorCode.UNSUPPORTED_FORMAT.value
    assert "FF D8 FF E0" in (res.error or "")


def test_empty_buffer_is_invalid_input() -> None:
    res = extract_raw_metadata(b"")
    assert res.code == ErrorCode.INVALID_INPUT.value


def test_structured_and_dynamic_character_prompts_merge_into_tags() -> None:
    data = png_with_comment({"prompt": "base", "char_prompts": ["X"], "Character_Caption_2": "Y"})
    record = extract_record(data).data
    assert record.character_prompts == ["X", "Y"]
    assert record.character_ucs is None
    assert record.tags == ["base", "X", "Y"]


def test_png_without_any_metadata_gets_defaults() -> None:
    res = extract_record(rgb_png_bytes(), "plain.png")
    assert res.ok
    assert res.data.prompt == ""
    assert res.data.tags == []
    assert res.data.metadata_source == "none"


def test_empty_visible_comment_triggers_stealth() -> None:
    raw = extract_raw_metadata(stealth_png("stealth_pngcomp", {"prompt": "hidden"}))
    assert raw.ok
    assert raw.data["Comment"] == {"prompt": "hidden"}
    assert raw.meta == {"format": "png", "source": "stealth", "signature": "stealth_pngcomp"}


def test_webp_exif_record_and_no_stealth_for_webp() -> None:
    data = webp(riff_chunk(b"EXIF", b'Exif\x00\x00{"prompt": "river, boat", "seed": "9"}'))
    res = extract_record(data, "shot.webp")
    assert res.ok
    assert res.data.prompt == "river, boat"
    assert res.data.seed == 9
    assert res.data.source_format == "webp"
    assert res.data.metadata_source == "exif"

    empty = extract_record(webp(riff_chunk(b"VP8L", b"\x00" * 4)))
    assert empty.ok
    assert empty.data.metadata_source == "none"
    assert empty.data.steps == 28


def test_record_serialization() -> None:
    record = build_record(
        {"Comment": {"prompt": "t1, t2", "char_prompts": ["c"], "char_ucs": ["u"]}},
        file_name="x.png",
        source_format="png",
        metadata_source="text_chunk",
    )
    payload = record.to_dict()
    assert payload["fileName"] == "x.png"
    assert payload["cfgScale"] == 7.0
    assert payload["isFavorite"] is False
    assert payload["characterPrompts"] == ["c"]
    assert payload["characterUCs"] == ["u"]

    doc = record.to_index_document()
    assert set(doc) == {"id", "fileName", "prompt", "negativePrompt", "tags", "characterText"}
    assert doc["characterText"] == "c u"


def test_record_without_character_lists_omits_them() -> None:
    payload = build_record({"Comment": {"prompt": "p"}}).to_dict()
    assert "characterPrompts" not in payload
    assert "characterUCs" not in payload


def test_record_ids_are_unique() -> None:
    assert re.fullmatch(r"\d+_[0-9a-z]{7}", generate_record_id())
    ids = {NormalizedRecord("", "", 0, 28, 7.0, "k_euler", []).id for _ in range(50)}
    assert len(ids) == 50


def test_truncated_png_keeps_visible_metadata_and_flags_warning() -> None:
    data = png_with_comment({"prompt": "kept"})
    # cut inside the IEND header; the Comment chunk stays intact
    truncated = data[:-6]
    res = extract_raw_metadata(truncated)
    assert res.ok
    assert res.data["Comment"] == {"prompt": "kept"}
    assert res.meta["warning"] == ErrorCode.MALFORMED_CONTAINER.value


def test_oversized_header_without_text_degrades_to_defaults() -> None:
    res = extract_record(raw_png(ihdr_chunk(20000, 20000)), "huge.png")
    assert res.ok, res.error
    assert res.data.prompt == ""
    assert res.data.steps == 28
    assert res.data.metadata_source == "none"


def test_deeply_nested_comment_degrades_to_defaults() -> None:
    nested = "[" * 100000 + "]" * 100000
    res = extract_record(raw_png(ihdr_chunk(), text_chunk("Comment", nested)), "deep.png")
    assert res.ok, res.error
    assert res.data.prompt == ""
    assert res.data.metadata_source == "none"
