import json
import struct

from naigal_backend.features.metadata.webp_chunks import iter_webp_chunks, read_webp_exif
from naigal_backend.shared import ErrorCode

from tests.builders import riff_chunk, webp


def test_exif_json_is_extracted_between_prefix_and_suffix() -> None:
    comment = {"prompt": "forest", "steps": 30, "v4_prompt": {"caption": {"base_caption": "x"}}}
    payload = b"Exif\x00\x00MM\x00*" + json.dumps(comment).encode("utf-8") + b"\x00\x00trailer"
    res = read_webp_exif(webp(riff_chunk(b"VP8L", b"\x00" * 4), riff_chunk(b"EXIF", payload)))
    assert res.ok
    assert res.data["Comment"] == comment


def test_odd_sized_chunk_padding_is_skipped() -> None:
    odd = riff_chunk(b"ICCP", b"abc")
    exif = riff_chunk(b"EXIF", b'{"prompt": "after padding"}')
    chunks = list(iter_webp_chunks(webp(odd, exif)))
    assert [c.fourcc for c in chunks] == ["ICCP", "EXIF"]
    assert chunks[0].data == b"abc"

    res = read_webp_exif(webp(odd, exif))
    assert res.data["Comment"] == {"prompt": "after padding"}


def test_last_parseable_exif_chunk_wins() -> None:
    data = webp(
        riff_chunk(b"EXIF", b'{"prompt": "first"}'),
        riff_chunk(b"EXIF", b"no json here"),
        riff_chunk(b"EXIF", b'{"prompt": "second"}'),
    )
    res = read_webp_exif(data)
    assert res.data["Comment"] == {"prompt": "second"}


def test_unbalanced_braces_are_ignored() -> None:
    res = read_webp_exif(webp(riff_chunk(b"EXIF", b'{"prompt": "open"')))
    assert not res.ok
    assert res.soft
    assert res.code == ErrorCode.NO_VISIBLE_METADATA.value


def test_no_exif_chunk_is_soft() -> None:
    res = read_webp_exif(webp(riff_chunk(b"VP8 ", b"\x00" * 10)))
    assert res.soft
    assert res.data == {}


def test_declared_size_beyond_buffer_is_clipped() -> None:
    body = b"WEBP" + b"EXIF" + struct.pack("<I", 500) + b'{"prompt": "clipped"}'
    data = b"RIFF" + struct.pack("<I", 9999) + body
    res = read_webp_exif(data)
    assert res.data["Comment"] == {"prompt": "clipped"}


def test_riff_size_bounds_the_scan() -> None:
    inner = riff_chunk(b"VP8L", b"\x00" * 4)
    data = webp(inner) + riff_chunk(b"EXIF", b'{"prompt": "outside"}')
    assert [c.fourcc for c in iter_webp_chunks(data)] == ["VP8L"]
    assert read_webp_exif(data).soft


def test_deeply_nested_exif_json_is_skipped() -> None:
    nested = b'{"a": ' + b"[" * 100000 + b"]" * 100000 + b"}"
    res = read_webp_exif(webp(riff_chunk(b"EXIF", nested)))
    assert res.soft
    assert res.code == ErrorCode.NO_VISIBLE_METADATA.value


def test_nested_exif_chunk_does_not_hide_earlier_chunk() -> None:
    nested = b'{"a": ' + b"[" * 100000 + b"]" * 100000 + b"}"
    data = webp(riff_chunk(b"EXIF", b'{"prompt": "kept"}'), riff_chunk(b"EXIF", nested))
    res = read_webp_exif(data)
    assert res.ok
    assert res.data["Comment"] == {"prompt": "kept"}
