"""DmtxDecoder conversion tests using an injected pylibdmtx-style decode function."""

from collections import namedtuple

import pytest
from PIL import Image

from rack_reader.contracts import Tile
from rack_reader.detection.decoder import ORIGIN_BOTTOM_LEFT, DmtxDecoder
from rack_reader.detection.dispatcher import TileDispatcher
from rack_reader.errors import DecodeError

# Same shape as pylibdmtx.pylibdmtx.Decoded / Rect
Decoded = namedtuple("Decoded", "data rect")
DmtxRect = namedtuple("Rect", "left top width height")


def _fake_decode(results):
    calls = []

    def decode(image, **kwargs):
        calls.append(kwargs)
        return results

    decode.calls = calls
    return decode


def test_reports_bottom_left_origin():
    assert DmtxDecoder.origin == ORIGIN_BOTTOM_LEFT


def test_converts_pixel_rect_to_normalized_bbox():
    decoder = DmtxDecoder(decode_fn=_fake_decode([Decoded(b"TUBE-1", DmtxRect(20, 10, 40, 30))]))
    decoder.load()
    (symbol,) = decoder.decode(Image.new("L", (200, 100)))
    assert symbol.value == "TUBE-1"
    assert symbol.bbox == pytest.approx((0.1, 0.1, 0.2, 0.3))


def test_negative_extents_are_normalized():
    decoder = DmtxDecoder(decode_fn=_fake_decode([Decoded(b"R", DmtxRect(60, 40, -40, -30))]))
    (symbol,) = decoder.decode(Image.new("L", (200, 100)))
    assert symbol.bbox == pytest.approx((0.1, 0.1, 0.2, 0.3))


def test_frame_position_after_flip():
    decoder = DmtxDecoder(decode_fn=_fake_decode([Decoded(b"TUBE-1", DmtxRect(20, 10, 40, 30))]))
    image = Image.new("L", (200, 100))
    (d,) = TileDispatcher(decoder).dispatch(image, [Tile(0, 0, 200, 100)])
    # 10px above the bottom edge, 30px tall -> top edge at y=60
    r = d.bounding_rect
    assert (r.x, r.y, r.width, r.height) == pytest.approx((20, 60, 40, 30))


def test_empty_payloads_are_dropped():
    decoder = DmtxDecoder(decode_fn=_fake_decode([
        Decoded(b"", DmtxRect(0, 0, 10, 10)),
        Decoded(b"OK", DmtxRect(0, 0, 10, 10)),
    ]))
    assert [s.value for s in decoder.decode(Image.new("L", (50, 50)))] == ["OK"]


def test_options_are_passed_through():
    fn = _fake_decode([])
    decoder = DmtxDecoder(timeout_ms=500, shrink=2, max_count=4, decode_fn=fn)
    decoder.decode(Image.new("L", (50, 50)))
    assert fn.calls == [{"shrink": 2, "timeout": 500, "max_count": 4}]


def test_library_failure_becomes_decode_error():
    def broken(image, **kwargs):
        raise OSError("libdmtx crashed")

    decoder = DmtxDecoder(decode_fn=broken)
    with pytest.raises(DecodeError, match="libdmtx crashed"):
        decoder.decode(Image.new("L", (50, 50)))


def test_decode_before_load_raises():
    decoder = DmtxDecoder()
    with pytest.raises(RuntimeError, match="not loaded"):
        decoder.decode(Image.new("L", (50, 50)))


def test_unload_keeps_injected_backend():
    decoder = DmtxDecoder(decode_fn=_fake_decode([]))
    decoder.unload()
    assert decoder.is_loaded
