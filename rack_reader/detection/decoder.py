"""DataMatrix symbol decoders.

Provides a consistent interface for the tile dispatcher:
    decoder.decode(region) -> List[DecodedSymbol]

Bounding boxes are normalized to [0, 1] relative to the region. Each decoder
declares which corner its y axis starts from so the dispatcher can map
results back into the frame.
"""

import logging
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from PIL import Image

from ..contracts import DecodedSymbol
from ..errors import DecodeError

logger = logging.getLogger(__name__)

ORIGIN_TOP_LEFT = "top-left"
ORIGIN_BOTTOM_LEFT = "bottom-left"


class SymbolDecoder:
    """
    Single-capability decoder interface.

    Subclasses implement decode() and set `origin`. decode() may raise
    DecodeError; callers do not retry.
    """

    origin: str = ORIGIN_TOP_LEFT

    def load(self) -> None:
        """Acquire any backend resources. No-op by default."""

    def unload(self) -> None:
        """Release backend resources. No-op by default."""

    @property
    def is_loaded(self) -> bool:
        return True

    def decode(self, region: Image.Image) -> List[DecodedSymbol]:
        raise NotImplementedError


class DmtxDecoder(SymbolDecoder):
    """
    DataMatrix decoder backed by libdmtx (pylibdmtx).

    libdmtx reports pixel rectangles measured from the bottom-left corner of
    the region, and rotated symbols can come back with negative extents.
    Both are normalized here except for the y origin, which is declared via
    `origin` and flipped by the dispatcher.

    Usage:
        decoder = DmtxDecoder(timeout_ms=2000)
        decoder.load()
        symbols = decoder.decode(region)
    """

    origin = ORIGIN_BOTTOM_LEFT

    def __init__(
        self,
        timeout_ms: Optional[int] = None,
        shrink: int = 1,
        max_count: Optional[int] = None,
        decode_fn: Optional[Callable[..., Sequence]] = None,
    ):
        """
        Args:
            timeout_ms: Per-call libdmtx timeout in milliseconds (None = no limit)
            shrink: libdmtx internal downscale factor
            max_count: Stop after this many symbols per region
            decode_fn: Replacement for pylibdmtx.decode (testing)
        """
        self.timeout_ms = timeout_ms
        self.shrink = shrink
        self.max_count = max_count
        self._injected_fn = decode_fn
        self._decode_fn = decode_fn

    def load(self) -> None:
        """Resolve the pylibdmtx backend."""
        if self._decode_fn is not None:
            return
        try:
            from pylibdmtx.pylibdmtx import decode
        except ImportError as exc:
            raise RuntimeError(
                "pylibdmtx is not available. Install with: pip install pylibdmtx "
                "(requires the libdmtx shared library)"
            ) from exc
        self._decode_fn = decode
        logger.debug("pylibdmtx backend loaded")

    def unload(self) -> None:
        self._decode_fn = self._injected_fn

    @property
    def is_loaded(self) -> bool:
        return self._decode_fn is not None

    def decode(self, region: Image.Image) -> List[DecodedSymbol]:
        """
        Decode all DataMatrix symbols in a region.

        Raises:
            RuntimeError: If load() was not called
            DecodeError: If libdmtx fails on the region
        """
        if not self.is_loaded:
            raise RuntimeError("Decoder not loaded. Call load() first.")

        width, height = region.size
        if width == 0 or height == 0:
            return []

        kwargs = {"shrink": self.shrink}
        if self.timeout_ms is not None:
            kwargs["timeout"] = self.timeout_ms
        if self.max_count is not None:
            kwargs["max_count"] = self.max_count

        try:
            results = self._decode_fn(region, **kwargs)
        except DecodeError:
            raise
        except Exception as exc:
            raise DecodeError(f"libdmtx failed on {width}x{height} region: {exc}") from exc

        return list(_to_symbols(results, width, height))


def _to_symbols(results: Iterable, width: int, height: int) -> Iterable[DecodedSymbol]:
    """Convert pylibdmtx Decoded tuples into region-relative symbols."""
    for item in results:
        value = _payload_text(item.data)
        if not value:
            continue

        rect = item.rect
        left, bottom = float(rect.left), float(rect.top)
        w, h = float(rect.width), float(rect.height)
        if w < 0:
            left, w = left + w, -w
        if h < 0:
            bottom, h = bottom + h, -h

        yield DecodedSymbol(
            value=value,
            bbox=(left / width, bottom / height, w / width, h / height),
        )


def _payload_text(data) -> str:
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace").strip("\x00")
    return str(data or "")


class MockDecoder(SymbolDecoder):
    """
    Mock decoder for testing without libdmtx.

    `responder` receives the region and returns the symbols for it, or a
    fixed list can be supplied. Set `error` to make every call fail.
    """

    def __init__(
        self,
        symbols: Optional[List[DecodedSymbol]] = None,
        responder: Optional[Callable[[Image.Image], List[DecodedSymbol]]] = None,
        origin: str = ORIGIN_TOP_LEFT,
        error: Optional[Exception] = None,
    ):
        self.symbols = list(symbols or [])
        self.responder = responder
        self.origin = origin
        self.error = error
        self.calls: List[Tuple[int, int]] = []

    def decode(self, region: Image.Image) -> List[DecodedSymbol]:
        self.calls.append(region.size)
        if self.error is not None:
            raise self.error
        if self.responder is not None:
            return list(self.responder(region))
        return list(self.symbols)
