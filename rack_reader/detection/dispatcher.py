"""Concurrent tile decoding with a join barrier.

Every tile of a pass is decoded on a thread pool; the pass result is only
returned once all tiles finish. Results are assembled in tile order, not
completion order, so scheduling never changes the output.
"""

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import List, Sequence

from PIL import Image

from ..config import default_config
from ..contracts import DecodedSymbol, RawDetection, Rect, Tile
from ..errors import DecodeError
from .decoder import ORIGIN_BOTTOM_LEFT, SymbolDecoder

logger = logging.getLogger(__name__)


def map_to_frame(symbol: DecodedSymbol, tile: Tile, origin: str) -> RawDetection:
    """
    Map a region-relative symbol into full-frame pixel space.

    Args:
        symbol: Decoder output with a normalized (x, y, w, h) box
        tile: The tile the symbol was decoded from
        origin: Decoder y-axis origin ("top-left" or "bottom-left")

    Returns:
        RawDetection with a top-left-origin pixel rectangle
    """
    norm_x, norm_y, norm_w, norm_h = symbol.bbox
    norm_w, norm_h = abs(norm_w), abs(norm_h)
    if origin == ORIGIN_BOTTOM_LEFT:
        norm_y = 1.0 - norm_y - norm_h

    rect = Rect(
        x=tile.left + norm_x * tile.width,
        y=tile.top + norm_y * tile.height,
        width=norm_w * tile.width,
        height=norm_h * tile.height,
    )
    return RawDetection(value=symbol.value, bounding_rect=rect)


class TileDispatcher:
    """
    Fans tiles out to a SymbolDecoder and joins the results.

    The frame image is shared read-only by all workers. A failure on any
    tile cancels the tiles that have not started and is re-raised; results
    from tiles that did finish are discarded.
    """

    def __init__(self, decoder: SymbolDecoder, max_workers: int = default_config.max_workers):
        self.decoder = decoder
        self.max_workers = max_workers

    def _decode_tile(self, image: Image.Image, tile: Tile) -> List[RawDetection]:
        region = image.crop(tile.box)
        try:
            symbols = self.decoder.decode(region)
        except DecodeError:
            raise
        except Exception as exc:
            raise DecodeError(
                f"Decoder failed on tile r{tile.row}c{tile.col} {tile.box}: {exc}"
            ) from exc
        return [map_to_frame(s, tile, self.decoder.origin) for s in symbols]

    def dispatch(self, image: Image.Image, tiles: Sequence[Tile]) -> List[RawDetection]:
        """
        Decode all tiles concurrently and return their detections in tile order.

        Raises:
            DecodeError: If any tile fails
        """
        if not tiles:
            return []
        if len(tiles) == 1:
            return self._decode_tile(image, tiles[0])

        workers = max(1, min(self.max_workers, len(tiles)))
        with ThreadPoolExecutor(max_workers=workers) as ex:
            futures = [ex.submit(self._decode_tile, image, tile) for tile in tiles]
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            for fut in pending:
                fut.cancel()
            # Surface the first failure in tile order
            for fut in futures:
                if fut in done and fut.exception() is not None:
                    raise fut.exception()

        detections: List[RawDetection] = []
        for fut in futures:
            detections.extend(fut.result())
        logger.debug("Dispatched %d tiles -> %d detections", len(tiles), len(detections))
        return detections
