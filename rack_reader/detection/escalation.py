"""Multi-pass escalation: full frame, then coarse tiles, then fine tiles.

Detection pipeline:
  1. Full-frame decode (cheap; catches large/clear codes immediately).
  2. Coarse tiled decode (~300px tiles) if too few unique codes were found.
  3. Fine tiled decode (~200px tiles) if still too few.
Each pass is merged into the running set before the next decision, and at
most three passes run.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from ..config import Config, default_config
from ..contracts import PassSummary, RawDetection
from ..imaging.normalizer import NormalizedFrame
from .decoder import SymbolDecoder
from .dedup import merge_detections
from .dispatcher import TileDispatcher
from .tiling import adaptive_grid, full_frame_tile, plan_tiles

logger = logging.getLogger(__name__)


class ScanStage(str, Enum):
    FULL_FRAME = "full-frame"
    COARSE = "coarse"
    FINE = "fine"
    DONE = "done"


@dataclass(frozen=True)
class PassPolicy:
    """Tiling parameters for one tiled stage."""
    stage: ScanStage
    tile_size: int
    overlap: float


@dataclass(frozen=True)
class EscalationPolicy:
    """Thresholds and tile settings driving stage transitions."""
    coarse: PassPolicy
    fine: PassPolicy
    coarse_trigger_count: int = 5
    fine_trigger_count: int = 10

    @classmethod
    def from_config(cls, config: Config) -> "EscalationPolicy":
        return cls(
            coarse=PassPolicy(ScanStage.COARSE, config.coarse_tile_size, config.coarse_overlap),
            fine=PassPolicy(ScanStage.FINE, config.fine_tile_size, config.fine_overlap),
            coarse_trigger_count=config.coarse_trigger_count,
            fine_trigger_count=config.fine_trigger_count,
        )

    def tiling_for(self, stage: ScanStage) -> Optional[PassPolicy]:
        if stage == ScanStage.COARSE:
            return self.coarse
        if stage == ScanStage.FINE:
            return self.fine
        return None


def next_stage(stage: ScanStage, unique_count: int, policy: EscalationPolicy) -> ScanStage:
    """
    Decide the stage after `stage` given the unique detections so far.

    FULL_FRAME -> COARSE  if count < coarse_trigger_count
    FULL_FRAME -> FINE    if count < fine_trigger_count
    COARSE     -> FINE    if count < fine_trigger_count
    anything else         -> DONE
    """
    if stage == ScanStage.FULL_FRAME:
        if unique_count < policy.coarse_trigger_count:
            return ScanStage.COARSE
        if unique_count < policy.fine_trigger_count:
            return ScanStage.FINE
        return ScanStage.DONE
    if stage == ScanStage.COARSE:
        if unique_count < policy.fine_trigger_count:
            return ScanStage.FINE
        return ScanStage.DONE
    return ScanStage.DONE


class MultiPassScanner:
    """
    Runs the escalation state machine against a decoder.

    Passes run strictly one after another; tiles within a pass run
    concurrently through TileDispatcher.

    Usage:
        scanner = MultiPassScanner(DmtxDecoder())
        detections, passes = scanner.scan(frame)
    """

    def __init__(self, decoder: SymbolDecoder, config: Optional[Config] = None):
        self.config = config or default_config
        self.policy = EscalationPolicy.from_config(self.config)
        self.dispatcher = TileDispatcher(decoder, max_workers=self.config.max_workers)

    def _run_pass(self, frame: NormalizedFrame, stage: ScanStage) -> Tuple[List[RawDetection], Tuple[int, int], int]:
        if stage == ScanStage.FULL_FRAME:
            tiles = [full_frame_tile(frame.width, frame.height)]
            grid = (1, 1)
        else:
            tiling = self.policy.tiling_for(stage)
            grid = adaptive_grid(
                frame.width,
                frame.height,
                tiling.tile_size,
                min_grid=self.config.min_grid,
                max_cols=self.config.max_grid_cols,
                max_rows=self.config.max_grid_rows,
            )
            tiles = plan_tiles(frame.width, frame.height, grid[0], grid[1], tiling.overlap)
        logger.debug("%s pass: %dx%d grid, %d tile(s)", stage.value, grid[0], grid[1], len(tiles))
        return self.dispatcher.dispatch(frame.image, tiles), grid, len(tiles)

    def scan(self, frame: NormalizedFrame) -> Tuple[List[RawDetection], List[PassSummary]]:
        """
        Run passes until the state machine reaches DONE.

        Returns:
            (unique detections in encounter order, one PassSummary per pass)

        Raises:
            DecodeError: If any decode call fails; the whole scan is aborted
        """
        logger.info("Scanning %dx%d px frame", frame.width, frame.height)

        detections: List[RawDetection] = []
        passes: List[PassSummary] = []
        stage = ScanStage.FULL_FRAME

        while stage != ScanStage.DONE:
            found, grid, tile_count = self._run_pass(frame, stage)
            detections = merge_detections(detections, found, radius=self.config.dedup_radius)
            passes.append(PassSummary(
                stage=stage.value,
                grid=grid,
                tile_count=tile_count,
                raw_count=len(found),
                unique_count=len(detections),
            ))
            _log_pass(stage, detections)

            following = next_stage(stage, len(detections), self.policy)
            if following != ScanStage.DONE:
                logger.info(
                    "%d unique code(s) after %s pass; escalating to %s",
                    len(detections), stage.value, following.value,
                )
            stage = following

        return detections, passes


def _log_pass(stage: ScanStage, detections: List[RawDetection]) -> None:
    if not detections:
        logger.info("%s pass: 0 codes found", stage.value)
    else:
        values = ", ".join(d.value for d in detections)
        logger.info("%s pass: %d code(s) - %s", stage.value, len(detections), values)
