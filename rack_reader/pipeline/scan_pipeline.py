"""End-to-end rack scan: normalize -> multi-pass decode -> grid -> overlay.

Usage:
    python -m rack_reader.pipeline.scan_pipeline --image rack.jpg --out scans/run_001

Or programmatically:
    from rack_reader.pipeline.scan_pipeline import ScanPipeline
    p = ScanPipeline()
    result = p.run(image_path="rack.jpg")
    for rec in result.records:
        print(rec.row, rec.col, rec.value)
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from PIL import Image

from ..config import Config, default_config
from ..contracts import ScanResult
from ..detection.decoder import DmtxDecoder, SymbolDecoder
from ..detection.escalation import MultiPassScanner
from ..errors import ScanError
from ..grid.inference import infer_grid
from ..imaging.normalizer import normalize_image
from ..report.annotation import render_annotations
from ..report.csv_export import export_csv_file

logger = logging.getLogger(__name__)


class ScanPipeline:
    """
    Full rack scanning pipeline.

    Stages:
      1. Normalize image (orientation + max dimension)
      2. Multi-pass DataMatrix decoding with escalation
      3. Grid inference (row bands, column order)
      4. Annotation overlay (optional)

    Any InvalidImage or DecodeError aborts the run. A scan that finds
    nothing returns a ScanResult with no records.
    """

    def __init__(
        self,
        decoder: Optional[SymbolDecoder] = None,
        config: Optional[Config] = None,
    ):
        self.config = config or default_config
        self.decoder = decoder or DmtxDecoder(
            timeout_ms=self.config.decode_timeout_ms,
            shrink=self.config.decode_shrink,
        )

    def run(
        self,
        image_path: Optional[str] = None,
        image: Optional[Image.Image] = None,
        output_dir: Optional[str] = None,
        annotate: bool = True,
    ) -> ScanResult:
        """
        Scan a single rack photograph.

        Args:
            image_path: Path to the photo (JPG/PNG/...)
            image: PIL Image (alternative to image_path)
            output_dir: Directory for records.csv, annotated.png and
                scan_summary.json (None = no output)
            annotate: Whether to render the circle overlay

        Returns:
            ScanResult with ordered records and per-pass summaries

        Raises:
            ValueError: If neither image_path nor image is given
            InvalidImage: If the image cannot be normalized
            DecodeError: If the decoder fails on any region
            RuntimeError: If the decoder backend cannot be loaded
        """
        if image is None and image_path is None:
            raise ValueError("Either image_path or image must be provided.")
        source = image if image is not None else image_path

        # --- Stage 1: Normalize ---
        frame = normalize_image(source, max_dimension=self.config.max_dimension)

        # --- Stage 2: Decode (load -> scan -> unload) ---
        self.decoder.load()
        try:
            scanner = MultiPassScanner(self.decoder, config=self.config)
            detections, passes = scanner.scan(frame)
        finally:
            self.decoder.unload()

        # --- Stage 3: Grid ---
        records = infer_grid(detections, tolerance=self.config.row_tolerance)
        logger.info(
            "Grid inference: %d record(s) in %d row(s)",
            len(records), len({r.row for r in records}),
        )

        # --- Stage 4: Overlay ---
        annotated = None
        if annotate:
            annotated = render_annotations(
                frame.image,
                records,
                circle_color=self.config.circle_color,
                label_color=self.config.label_color,
                line_width=self.config.circle_line_width,
                padding=self.config.circle_padding,
                label_gap=self.config.label_gap,
            )

        result = ScanResult(
            records=records,
            frame_size=frame.size,
            passes=passes,
            annotated_image=annotated,
        )

        if output_dir:
            self.save(result, output_dir)

        return result

    def save(self, result: ScanResult, output_dir: str) -> Path:
        """Write CSV, overlay image and JSON summary into output_dir."""
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)

        export_csv_file(result.records, out / self.config.records_output_file)

        with open(out / self.config.summary_output_file, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)

        if result.annotated_image is not None:
            result.annotated_image.save(str(out / self.config.annotated_output_file))

        return out


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Read DataMatrix codes from a rack photo and assign grid positions"
    )
    parser.add_argument("--image", required=True, help="Path to rack photo")
    parser.add_argument("--out", default="scans/run", help="Output directory")
    parser.add_argument("--tolerance", type=float, default=default_config.row_tolerance,
                        help="Row-band tolerance in pixels (50-300)")
    parser.add_argument("--max-dimension", type=int, default=default_config.max_dimension,
                        help="Longest side of the normalized frame (2000, 4000 or 8000)")
    parser.add_argument("--workers", type=int, default=default_config.max_workers,
                        help="Concurrent tile decodes")
    parser.add_argument("--timeout-ms", type=int, default=None, help="libdmtx per-region timeout")
    parser.add_argument("--no-annotate", action="store_true", help="Skip the circle overlay")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = Config(
            row_tolerance=args.tolerance,
            max_dimension=args.max_dimension,
            max_workers=args.workers,
            decode_timeout_ms=args.timeout_ms,
        )
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    pipeline = ScanPipeline(config=config)

    print("Scanning", args.image)
    try:
        result = pipeline.run(
            image_path=args.image,
            output_dir=args.out,
            annotate=not args.no_annotate,
        )
    except ScanError as e:
        print(f"Scan failed: {e}", file=sys.stderr)
        return 1
    except RuntimeError as e:
        # DmtxDecoder.load() when pylibdmtx or libdmtx is missing
        print(f"Decoder unavailable: {e}", file=sys.stderr)
        return 1

    print(f"\nResults:")
    print(f"  Frame: {result.frame_size[0]}x{result.frame_size[1]}px")
    for p in result.passes:
        print(f"  {p.stage} pass: {p.tile_count} tile(s), {p.unique_count} unique")
    if result.is_empty:
        print("  No codes found.")
    else:
        print(f"  Codes: {len(result.records)} in {result.row_count} row(s)")
        for rec in result.records:
            print(f"    r{rec.row} c{rec.col}  {rec.value}")
    print(f"\nArtifacts saved to: {args.out}/")
    return 0


if __name__ == "__main__":
    sys.exit(main())
