import json
import sys

import pytest
from PIL import Image

from rack_reader.config import Config
from rack_reader.detection.decoder import ORIGIN_BOTTOM_LEFT, MockDecoder
from rack_reader.errors import DecodeError, InvalidImage
from rack_reader.pipeline.scan_pipeline import ScanPipeline, main
from rack_reader.report.csv_export import parse_csv

from conftest import SquareDecoder, draw_rack


def test_small_codes_end_to_end(small_code_rack):
    image, palette, centers = small_code_rack
    pipeline = ScanPipeline(decoder=SquareDecoder(palette, side=28, origin=ORIGIN_BOTTOM_LEFT))
    result = pipeline.run(image=image)

    assert not result.is_empty
    assert len(result.records) == 12
    assert result.row_count == 3
    assert [p.stage for p in result.passes] == ["full-frame", "coarse", "fine"]
    assert result.frame_size == (1200, 900)

    expected = {value: centers[i] for i, value in enumerate(sorted(palette))}
    for rec in result.records:
        cx, cy = expected[rec.value]
        assert (rec.center_x, rec.center_y) == pytest.approx((cx, cy))
        assert rec.row == (150, 450, 750).index(cy)
        assert rec.col == (150, 450, 750, 1050).index(cx)
    assert result.annotated_image.size == (1200, 900)


def test_large_codes_found_in_single_pass():
    centers = [(x, y) for y in (250, 750) for x in (160, 480, 800, 1120, 1440)]
    image, palette = draw_rack((1600, 1000), centers, side=140)
    result = ScanPipeline(decoder=SquareDecoder(palette, side=140)).run(image=image, annotate=False)

    assert [p.stage for p in result.passes] == ["full-frame"]
    assert len(result.records) == 10
    assert {(r.row, r.col) for r in result.records} == {(r, c) for r in range(2) for c in range(5)}
    assert result.annotated_image is None


def test_empty_result_is_not_an_error():
    result = ScanPipeline(decoder=MockDecoder()).run(image=Image.new("RGB", (640, 480), "white"))
    assert result.is_empty
    assert result.records == []
    assert len(result.passes) == 3


def test_decode_error_propagates():
    pipeline = ScanPipeline(decoder=MockDecoder(error=DecodeError("decoder offline")))
    with pytest.raises(DecodeError, match="decoder offline"):
        pipeline.run(image=Image.new("RGB", (640, 480), "white"))


def test_invalid_image_propagates(tmp_path):
    bad = tmp_path / "bad.jpg"
    bad.write_bytes(b"not a jpeg")
    with pytest.raises(InvalidImage):
        ScanPipeline(decoder=MockDecoder()).run(image_path=str(bad))


def test_requires_an_image():
    with pytest.raises(ValueError):
        ScanPipeline(decoder=MockDecoder()).run()


def test_max_dimension_rescales_coordinates(small_code_rack):
    image, palette, _ = small_code_rack
    big = image.resize((2400, 1800), Image.Resampling.NEAREST)
    config = Config(max_dimension=2000, row_tolerance=50)
    decoder = MockDecoder()
    result = ScanPipeline(decoder=decoder, config=config).run(image=big, annotate=False)
    assert result.frame_size == (2000, 1500)
    assert (2000, 1500) in decoder.calls


def test_outputs_written(tmp_path, small_code_rack):
    image, palette, _ = small_code_rack
    out = tmp_path / "run"
    result = ScanPipeline(decoder=SquareDecoder(palette, side=28)).run(image=image, output_dir=str(out))

    records = parse_csv((out / "records.csv").read_text(encoding="utf-8"))
    assert [(r.value, r.row, r.col) for r in records] == [(r.value, r.row, r.col) for r in result.records]

    summary = json.loads((out / "scan_summary.json").read_text(encoding="utf-8"))
    assert summary["recordCount"] == 12
    assert [p["stage"] for p in summary["passes"]] == ["full-frame", "coarse", "fine"]

    with Image.open(out / "annotated.png") as annotated:
        assert annotated.size == (1200, 900)


def test_cli_rejects_bad_tolerance(tmp_path, capsys):
    assert main(["--image", str(tmp_path / "x.jpg"), "--tolerance", "10"]) == 2
    assert "row_tolerance" in capsys.readouterr().err


def test_cli_reports_scan_failure(tmp_path, capsys):
    bad = tmp_path / "bad.jpg"
    bad.write_bytes(b"nope")
    assert main(["--image", str(bad), "--out", str(tmp_path / "out")]) == 1
    assert "Scan failed" in capsys.readouterr().err


def test_label_gap_comes_from_config(monkeypatch):
    seen = {}

    def fake_render(image, records, **kwargs):
        seen.update(kwargs)
        return image

    monkeypatch.setattr("rack_reader.pipeline.scan_pipeline.render_annotations", fake_render)
    config = Config(label_gap=12)
    ScanPipeline(decoder=MockDecoder(), config=config).run(image=Image.new("RGB", (640, 480), "white"))
    assert seen["label_gap"] == 12


def test_cli_reports_missing_decoder_backend(tmp_path, monkeypatch, capsys):
    monkeypatch.setitem(sys.modules, "pylibdmtx", None)
    monkeypatch.setitem(sys.modules, "pylibdmtx.pylibdmtx", None)
    photo = tmp_path / "rack.png"
    Image.new("RGB", (64, 48), "white").save(photo)

    assert main(["--image", str(photo), "--out", str(tmp_path / "out")]) == 1
    assert "Decoder unavailable" in capsys.readouterr().err
