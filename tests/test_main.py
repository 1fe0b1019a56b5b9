import pytest

from morphlab.codec import load_image, save_image
from morphlab.kernel import StructuringElement
from morphlab.main import build_settings, main, parse_args
from morphlab.morphology import dilate, erode, opening
from morphlab.threshold import binarize


@pytest.fixture
def image_path(tmp_path, color_raster):
    return save_image(color_raster, tmp_path / "input.png")


def test_batch_pipeline(tmp_path, image_path, color_raster):
    out = tmp_path / "out.png"
    code = main([str(image_path), "--op", "erode", "--op", "dilate", "-k", "3", "-o", str(out)])

    assert code == 0
    kernel = StructuringElement.full(3)
    expected = dilate(erode(binarize(color_raster), kernel), kernel)
    assert load_image(out) == expected


def test_pipeline_from_config(tmp_path, image_path, color_raster):
    config = tmp_path / "settings.yaml"
    config.write_text(
        "kernel:\n  dimension: 3\npipeline:\n  operations: [open]\noutput: " + str(tmp_path / "cfg.png") + "\n",
        encoding="utf-8",
    )

    assert main([str(image_path), "-c", str(config)]) == 0
    expected = opening(binarize(color_raster), StructuringElement.full(3))
    assert load_image(tmp_path / "cfg.png") == expected


def test_default_output_path(image_path, color_raster):
    assert main([str(image_path)]) == 0
    assert load_image(image_path.with_name("input_morph.png")) == binarize(color_raster)


def test_kernel_rows_flag(tmp_path, image_path, color_raster):
    out = tmp_path / "rows.png"
    assert main([str(image_path), "--kernel", "x0x/010/x0x", "--op", "thinning", "-o", str(out)]) == 0
    assert load_image(out).width == color_raster.width


def test_cli_overrides():
    args = parse_args(["in.png", "--threshold", "90", "-w", "2", "-k", "5", "--op", "close"])
    settings = build_settings(args)
    assert settings["threshold"] == 90
    assert settings["workers"] == 2
    assert settings["kernel"]["dimension"] == 5
    assert settings["pipeline"]["operations"] == ["close"]


@pytest.mark.parametrize(
    "extra",
    [["-k", "4"], ["--kernel", "11/11"], ["--workers", "0"]],
)
def test_invalid_arguments_exit_with_error(image_path, capsys, extra):
    assert main([str(image_path)] + extra) == 1
    assert "[ERROR]" in capsys.readouterr().err


def test_missing_input(tmp_path, capsys):
    assert main([str(tmp_path / "missing.png")]) == 1
    assert "[ERROR]" in capsys.readouterr().err


def test_undecodable_input(tmp_path, capsys):
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"not a png")
    assert main([str(bad)]) == 1
    assert "[ERROR]" in capsys.readouterr().err


@pytest.mark.parametrize(
    "content",
    ["- 1\n- 2\n", "kernel: [unclosed\n", "logging:\n  level: CHATTY\n"],
)
def test_bad_config_exits_with_error(tmp_path, image_path, capsys, content):
    config = tmp_path / "bad.yaml"
    config.write_text(content, encoding="utf-8")

    assert main([str(image_path), "-c", str(config)]) == 1
    assert "[ERROR]" in capsys.readouterr().err
