import numpy as np
import pytest

from morphlab.errors import InvalidArgument
from morphlab.kernel import StructuringElement
from morphlab.morphology import OPERATIONS, apply_operation, closing, dilate, erode, opening
from morphlab.pixel import BLACK, WHITE, Pixel
from morphlab.raster import Raster


def test_identity_kernel(random_binary):
    kernel = StructuringElement()
    assert dilate(random_binary, kernel) == random_binary
    assert erode(random_binary, kernel) == random_binary


def test_uniform_white_is_fixed(make_raster):
    raster = make_raster(["111", "111", "111"])
    kernel = StructuringElement.full(3)
    assert dilate(raster, kernel) == raster
    assert erode(raster, kernel) == raster


def test_black_center_scenario(make_raster, rows_of):
    raster = make_raster(["111", "101", "111"])
    kernel = StructuringElement.full(3)

    assert rows_of(erode(raster, kernel)) == ["000", "000", "000"]
    assert rows_of(dilate(raster, kernel)) == ["111", "111", "111"]


def test_black_center_buffer_values(make_raster):
    raster = make_raster(["111", "101", "111"])
    eroded = erode(raster, StructuringElement.full(3))
    assert eroded.to_bytes() == bytes([0, 0, 0, 255]) * 9


def test_erosion_spreads_single_black_pixel(make_raster, rows_of):
    raster = make_raster(["11111", "11111", "11011", "11111", "11111"])
    result = erode(raster, StructuringElement.full(3))
    assert rows_of(result) == ["11111", "10001", "10001", "10001", "11111"]


def test_dilation_grows_single_white_pixel(make_raster, rows_of):
    raster = make_raster(["00000", "00000", "00100", "00000", "00000"])
    result = dilate(raster, StructuringElement.full(3))
    assert rows_of(result) == ["00000", "01110", "01110", "01110", "00000"]


def test_kernel_offsets_follow_columns_and_rows(make_raster, rows_of):
    # only the cell right of the center is active: sample (x + 1, y)
    kernel = StructuringElement.from_rows(["000", "001", "000"])
    raster = make_raster(["010"])
    assert rows_of(dilate(raster, kernel)) == ["100"]

    # only the cell below the center is active: sample (x, y + 1)
    kernel = StructuringElement.from_rows(["000", "000", "010"])
    raster = make_raster(["0", "1", "0"])
    assert rows_of(dilate(raster, kernel)) == ["1", "0", "0"]


def test_off_raster_neighbour_is_the_center_pixel(make_raster, rows_of):
    # sample (x + 2, y); at x = 2 that lands off the raster
    kernel = StructuringElement.from_rows(["00000", "00000", "00001", "00000", "00000"])
    raster = make_raster(["0001"])

    # clamping to the edge would make x = 2 white; the center rule keeps it black
    assert rows_of(dilate(raster, kernel)) == ["0101"]
    assert rows_of(erode(raster, kernel)) == ["0101"]


def test_kernel_without_foreground_cells_returns_seed(color_raster):
    kernel = StructuringElement.from_rows(["0x0", "x0x", "0x0"])
    assert dilate(color_raster, kernel) == Raster.filled(color_raster.width, color_raster.height, BLACK)
    assert erode(color_raster, kernel) == Raster.filled(color_raster.width, color_raster.height, WHITE)


def test_extrema_are_componentwise():
    raster = Raster.from_bytes(bytes([200, 10, 50, 255, 20, 100, 60, 255]), 2, 1)
    kernel = StructuringElement.full(3)
    assert dilate(raster, kernel).get_pixel(0, 0) == Pixel(200, 100, 60, 255)
    assert erode(raster, kernel).get_pixel(0, 0) == Pixel(20, 10, 50, 255)


def test_background_cells_are_skipped(make_raster, rows_of):
    raster = make_raster(["00000", "00000", "00100", "00000", "00000"])
    plus = StructuringElement.from_rows(["010", "111", "010"])
    assert rows_of(dilate(raster, plus)) == ["00000", "00100", "01110", "00100", "00000"]


def test_inputs_are_not_modified(random_binary):
    before = random_binary.to_bytes()
    kernel = StructuringElement.full(3)
    for name in OPERATIONS:
        apply_operation(name, random_binary, kernel)
    assert random_binary.to_bytes() == before


@pytest.mark.parametrize("dimension", [1, 3, 5])
def test_opening_and_closing_are_idempotent(random_binary, dimension):
    kernel = StructuringElement.full(dimension)
    opened = opening(random_binary, kernel)
    closed = closing(random_binary, kernel)
    assert opening(opened, kernel) == opened
    assert closing(closed, kernel) == closed


def test_opening_and_closing_ignore_cell_edits(random_binary):
    edited = StructuringElement.from_rows(["x0x", "010", "x0x"])
    flat = StructuringElement.full(3)
    assert opening(random_binary, edited) == opening(random_binary, flat)
    assert closing(random_binary, edited) == closing(random_binary, flat)
    assert opening(random_binary, edited) == dilate(erode(random_binary, flat), flat)
    assert closing(random_binary, edited) == erode(dilate(random_binary, flat), flat)


def test_opening_removes_isolated_white_pixel(make_raster, rows_of):
    raster = make_raster(["00000", "00000", "00100", "00000", "00000"])
    assert rows_of(opening(raster, StructuringElement.full(3))) == ["00000"] * 5


def test_closing_fills_isolated_black_pixel(make_raster, rows_of):
    raster = make_raster(["11111", "11111", "11011", "11111", "11111"])
    assert rows_of(closing(raster, StructuringElement.full(3))) == ["11111"] * 5


@pytest.mark.parametrize("workers", [2, 3, 4, 50])
def test_banded_execution_matches_serial(random_binary, color_raster, workers):
    kernel = StructuringElement.from_rows(["10000", "01x00", "00100", "00001", "0x011"])
    for name in OPERATIONS:
        serial = apply_operation(name, random_binary, kernel)
        assert apply_operation(name, random_binary, kernel, workers=workers) == serial
    assert dilate(color_raster, kernel, workers) == dilate(color_raster, kernel)
    assert erode(color_raster, kernel, workers) == erode(color_raster, kernel)


def test_invalid_worker_count(random_binary):
    with pytest.raises(InvalidArgument):
        dilate(random_binary, StructuringElement(), workers=0)


def test_apply_operation_names(random_binary):
    kernel = StructuringElement.full(3)
    assert apply_operation("open", random_binary, kernel) == opening(random_binary, kernel)
    assert apply_operation("Hit-Or-Miss", random_binary, kernel) == OPERATIONS["hit_or_miss"](random_binary, kernel)
    with pytest.raises(InvalidArgument):
        apply_operation("skeletonize", random_binary, kernel)


def test_output_dimensions(random_binary):
    kernel = StructuringElement.full(5)
    for name in OPERATIONS:
        result = apply_operation(name, random_binary, kernel)
        assert (result.width, result.height) == (random_binary.width, random_binary.height)
        assert result.array.dtype == np.uint8
