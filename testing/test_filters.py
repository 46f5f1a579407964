import pytest

from PngErrors import ErrorKind, PngError
from PngFilters import (
    FilterStrategy, FilterType, choose_filter, filter_row, filter_scanlines,
    paeth_predictor, sum_of_absolute_differences, unfilter,
)
from PngHeader import ImageSize
from png_samples import scanlines


class TestPaethPredictor:
    def test_predictor(self):
        expected = {
            (0, 0, 0): 0,
            (255, 0, 0): 255,
            (10, 20, 30): 10,
            (100, 100, 50): 100,  # pa == pb goes to a
            (0, 30, 10): 30,  # pb == pc goes to b
            (50, 60, 200): 50,
            (20, 200, 10): 200,
            (200, 20, 100): 100,
        }
        for (a, b, c), predicted in expected.items():
            assert paeth_predictor(a, b, c) == predicted, f"Incorrect value for {(a, b, c)}"


class TestUnfilter:
    def test_none(self):
        image_size = ImageSize(1, 1, 3)
        assert unfilter(scanlines((0, [0x80, 0x40, 0x20])), image_size) == bytes([0x80, 0x40, 0x20])

    def test_sub(self):
        image_size = ImageSize(3, 1, 3)
        filtered = scanlines((1, [10, 5, 5, 1, 1, 1, 2, 2, 2]))
        assert list(unfilter(filtered, image_size)) == [10, 5, 5, 11, 6, 6, 13, 8, 8]

    def test_sub_wraps(self):
        image_size = ImageSize(2, 1, 3)
        filtered = scanlines((1, [200, 0, 255, 100, 1, 1]))
        assert list(unfilter(filtered, image_size)) == [200, 0, 255, 44, 1, 0]

    def test_up(self):
        image_size = ImageSize(2, 2, 4)
        filtered = scanlines(
            (0, [1, 2, 3, 4, 250, 251, 252, 253]),
            (2, [10] * 8),
        )
        assert list(unfilter(filtered, image_size)) == [
            1, 2, 3, 4, 250, 251, 252, 253,
            11, 12, 13, 14, 4, 5, 6, 7,
        ]

    def test_up_on_first_row(self):
        image_size = ImageSize(1, 1, 3)
        assert list(unfilter(scanlines((2, [7, 8, 9])), image_size)) == [7, 8, 9]

    def test_average(self):
        image_size = ImageSize(2, 2, 3)
        filtered = scanlines(
            (0, [100, 100, 100, 200, 200, 200]),
            (3, [150, 150, 150, 0, 0, 0]),
        )
        # Second pixel of the second row: a=200, b=200, x=0
        assert list(unfilter(filtered, image_size)) == [
            100, 100, 100, 200, 200, 200,
            200, 200, 200, 200, 200, 200,
        ]

    def test_average_unsigned(self):
        image_size = ImageSize(2, 2, 3)
        filtered = scanlines(
            (0, [100, 100, 100, 100, 100, 100]),
            (3, [150, 150, 150, 10, 10, 10]),
        )
        # a=200, b=100 averages to 150, not to the signed (-56 + 100) / 2
        assert list(unfilter(filtered, image_size))[6:] == [200, 200, 200, 160, 160, 160]

    def test_average_on_first_row(self):
        image_size = ImageSize(2, 1, 3)
        filtered = scanlines((3, [10, 20, 30, 1, 1, 1]))
        assert list(unfilter(filtered, image_size)) == [10, 20, 30, 6, 11, 16]

    def test_paeth(self):
        image_size = ImageSize(2, 2, 3)
        filtered = scanlines(
            (4, [10, 20, 30, 5, 5, 5]),
            (4, [1, 1, 1, 2, 2, 2]),
        )
        assert list(unfilter(filtered, image_size)) == [
            10, 20, 30, 15, 25, 35,
            11, 21, 31, 17, 27, 37,
        ]

    def test_mixed_rows(self):
        image_size = ImageSize(1, 4, 3)
        filtered = scanlines(
            (0, [10, 20, 30]),
            (2, [1, 1, 1]),
            (3, [2, 2, 2]),
            (1, [5, 5, 5]),
        )
        assert list(unfilter(filtered, image_size)) == [
            10, 20, 30,
            11, 21, 31,
            7, 12, 17,
            5, 5, 5,
        ]

    def test_unsupported_filter_type(self):
        image_size = ImageSize(1, 2, 3)
        with pytest.raises(PngError) as e:
            unfilter(scanlines((0, [1, 2, 3]), (5, [1, 2, 3])), image_size)
        assert e.value.kind == ErrorKind.UNSUPPORTED_FILTER_TYPE
        assert e.value.offset == 4
        assert e.value.actual == 5

    def test_size_mismatch(self):
        with pytest.raises(PngError) as e:
            unfilter(scanlines((0, [1, 2, 3])), ImageSize(2, 1, 3))
        assert e.value.kind == ErrorKind.SIZE_MISMATCH


class TestFilter:
    IMAGE_SIZE = ImageSize(3, 3, 3)
    IMAGE = bytes([
        0, 10, 20, 200, 210, 220, 255, 0, 128,
        30, 30, 30, 60, 60, 60, 90, 90, 90,
        1, 250, 3, 240, 5, 230, 7, 220, 9,
    ])

    def test_filter_row_is_reversed_by_unfilter(self):
        stride = self.IMAGE_SIZE.stride
        rows = [self.IMAGE[r * stride: (r + 1) * stride] for r in range(self.IMAGE_SIZE.height)]
        for filter_type in FilterType:
            previous = None
            filtered = bytearray()
            for row in rows:
                filtered.append(filter_type)
                filtered.extend(filter_row(filter_type, row, previous, 3))
                previous = row
            assert unfilter(bytes(filtered), self.IMAGE_SIZE) == self.IMAGE, f"Incorrect value for {filter_type!r}"

    def test_filter_row_sub(self):
        assert list(filter_row(FilterType.SUB, bytes([10, 5, 5, 11, 6, 6, 13, 8, 8]), None, 3)) == [
            10, 5, 5, 1, 1, 1, 2, 2, 2,
        ]

    def test_filter_row_unknown_type(self):
        with pytest.raises(PngError) as e:
            filter_row(7, bytes(3), None, 3)
        assert e.value.kind == ErrorKind.UNSUPPORTED_FILTER_TYPE

    def test_filter_scanlines_uses_filter_type_zero(self):
        filtered = filter_scanlines(self.IMAGE, self.IMAGE_SIZE)
        assert len(filtered) == self.IMAGE_SIZE.filtered_length
        assert filtered == scanlines(
            (0, self.IMAGE[0:9]),
            (0, self.IMAGE[9:18]),
            (0, self.IMAGE[18:27]),
        )

    def test_filter_scanlines_size_mismatch(self):
        with pytest.raises(PngError) as e:
            filter_scanlines(self.IMAGE[:-1], self.IMAGE_SIZE)
        assert e.value.kind == ErrorKind.SIZE_MISMATCH

    def test_adaptive_round_trip(self):
        filtered = filter_scanlines(self.IMAGE, self.IMAGE_SIZE, FilterStrategy.ADAPTIVE)
        assert len(filtered) == self.IMAGE_SIZE.filtered_length
        assert unfilter(filtered, self.IMAGE_SIZE) == self.IMAGE


class TestChooseFilter:
    def test_sum_of_absolute_differences(self):
        assert sum_of_absolute_differences(bytes([0, 1, 255, 128, 127])) == 0 + 1 + 1 + 128 + 127

    def test_repeating_pixels_choose_sub(self):
        row = bytes([10, 20, 30] * 3)
        filter_type, filtered = choose_filter(row, None, 3)
        # Sub and Paeth tie on a first row; the lower type wins
        assert filter_type == FilterType.SUB
        assert list(filtered) == [10, 20, 30, 0, 0, 0, 0, 0, 0]

    def test_repeating_rows_choose_up(self):
        row = bytes([10, 200, 30, 90, 5, 250])
        filter_type, filtered = choose_filter(row, row, 3)
        assert filter_type == FilterType.UP
        assert filtered == bytes(6)
