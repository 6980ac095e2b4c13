"""
Unit tests for the geometry service.

Tests cover:
- Pixel to percentage conversion against a container box
- Percentage to pixel projection and round trips
- Bounds checks
- Rectangle merging, including the single-pass limitation
"""

import math

import pytest

from learningly.models.highlight_types import ClientRect, PercentageRect, PixelRect
from learningly.services.geometry_service import (
    convert_percentage_to_pixels,
    convert_rects_to_percentage,
    is_selection_in_bounds,
    merge_highlight_rects,
    to_css_style,
)


def rect(x, y, width, height):
    return PercentageRect(x=x, y=y, width=width, height=height)


class TestConvertRectsToPercentage:
    """Viewport pixels -> container fractions"""

    def test_concrete_conversion(self, container):
        result = convert_rects_to_percentage(
            [ClientRect(left=180, top=110, width=80, height=20)], container
        )

        assert len(result) == 1
        assert result[0].x == pytest.approx(0.10)
        assert result[0].y == pytest.approx(0.10)
        assert result[0].width == pytest.approx(0.10)
        assert result[0].height == pytest.approx(0.0333333333)

    def test_container_box_read_once_per_batch(self, container):
        rects = [ClientRect(left=100 + i * 10, top=50, width=10, height=10) for i in range(5)]

        convert_rects_to_percentage(rects, container)

        assert container.reads == 1

    def test_preserves_order_and_keeps_out_of_bounds_rects(self, container):
        rects = [
            ClientRect(left=500, top=400, width=10, height=10),
            ClientRect(left=0, top=0, width=10, height=10),
            ClientRect(left=1000, top=700, width=10, height=10),
        ]

        result = convert_rects_to_percentage(rects, container)

        assert len(result) == 3
        assert result[0].x == pytest.approx(0.5)
        assert result[1].x == pytest.approx(-0.125)
        assert result[2].x > 1

    def test_accepts_snapshotted_box(self):
        box = ClientRect(left=0, top=0, width=200, height=100)

        result = convert_rects_to_percentage(
            [ClientRect(left=50, top=25, width=20, height=10)], box
        )

        assert result == [rect(0.25, 0.25, 0.1, 0.1)]

    def test_empty_input(self, container):
        assert convert_rects_to_percentage([], container) == []

    def test_zero_sized_container_is_caller_error(self):
        box = ClientRect(left=0, top=0, width=0, height=0)

        with pytest.raises(ZeroDivisionError):
            convert_rects_to_percentage(
                [ClientRect(left=0, top=0, width=1, height=1)], box
            )


class TestConvertPercentageToPixels:
    """Container fractions -> page units"""

    def test_projection(self):
        result = convert_percentage_to_pixels([rect(0.1, 0.2, 0.3, 0.05)], 1000, 800)

        assert result[0].left == pytest.approx(100)
        assert result[0].top == pytest.approx(160)
        assert result[0].width == pytest.approx(300)
        assert result[0].height == pytest.approx(40)

    def test_order_preserved(self):
        rects = [rect(0.5, 0.5, 0.1, 0.1), rect(0.1, 0.1, 0.1, 0.1)]

        result = convert_percentage_to_pixels(rects, 100, 100)

        assert [r.left for r in result] == pytest.approx([50, 10])

    @pytest.mark.parametrize(
        "original,page_width,page_height",
        [
            (rect(0.1, 0.2, 0.3, 0.05), 612, 792),
            (rect(0.333, 0.777, 0.0101, 0.02), 1.5, 3.25),
            (rect(-0.01, 1.02, 0.5, 0.5), 2048, 37),
        ],
    )
    def test_round_trip(self, original, page_width, page_height):
        pixels = convert_percentage_to_pixels([original], page_width, page_height)
        page_box = ClientRect(left=0, top=0, width=page_width, height=page_height)
        client_rects = [
            ClientRect(left=p.left, top=p.top, width=p.width, height=p.height)
            for p in pixels
        ]

        back = convert_rects_to_percentage(client_rects, page_box)[0]

        assert math.isclose(back.x, original.x, abs_tol=1e-9)
        assert math.isclose(back.y, original.y, abs_tol=1e-9)
        assert math.isclose(back.width, original.width, abs_tol=1e-9)
        assert math.isclose(back.height, original.height, abs_tol=1e-9)

    def test_css_style(self):
        style = to_css_style(PixelRect(left=10.5, top=20.0, width=30.0, height=4.0))

        assert style == {
            "left": "10.5px",
            "top": "20px",
            "width": "30px",
            "height": "4px",
        }

    @pytest.mark.parametrize(
        "value, expected",
        [
            (-0.0, "0px"),
            (-12.0, "-12px"),
            (0.00001, "0.00001px"),
            (1e-7, "1e-7px"),
            (2.5e-8, "2.5e-8px"),
            (1e21, "1e+21px"),
        ],
    )
    def test_css_style_number_format(self, value, expected):
        style = to_css_style(PixelRect(left=value, top=0, width=1, height=1))

        assert style["left"] == expected


class TestIsSelectionInBounds:
    def test_one_rect_inside_is_enough(self, container):
        rects = [
            ClientRect(left=0, top=0, width=10, height=10),
            ClientRect(left=200, top=100, width=50, height=20),
        ]

        assert is_selection_in_bounds(rects, container) is True

    def test_all_rects_outside(self, container):
        rects = [
            ClientRect(left=0, top=0, width=10, height=10),
            ClientRect(left=950, top=100, width=10, height=10),
        ]

        assert is_selection_in_bounds(rects, container) is False

    def test_partially_overlapping_rect_is_not_inside(self, container):
        rects = [ClientRect(left=850, top=100, width=100, height=10)]

        assert is_selection_in_bounds(rects, container) is False

    def test_edges_are_inclusive(self, container):
        rects = [ClientRect(left=100, top=50, width=800, height=600)]

        assert is_selection_in_bounds(rects, container) is True


class TestMergeHighlightRects:
    """Single-pass merge of same-line adjacent rectangles"""

    def test_empty_and_single(self):
        single = [rect(0.1, 0.1, 0.1, 0.1)]

        assert merge_highlight_rects([]) == []
        assert merge_highlight_rects(single) == single

    def test_adjacent_same_line_rects_merge(self):
        a = rect(0.10, 0.20, 0.05, 0.02)
        b = rect(0.151, 0.201, 0.05, 0.02)

        result = merge_highlight_rects([a, b])

        assert len(result) == 1
        assert result[0].x == pytest.approx(0.10)
        assert result[0].y == pytest.approx(0.20)
        assert result[0].width == pytest.approx(0.101)
        assert result[0].height == pytest.approx(0.02)

    def test_different_lines_do_not_merge(self):
        a = rect(0.10, 0.20, 0.05, 0.02)
        b = rect(0.151, 0.25, 0.05, 0.02)

        result = merge_highlight_rects([b, a])

        assert result == [a, b]

    def test_gap_too_wide_does_not_merge(self):
        a = rect(0.10, 0.20, 0.05, 0.02)
        b = rect(0.20, 0.20, 0.05, 0.02)

        assert len(merge_highlight_rects([a, b])) == 2

    def test_merge_keeps_taller_height(self):
        a = rect(0.10, 0.20, 0.05, 0.02)
        b = rect(0.15, 0.205, 0.05, 0.03)

        result = merge_highlight_rects([a, b])

        assert len(result) == 1
        assert result[0].height == pytest.approx(0.03)
        assert result[0].y == pytest.approx(0.20)

    def test_chain_of_fragments_merges_into_one(self):
        fragments = [rect(0.1 + i * 0.05, 0.3, 0.05, 0.02) for i in range(4)]

        result = merge_highlight_rects(list(reversed(fragments)))

        assert len(result) == 1
        assert result[0].x == pytest.approx(0.1)
        assert result[0].width == pytest.approx(0.2)

    def test_only_compares_with_last_output_rect(self):
        # c would extend a, but b lands between them in sorted order
        a = rect(0.10, 0.200, 0.05, 0.02)
        b = rect(0.50, 0.205, 0.05, 0.02)
        c = rect(0.15, 0.209, 0.05, 0.02)

        result = merge_highlight_rects([a, b, c])

        assert len(result) == 3

    def test_input_not_mutated(self):
        a = rect(0.10, 0.20, 0.05, 0.02)
        b = rect(0.15, 0.20, 0.05, 0.02)

        merge_highlight_rects([a, b])

        assert a.width == pytest.approx(0.05)
        assert b.width == pytest.approx(0.05)

    @pytest.mark.parametrize(
        "rects",
        [
            [rect(0.10, 0.20, 0.05, 0.02), rect(0.151, 0.201, 0.05, 0.02)],
            [
                rect(0.10, 0.200, 0.05, 0.02),
                rect(0.50, 0.205, 0.05, 0.02),
                rect(0.15, 0.209, 0.05, 0.02),
            ],
            [rect(0.1 + i * 0.049, 0.3 + (i % 2) * 0.004, 0.05, 0.02) for i in range(6)],
            [rect(0.2, 0.1, 0.1, 0.02), rect(0.2, 0.1, 0.05, 0.02), rect(0.0, 0.5, 0.3, 0.02)],
        ],
    )
    def test_idempotent(self, rects):
        once = merge_highlight_rects(rects)

        assert merge_highlight_rects(once) == once
