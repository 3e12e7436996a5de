"""
Sheet composition geometry and queue operations.
"""

import itertools
import math

import pytest

from export.sheet_layout import (
    QueueEntry, compose_sheet, fit_count, grid_shape, make_queue_entry,
    remove_from_queue, reorder_queue, append_to_queue,
)
from models.errors import InvalidConfiguration
from models.label_config import CanvasConfig, PrintLayoutConfig, PAGE_WIDTH, PAGE_HEIGHT
from models.layer import find_layer


def test_page_is_letter_in_template_units():
    assert (PAGE_WIDTH, PAGE_HEIGHT) == (816, 1056)


@pytest.mark.parametrize("usable,cell,gap", [
    (720, 172, 16), (720, 360, 0), (720, 100, 20), (50, 172, 16), (720, 720, 16),
])
def test_fit_count_formula(usable, cell, gap):
    assert fit_count(usable, cell, gap) == max(1, math.floor((usable + gap) / (cell + gap)))


def test_default_grid_shape():
    assert grid_shape(PrintLayoutConfig(), CanvasConfig()) == (3, 3)


def test_landscape_swaps_cell():
    layout = PrintLayoutConfig(orientation="landscape")
    # cell 258 x 172: (720 + 16) // 274 = 2 columns, (960 + 16) // 188 = 5 rows
    assert grid_shape(layout, CanvasConfig()) == (2, 5)


def test_oversized_cell_still_places_one_per_page(make_queue):
    layout = PrintLayoutConfig(scale=5.0)
    pages = compose_sheet(make_queue(3), layout, CanvasConfig())
    assert grid_shape(layout, CanvasConfig()) == (1, 1)
    assert len(pages) == 3


def test_flow_left_to_right_top_to_bottom(make_queue):
    pages = compose_sheet(make_queue(10), PrintLayoutConfig(), CanvasConfig())
    assert len(pages) == 2
    assert [len(p.placements) for p in pages] == [9, 1]

    first, second, fourth = (pages[0].placements[i] for i in (0, 1, 3))
    assert (first.x, first.y) == (48, 48)
    assert first.width == pytest.approx(172)
    assert first.height == pytest.approx(258)
    assert second.x == pytest.approx(48 + 172 + 16)
    assert second.y == 48
    assert (fourth.row, fourth.column) == (1, 0)
    assert fourth.y == pytest.approx(48 + 258 + 16)

    last = pages[1].placements[0]
    assert (last.page_index, last.slot, last.x, last.y) == (1, 0, 48, 48)


def test_placements_stay_on_page(make_queue):
    for orientation in ("portrait", "landscape"):
        layout = PrintLayoutConfig(orientation=orientation)
        for page in compose_sheet(make_queue(12), layout, CanvasConfig()):
            for p in page.placements:
                assert 0 <= p.x < p.x + p.width <= PAGE_WIDTH
                assert 0 <= p.y < p.y + p.height <= PAGE_HEIGHT


def test_placement_order_follows_queue(make_queue):
    queue = make_queue(7)
    pages = compose_sheet(queue, PrintLayoutConfig(), CanvasConfig())
    placed = [p.entry.id for page in pages for p in page.placements]
    assert placed == [e.id for e in queue]


def test_empty_queue_gives_no_pages():
    assert compose_sheet([], PrintLayoutConfig(), CanvasConfig()) == []


def test_landscape_transform_maps_label_into_cell(make_queue):
    layout = PrintLayoutConfig(orientation="landscape")
    canvas = CanvasConfig()
    p = compose_sheet(make_queue(1), layout, canvas)[0].placements[0]
    assert p.rotation == 90
    a, b, c, d, e, f = p.content_transform()

    def apply(u, v):
        return (a * u + c * v + e, b * u + d * v + f)

    assert apply(0, 0) == pytest.approx((p.x + p.width, p.y))
    assert apply(canvas.width, canvas.height) == pytest.approx((p.x, p.y + p.height))


def test_portrait_transform_is_scale_and_offset(make_queue):
    p = compose_sheet(make_queue(1), PrintLayoutConfig(), CanvasConfig())[0].placements[0]
    assert p.content_transform() == (0.43, 0.0, 0.0, 0.43, 48, 48)


@pytest.mark.parametrize("changes", [
    {"scale": 0}, {"scale": -1}, {"scale": float("nan")}, {"scale": float("inf")},
    {"margin_top": -1}, {"gap_x": -0.5}, {"orientation": "diagonal"},
])
def test_invalid_layout_raises(changes, make_queue):
    layout = PrintLayoutConfig(**changes)
    with pytest.raises(InvalidConfiguration):
        compose_sheet(make_queue(1), layout, CanvasConfig())


def test_invalid_canvas_raises(make_queue):
    with pytest.raises(InvalidConfiguration):
        compose_sheet(make_queue(1), PrintLayoutConfig(), CanvasConfig(width=0))


def test_reorder_is_a_permutation_for_all_pairs(make_queue):
    queue = make_queue(5)
    ids = [e.id for e in queue]
    for src, dst in itertools.product(range(5), repeat=2):
        result = reorder_queue(queue, src, dst)
        assert len(result) == 5
        assert sorted(e.id for e in result) == sorted(ids)
        assert result[dst].id == ids[src]
        rest = [i for i in ids if i != ids[src]]
        assert [e.id for e in result if e.id != ids[src]] == rest
    assert [e.id for e in queue] == ids


def test_reorder_moves_forward_and_back(make_queue):
    queue = make_queue(4)
    assert [e.id for e in reorder_queue(queue, 0, 2)] == ["label-1", "label-2", "label-0", "label-3"]
    assert [e.id for e in reorder_queue(queue, 3, 1)] == ["label-0", "label-3", "label-1", "label-2"]


@pytest.mark.parametrize("src,dst", [(-1, 0), (0, 4), (9, 1), (2, -3)])
def test_reorder_out_of_range_is_noop(make_queue, src, dst):
    queue = make_queue(4)
    assert [e.id for e in reorder_queue(queue, src, dst)] == [e.id for e in queue]


def test_remove_from_queue(make_queue):
    queue = make_queue(4)
    result = remove_from_queue(queue, 1)
    assert [e.id for e in result] == ["label-0", "label-2", "label-3"]
    assert len(queue) == 4


@pytest.mark.parametrize("index", [-1, 4, 100])
def test_remove_out_of_range_is_noop(make_queue, index):
    queue = make_queue(4)
    assert [e.id for e in remove_from_queue(queue, index)] == [e.id for e in queue]


def test_append_to_queue(make_queue):
    queue = make_queue(2)
    extra = [QueueEntry(id="x", layers=[])]
    assert [e.id for e in append_to_queue(queue, extra)] == ["label-0", "label-1", "x"]
    assert len(queue) == 2


def test_queue_entry_is_a_snapshot(starter_layers):
    entry = make_queue_entry(starter_layers, 3)
    assert entry.id.endswith("-3")
    find_layer(starter_layers, "active-price").style["color"] = "#FF0000"
    assert find_layer(entry.layers, "active-price").style["color"] == "#1A1A1A"


def test_queue_entries_get_unique_ids(starter_layers):
    ids = {make_queue_entry(starter_layers, 0).id for _ in range(20)}
    assert len(ids) == 20


def test_sheet_to_dict(make_queue):
    page = compose_sheet(make_queue(2), PrintLayoutConfig(), CanvasConfig())[0].to_dict()
    assert page["index"] == 0
    assert [p["entry_id"] for p in page["placements"]] == ["label-0", "label-1"]
    assert len(page["placements"][0]["transform"]) == 6
