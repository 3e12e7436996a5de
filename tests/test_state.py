"""
Session workflow: select, map, bind, queue and flush.
"""

import pytest

from models.document import LabelDocument
from models.errors import InvalidConfiguration
from models.layer import find_layer
from models.product_data import ProductData
from web.state import AppState

ROWS = [
    {"Name": "BLANTON'S", "Price": "$64.99", "MSRP": "$79.99"},
    {"Name": "EAGLE RARE", "Price": "$39.99", "MSRP": "$39.99"},
    {"Name": "STAGG JR", "Price": "$54.99"},
]


@pytest.fixture
def session(tmp_path):
    s = AppState(store_path=str(tmp_path / "doc.json"))
    s.load_products(ProductData(ROWS), "inventory.csv")
    s.change_column_mapping({"product-name-1": "Name", "active-price": "Price", "was-price": "MSRP"})
    return s


def _content(layers, layer_id):
    return find_layer(layers, layer_id).content


def test_select_product_binds_layers(session):
    assert session.select_product(0)
    assert _content(session.layers, "product-name-1") == "BLANTON'S"
    assert _content(session.layers, "ribbon-text") == "SAVE $15.00"


def test_select_out_of_range_is_ignored(session):
    before = session.layers
    assert not session.select_product(9)
    assert session.layers is before


def test_mapping_change_is_persisted_and_rebinds(session, tmp_path):
    session.select_product(0)
    session.change_column_mapping({"product-name-1": "Price"})
    assert _content(session.layers, "product-name-1") == "$64.99"
    stored = LabelDocument.load_json(str(tmp_path / "doc.json"))
    assert stored.column_mapping == {"product-name-1": "Price"}


def test_bind_layer_shows_value_immediately(session):
    session.select_product(1)
    session.bind_layer("product-name-2", "active-price")
    assert session.layer_mapping["product-name-2"] == "active-price"
    assert _content(session.layers, "product-name-2") == "$39.99"


def test_add_checked_to_queue_snapshots_each_product(session):
    session.toggle_checked(0)
    session.toggle_checked(2)
    assert session.add_checked_to_queue() == 2
    assert session.checked == set()
    names = [_content(e.layers, "product-name-1") for e in session.queue]
    assert names == ["BLANTON'S", "STAGG JR"]
    assert _content(session.queue[0].layers, "ribbon-text") == "SAVE $15.00"


def test_toggle_checked_twice_unchecks(session):
    assert session.toggle_checked(1) is True
    assert session.toggle_checked(1) is False


def test_queue_reorder_remove_and_flush(session, tmp_path):
    for i in range(3):
        session.toggle_checked(i)
    session.add_checked_to_queue()
    ids = [e.id for e in session.queue]
    session.reorder_queue(2, 0)
    assert [e.id for e in session.queue] == [ids[2], ids[0], ids[1]]
    session.remove_from_queue(1)
    assert [e.id for e in session.queue] == [ids[2], ids[1]]

    assert session.flush_queue() == 2
    assert session.queue == []
    history = LabelDocument.load_json(str(tmp_path / "doc.json")).history
    assert [h["product"] for h in history] == ["STAGG JR", "EAGLE RARE"]
    assert history[0]["price"] == "$54.99"


def test_update_history_record(session):
    session.toggle_checked(0)
    session.add_checked_to_queue()
    session.flush_queue()
    record_id = session.document.history[0]["id"]
    assert session.update_history_record(record_id, "price", "$59.99")
    assert session.document.history[0]["price"] == "$59.99"
    assert not session.update_history_record("missing", "price", "$1")


def test_reset_layout_keeps_selected_product(session):
    session.select_product(0)
    session.update_layer("header-text", {"content": "HOLIDAY"})
    session.delete_layer("footer-logo")
    session.reset_layout()
    assert _content(session.layers, "header-text") == "STAFF PICK"
    assert find_layer(session.layers, "footer-logo") is not None
    assert _content(session.layers, "product-name-1") == "BLANTON'S"


def test_custom_badge_layer(session):
    idx = session.add_custom_badge("data:image/png;base64,AAAA")
    layer = session.add_custom_badge_layer(session.custom_badges[idx])
    assert layer.type == "image"
    assert layer.id.startswith("custom-badge-")
    assert session.layers[-1] is layer


def test_update_print_layout_validates(session):
    session.update_print_layout({"scale": 0.5, "orientation": "landscape"})
    assert session.print_layout.scale == 0.5
    with pytest.raises(InvalidConfiguration):
        session.update_print_layout({"scale": -2})
    assert session.print_layout.scale == 0.5


def test_filtered_products(session):
    assert session.filtered_products("eagle") == [1]
    assert session.filtered_products("") == [0, 1, 2]


def test_missing_msrp_keeps_template_was_price(session):
    # The was-price layer is mapped, so its starter text still drives the ribbon
    assert session.select_product(2)
    assert _content(session.layers, "was-price") == "WAS $169.99"
    ribbon = find_layer(session.layers, "ribbon-text")
    assert ribbon.content == "SAVE $115.00"
    assert ribbon.style["display"] == "block"


def test_missing_msrp_hides_ribbon_once_was_price_is_cleared(session):
    session.update_layer("was-price", {"content": ""})
    assert session.select_product(2)
    assert find_layer(session.layers, "ribbon-text").style["display"] == "none"
