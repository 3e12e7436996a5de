import pytest

from models.errors import InvalidConfiguration
from models.label_config import CanvasConfig, PrintLayoutConfig


def test_print_layout_defaults_are_valid():
    layout = PrintLayoutConfig().validate()
    assert layout.orientation == "portrait"
    assert not layout.is_landscape


def test_print_layout_json_round_trip(tmp_path):
    path = str(tmp_path / "layout.json")
    layout = PrintLayoutConfig(margin_top=10, gap_x=4, scale=0.5, orientation="landscape")
    layout.save_json(path)
    assert PrintLayoutConfig.load_json(path) == layout


def test_from_dict_ignores_unknown_keys():
    layout = PrintLayoutConfig.from_dict({"scale": 0.3, "page_size": "A4"})
    assert layout.scale == 0.3


def test_invalid_scale_type():
    with pytest.raises(InvalidConfiguration):
        PrintLayoutConfig(scale="big").validate()


@pytest.mark.parametrize("changes", [
    {"width": 0},
    {"height": -10},
    {"split_ratio": 1.5},
    {"width": "400"},
    {"height": float("nan")},
    {"width": float("inf")},
    {"split_ratio": float("nan")},
    {"split_ratio": None},
])
def test_invalid_canvas(changes):
    with pytest.raises(InvalidConfiguration):
        CanvasConfig(**changes).validate()


def test_invalid_configuration_is_a_value_error():
    assert issubclass(InvalidConfiguration, ValueError)
