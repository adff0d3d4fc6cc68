import itertools

import pytest

from manga_cache.domain.keys import build_key


pytestmark = [pytest.mark.unit]


def test_build_key_sorts_param_names():
    key = build_key("story_analysis", {"style": "manga", "story": "A hero"})
    assert key == 'story_analysis:story:"A hero"|style:"manga"'


def test_build_key_is_independent_of_insertion_order():
    pairs = [
        ("panelNumber", 1),
        ("description", "hero enters"),
        ("characters", [{"name": "Li"}]),
        ("style", "manga"),
        ("imageSize", {"w": 1024, "h": 576}),
    ]
    keys = {build_key("panel_image", dict(perm)) for perm in itertools.permutations(pairs)}
    assert len(keys) == 1


def test_build_key_nested_mappings_are_order_independent():
    first = build_key("panel_image", {"imageSize": {"w": 1024, "h": 576}})
    second = build_key("panel_image", {"imageSize": {"h": 576, "w": 1024}})
    assert first == second
    assert first == 'panel_image:imageSize:{"h":576,"w":1024}'


def test_build_key_with_empty_params():
    assert build_key("character_ref", {}) == "character_ref:"


def test_build_key_keeps_non_ascii_text():
    key = build_key("story_analysis", {"story": "少年が走る"})
    assert key == 'story_analysis:story:"少年が走る"'


def test_build_key_distinguishes_value_types():
    assert build_key("p", {"n": 1}) != build_key("p", {"n": "1"})
    assert build_key("p", {"n": None}) == "p:n:null"


def test_build_key_rejects_unserializable_values():
    with pytest.raises(TypeError):
        build_key("panel_image", {"image": object()})


def test_build_key_rejects_circular_values():
    params: dict = {}
    params["self"] = params
    with pytest.raises(ValueError):
        build_key("panel_image", {"params": params})


def test_build_key_rejects_bad_prefix_and_params():
    with pytest.raises(TypeError, match="Prefix must be a string"):
        build_key(1, {})  # type: ignore[arg-type]
    with pytest.raises(TypeError, match="Params must be a mapping"):
        build_key("panel_image", [("a", 1)])  # type: ignore[arg-type]
    with pytest.raises(TypeError, match="Param names must be strings"):
        build_key("panel_image", {1: "a"})  # type: ignore[dict-item]


def test_build_key_uses_python_json_number_rendering():
    assert build_key("panel_image", {"scale": 1.0}) == "panel_image:scale:1.0"
    assert build_key("panel_image", {"scale": 1.0}) != build_key("panel_image", {"scale": 1})
