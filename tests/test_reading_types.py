import dataclasses

import pytest

from app.services.reading_types import (
    DEFAULT_CARD_COUNT,
    READING_TYPES,
    get_reading_type,
    required_card_count,
)


@pytest.mark.parametrize(
    "code,count",
    [
        ("single", 1),
        ("three_card", 3),
        ("love", 3),
        ("career", 3),
        ("celtic_cross", 10),
        ("yes_no", 1),
        ("love_relationship", 4),
        ("soulmate", 3),
        ("life_purpose", 4),
        ("shadow_work", 3),
    ],
)
def test_known_card_counts(code, count):
    assert required_card_count(code) == count


@pytest.mark.parametrize("code", ["", "tarot_of_doom", "SINGLE"])
def test_unknown_types_default_to_one(code):
    assert required_card_count(code) == DEFAULT_CARD_COUNT == 1
    assert get_reading_type(code) is None


def test_layouts_never_exceed_count():
    for config in READING_TYPES.values():
        assert len(config.layout) <= config.count


def test_table_is_read_only():
    with pytest.raises(TypeError):
        READING_TYPES["single"] = READING_TYPES["love"]
    with pytest.raises(dataclasses.FrozenInstanceError):
        READING_TYPES["single"].count = 5


def test_position_label_bounds():
    config = get_reading_type("three_card")
    assert config.position_label(0) == "Pasado"
    assert config.position_label(2) == "Futuro"
    assert config.position_label(3) is None
    assert get_reading_type("career").position_label(0) is None
