"""Unit tests for the cache value codec."""

from __future__ import annotations

import pytest

from src.models.recipe import Category, Recipe
from src.utils.errors import DeserializationError, InvalidArgumentError
from src.utils.serialization import decode_value, encode_value


class TestEncodeValue:
    def test_none_is_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError):
            encode_value(None)

    def test_plain_values(self) -> None:
        assert encode_value({"a": [1, 2]}) == '{"a":[1,2]}'
        assert encode_value("text") == '"text"'

    def test_model_is_encoded_as_object(self, sample_recipe: Recipe) -> None:
        payload = encode_value(sample_recipe)
        assert payload.startswith("{")
        assert '"name":"Teriyaki Chicken Casserole"' in payload

    def test_unserializable_value_is_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError):
            encode_value(object())


class TestDecodeValue:
    def test_untyped_returns_plain_json(self) -> None:
        assert decode_value('{"a":[1,2]}') == {"a": [1, 2]}

    def test_typed_model(self, sample_recipe: Recipe) -> None:
        assert decode_value(encode_value(sample_recipe), Recipe) == sample_recipe

    def test_typed_generic_list(self) -> None:
        categories = [Category(id=1, name="Beef"), Category(id=2, name="Dessert")]
        assert decode_value(encode_value(categories), list[Category]) == categories

    def test_invalid_json_untyped(self) -> None:
        with pytest.raises(DeserializationError) as exc_info:
            decode_value("{broken", key="k1")
        assert exc_info.value.key == "k1"

    def test_invalid_json_typed(self) -> None:
        with pytest.raises(DeserializationError):
            decode_value("{broken", Recipe)

    def test_shape_mismatch(self) -> None:
        with pytest.raises(DeserializationError):
            decode_value('["a", "b"]', Recipe)
