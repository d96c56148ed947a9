"""
Tests for area-of-effect target resolution.
"""

from battlemap.core.data import Vector2
from battlemap.core.geometry import CircleArea, ConeArea, LineArea, SquareArea
from battlemap.game.object_store import InMemoryObjectStore
from battlemap.game.targeting import find_tokens_in_area


class TestFindTokensInArea:
    """Tokens at hero (0,0), ally (50,50) and orc (100,100)."""

    def test_circle(self, object_store):
        assert find_tokens_in_area(CircleArea(Vector2(0, 0), 75), object_store) == ["hero", "ally"]

    def test_square(self, object_store):
        assert find_tokens_in_area(SquareArea(Vector2(100, 100), 10), object_store) == ["orc"]

    def test_cone(self, object_store):
        cone = ConeArea(Vector2(0, 0), direction=45, angle=20, range=200)
        assert find_tokens_in_area(cone, object_store) == ["hero", "ally", "orc"]

    def test_line(self, object_store):
        line = LineArea(Vector2(0, 100), Vector2(100, 0), width=10)
        assert find_tokens_in_area(line, object_store) == ["ally"]

    def test_nothing_inside(self, object_store):
        assert find_tokens_in_area(CircleArea(Vector2(500, 500), 10), object_store) == []

    def test_exclude(self, object_store):
        shape = CircleArea(Vector2(0, 0), 75)
        assert find_tokens_in_area(shape, object_store, exclude={"hero"}) == ["ally"]

    def test_empty_store(self):
        assert find_tokens_in_area(CircleArea(Vector2(0, 0), 10), InMemoryObjectStore()) == []

    def test_many_tokens(self):
        store = InMemoryObjectStore()
        for index in range(100):
            store.add_token(f"t{index}", Vector2(index * 10, 0))

        hits = find_tokens_in_area(CircleArea(Vector2(0, 0), 95), store)

        assert hits == [f"t{index}" for index in range(10)]
