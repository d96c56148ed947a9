"""Area-of-effect target resolution.

Finds the tokens whose current position lies inside an area shape. Token
positions are gathered once into a VectorArray, cut down with the shape's
bounding box and then hit-tested in a single vectorized pass.
"""

from typing import TYPE_CHECKING, Optional

import numpy as np

from ..core.data import Vector2, VectorArray
from ..core.geometry import AreaShape, bounds_of, contains_points

if TYPE_CHECKING:
    from ..core.interfaces import ObjectStore


def _token_positions(store: "ObjectStore", token_ids: Optional[list[str]] = None) -> tuple[list[str], VectorArray]:
    ids = []
    positions: list[Vector2] = []
    for token_id in token_ids if token_ids is not None else store.list_token_ids():
        position = store.get_token_position(token_id)
        if position is not None:
            ids.append(token_id)
            positions.append(position)
    return ids, VectorArray(positions)


def find_tokens_in_area(shape: AreaShape, store: "ObjectStore",
                        exclude: Optional[set[str]] = None) -> list[str]:
    """Ids of the tokens inside a shape, in store order.

    Args:
        shape: Area to test
        store: Object store providing token positions
        exclude: Token ids to leave out (e.g. the caster)

    Returns:
        Ids of the tokens whose position is inside the shape
    """
    candidates = [t for t in store.list_token_ids() if not exclude or t not in exclude]
    ids, positions = _token_positions(store, candidates)
    if not ids:
        return []

    box = bounds_of(shape)
    in_box = positions.bounds_mask(box.min.x, box.max.x, box.min.y, box.max.y)
    if not np.any(in_box):
        return []

    boxed_ids = [token_id for token_id, keep in zip(ids, in_box) if keep]
    hits = contains_points(shape, VectorArray(positions.data[in_box]))
    return [token_id for token_id, hit in zip(boxed_ids, hits) if hit]
