"""Grid helpers shared by the board model and the constraint builder."""

from typing import Dict, Iterator, List, Tuple

Coord = Tuple[int, int]
Neighborhoods = Dict[Coord, Tuple[Coord, ...]]

# Module-level cache: (width, height) -> {(x, y): ((nx, ny), ...), ...}
_NEIGHBORHOODS_CACHE: Dict[Tuple[int, int], Neighborhoods] = {}


def iter_coords(width: int, height: int) -> Iterator[Coord]:
    """Yield every (x, y) of a width x height grid in row-major order."""
    for y in range(height):
        for x in range(width):
            yield (x, y)


def get_neighborhoods(width: int, height: int) -> Neighborhoods:
    """
    Precompute and cache the 8-connected neighbors of every cell in a grid.

    Neighbors are listed row by row (dy, then dx), clipped to the grid bounds,
    so a constraint built from them has a deterministic target order.

    Args:
        width: Grid width (number of columns). Must be positive.
        height: Grid height (number of rows). Must be positive.

    Returns:
        Mapping from each cell (x, y) to a tuple of its neighbors.

    Raises:
        ValueError: If width or height is non-positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be positive.")

    key = (width, height)
    cached = _NEIGHBORHOODS_CACHE.get(key)
    if cached is not None:
        return cached

    neighborhoods: Neighborhoods = {}
    for x, y in iter_coords(width, height):
        nbrs: List[Coord] = []
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                nx, ny = x + dx, y + dy
                if 0 <= nx < width and 0 <= ny < height:
                    nbrs.append((nx, ny))
        neighborhoods[(x, y)] = tuple(nbrs)

    _NEIGHBORHOODS_CACHE[key] = neighborhoods
    return neighborhoods
