"""Random hazard fields with a known ground truth, for benchmarks and tests."""

import random
from collections import deque
from typing import Deque, List, Optional, Set, Tuple

from .board import Board, CellStatus
from .utils import Coord, get_neighborhoods


class HazardField:
    """
    A fully known puzzle position: hazards placed uniformly at random, clues
    computed from them, and a set of revealed and flagged cells. Exports the
    visible part as a Board snapshot.
    """

    def __init__(
        self,
        width: int,
        height: int,
        hazards_count: int,
        seed: Optional[int] = None,
        safe_neighborhood: bool = True,
    ) -> None:
        """
        Args:
            width: Field width (number of columns), must be > 0.
            height: Field height (number of rows), must be > 0.
            hazards_count: Hazards to place, must be >= 0.
            seed: Seed for the private random generator.
            safe_neighborhood: If True the first reveal and its neighbors are
                kept free of hazards; otherwise only the first cell is.

        Raises:
            ValueError: If dimensions or hazards_count are invalid.
        """
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive.")
        if hazards_count < 0:
            raise ValueError("hazards_count must be non-negative.")
        reserved = 9 if safe_neighborhood else 1
        if hazards_count > width * height - reserved:
            raise ValueError("Too many hazards to keep the first reveal safe.")

        self.width = width
        self.height = height
        self.hazards_count = hazards_count
        self.safe_neighborhood = safe_neighborhood
        self._rng = random.Random(seed)
        self._neighborhoods = get_neighborhoods(width, height)

        self.hazards: Set[Coord] = set()
        self.clues: List[List[int]] = [[0] * width for _ in range(height)]
        self.revealed: Set[Coord] = set()
        self.flagged: Set[Coord] = set()
        self.placed = False

    def neighbors(self, x: int, y: int) -> Tuple[Coord, ...]:
        return self._neighborhoods[(x, y)]

    def place_hazards(self, first_x: int, first_y: int) -> None:
        """Place hazards once, keeping the first reveal (and neighbors) safe."""
        if self.placed:
            raise ValueError("Hazards are already placed.")

        safe: Set[Coord] = {(first_x, first_y)}
        if self.safe_neighborhood:
            safe.update(self.neighbors(first_x, first_y))

        eligible = [
            (x, y)
            for y in range(self.height)
            for x in range(self.width)
            if (x, y) not in safe
        ]
        self.hazards = set(self._rng.sample(eligible, self.hazards_count))

        for y in range(self.height):
            for x in range(self.width):
                self.clues[y][x] = sum(
                    1 for n in self.neighbors(x, y) if n in self.hazards
                )
        self.placed = True

    def reveal(self, x: int, y: int) -> List[Coord]:
        """
        Reveal (x, y) and flood-fill through zero clues.

        Returns:
            Newly revealed cells.

        Raises:
            ValueError: If (x, y) is outside the field or holds a hazard.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError("Cell coordinates are outside the field.")
        if not self.placed:
            self.place_hazards(x, y)
        if (x, y) in self.hazards:
            raise ValueError(f"({x},{y}) holds a hazard.")

        queue: Deque[Coord] = deque([(x, y)])
        seen: Set[Coord] = {(x, y)}
        newly: List[Coord] = []

        while queue:
            cx, cy = queue.popleft()
            if (cx, cy) in self.revealed:
                continue
            self.revealed.add((cx, cy))
            self.flagged.discard((cx, cy))
            newly.append((cx, cy))

            if self.clues[cy][cx] == 0:
                for n in self.neighbors(cx, cy):
                    if n not in seen and n not in self.revealed:
                        seen.add(n)
                        queue.append(n)

        return newly

    def flag(self, x: int, y: int) -> None:
        """Flag a hidden cell (flags may be wrong; the field does not check)."""
        if (x, y) in self.revealed:
            raise ValueError(f"({x},{y}) is already revealed.")
        self.flagged.add((x, y))

    def reveal_random_safe(self, count: int) -> int:
        """
        Reveal up to `count` random safe hidden cells.

        Returns:
            The number of reveal calls made.
        """
        calls = 0
        for _ in range(count):
            candidates = [
                (x, y)
                for y in range(self.height)
                for x in range(self.width)
                if (x, y) not in self.revealed and (x, y) not in self.hazards
            ]
            if not candidates:
                break
            self.reveal(*self._rng.choice(candidates))
            calls += 1
        return calls

    def flag_random_hazards(self, fraction: float) -> int:
        """Flag a random `fraction` of the hazards; returns how many."""
        if not 0.0 <= fraction <= 1.0:
            raise ValueError("fraction must be within [0, 1].")
        pool = sorted(self.hazards - self.flagged)
        chosen = self._rng.sample(pool, int(len(pool) * fraction))
        self.flagged.update(chosen)
        return len(chosen)

    def snapshot(self) -> Board:
        """Export the visible position as an immutable Board."""
        statuses: List[Tuple[CellStatus, Optional[int]]] = []
        for y in range(self.height):
            for x in range(self.width):
                if (x, y) in self.revealed:
                    statuses.append((CellStatus.REVEALED, self.clues[y][x]))
                elif (x, y) in self.flagged:
                    statuses.append((CellStatus.FLAGGED, None))
                else:
                    statuses.append((CellStatus.HIDDEN, None))
        return Board.from_statuses(self.width, self.height, self.hazards_count, statuses)

    def format_field(self) -> str:
        """Render the full field, hazards shown as "*", for debugging."""
        lines = []
        for y in range(self.height):
            lines.append(
                "".join(
                    "*" if (x, y) in self.hazards else str(self.clues[y][x])
                    for x in range(self.width)
                )
            )
        return "\n".join(lines)
