"""Tour construction and local-search improvement over a cost matrix.

Tours are lists of point indices that start at the depot (index 0). Matrices
may be asymmetric (road durations differ by direction) and may contain
``math.inf`` for unreachable pairs, so every move is scored on the edges it
actually changes, in the direction they are travelled.
"""

from __future__ import annotations

import math
from typing import Sequence

# Smallest gain accepted as an improvement; keeps float noise from flapping moves.
IMPROVEMENT_TOLERANCE = 1e-9
DEFAULT_MAX_ITERATIONS = 200

Matrix = Sequence[Sequence[float]]


def route_length(tour: Sequence[int], matrix: Matrix, closed: bool = False) -> float:
    """Sum of consecutive edge costs, plus the return edge when ``closed``."""
    total = 0.0
    for a, b in zip(tour, tour[1:]):
        total += matrix[a][b]
    if closed and len(tour) > 1:
        total += matrix[tour[-1]][tour[0]]
    return total


def validate_tour(tour: Sequence[int], size: int, start: int = 0) -> None:
    if len(tour) != size or sorted(tour) != list(range(size)):
        raise ValueError(f"Tour must be a permutation of 0..{size - 1}, got {list(tour)}")
    if size and tour[0] != start:
        raise ValueError(f"Tour must start at index {start}, got {tour[0]}")


def nearest_neighbor(matrix: Matrix, start: int = 0) -> list[int]:
    """Greedy walk to the cheapest unvisited point; ties go to the lowest index."""
    n = len(matrix)
    if n == 0:
        return []
    if not 0 <= start < n:
        raise ValueError(f"Start index {start} outside matrix of size {n}")

    visited = [False] * n
    visited[start] = True
    tour = [start]
    current = start
    for _ in range(n - 1):
        best = -1
        best_cost = math.inf
        for j in range(n):
            if visited[j]:
                continue
            cost = matrix[current][j]
            # best == -1 lets an all-unreachable row still pick its lowest index.
            if best == -1 or cost < best_cost:
                best = j
                best_cost = cost
        visited[best] = True
        tour.append(best)
        current = best
    return tour


def _reverse(tour: list[int], start: int, stop: int) -> None:
    """Reverse ``tour[start:stop]`` in place."""
    lo, hi = start, stop - 1
    while lo < hi:
        tour[lo], tour[hi] = tour[hi], tour[lo]
        lo += 1
        hi -= 1


def _relocate(tour: list[int], source: int, target: int) -> None:
    """Move the element at ``source`` so that it ends up at ``target``, in place."""
    node = tour[source]
    if target > source:
        for p in range(source, target):
            tour[p] = tour[p + 1]
    else:
        for p in range(source, target, -1):
            tour[p] = tour[p - 1]
    tour[target] = node


def _segment_cost(tour: Sequence[int], matrix: Matrix, start: int, stop: int, reverse: bool) -> float:
    """Cost of the internal edges of ``tour[start:stop]``, walked forwards or backwards."""
    total = 0.0
    for p in range(start, stop - 1):
        a, b = tour[p], tour[p + 1]
        total += matrix[b][a] if reverse else matrix[a][b]
    return total


def two_opt(
    tour: Sequence[int],
    matrix: Matrix,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> list[int]:
    """Segment-reversal local search with the depot pinned at position 0.

    For positions ``1 <= i`` and ``i + 2 <= k <= len - 1`` the slice
    ``tour[i:k]`` is reversed whenever that strictly shortens the tour. Sweeps
    repeat until one finds no improvement or ``max_iterations`` is reached.
    The last position never moves, so the return edge of a closed tour is the
    same before and after every move and one search serves both objectives.
    """
    best = list(tour)
    n = len(best)
    if n < 4:
        return best

    iterations = 0
    improved = True
    while improved and iterations < max_iterations:
        improved = False
        iterations += 1
        for i in range(1, n - 2):
            for k in range(i + 2, n):
                before, first, last, after = best[i - 1], best[i], best[k - 1], best[k]
                old_cost = matrix[before][first] + _segment_cost(best, matrix, i, k, False) + matrix[last][after]
                new_cost = matrix[before][last] + _segment_cost(best, matrix, i, k, True) + matrix[first][after]
                if new_cost + IMPROVEMENT_TOLERANCE < old_cost:
                    _reverse(best, i, k)
                    improved = True
    return best


def or_opt(
    tour: Sequence[int],
    matrix: Matrix,
    closed: bool = False,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> list[int]:
    """Single-node relocation local search ("2.5-opt") with the depot pinned.

    Each non-depot node is removed and tried at every other position; the move
    is applied when it strictly shortens the tour. Same stopping rule as
    :func:`two_opt`.
    """
    best = list(tour)
    n = len(best)
    if n < 3:
        return best

    def cost(a: int | None, b: int | None) -> float:
        return 0.0 if a is None or b is None else matrix[a][b]

    def successor(position: int, removed: int) -> int | None:
        # Node following ``position`` once the node at ``removed`` is taken out.
        nxt = position + 1
        if nxt == removed:
            nxt += 1
        if nxt < n:
            return best[nxt]
        return best[0] if closed else None

    iterations = 0
    improved = True
    while improved and iterations < max_iterations:
        improved = False
        iterations += 1
        for i in range(1, n):
            node = best[i]
            prev = best[i - 1]
            nxt = successor(i, i)
            removal_saving = cost(prev, node) + cost(node, nxt)
            for j in range(1, n):
                if j == i:
                    continue
                # In the reduced tour the new neighbours sit at j - 1 and j.
                reduced_before = j - 1 if j <= i else j
                a = best[reduced_before]
                b = successor(reduced_before, i)
                old_cost = removal_saving + cost(a, b)
                new_cost = cost(prev, nxt) + cost(a, node) + cost(node, b)
                if new_cost + IMPROVEMENT_TOLERANCE < old_cost:
                    _relocate(best, i, j)
                    improved = True
                    break
    return best


def improve(
    tour: Sequence[int],
    matrix: Matrix,
    closed: bool = False,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> list[int]:
    """Run 2-opt then Or-opt; the result is never longer than ``tour``."""
    validate_tour(tour, len(matrix))
    refined = two_opt(tour, matrix, max_iterations=max_iterations)
    return or_opt(refined, matrix, closed=closed, max_iterations=max_iterations)
