"""
Alpha Bleeding
==============
Extrapolates RGB values into fully transparent pixels that sit next to opaque
content, so that mipmapping, bilinear filtering or texture compression do not
pull garbage (usually black) colors into visible edges. Alpha is never changed.

The fix radiates outward from opaque regions in passes. Each pass takes the
current frontier of transparent pixels, averages the colors of their opaque
neighbors (8-connectivity, unweighted, truncating integer division), and
discovers the next frontier. All reads of a pass happen before any of its
writes, so the result does not depend on processing order.

Grids are numpy arrays of shape (height, width, 4), dtype uint8, mutated in
place. Positions inside a run are flat indices ``y * width + x``.
"""

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

# Alpha given to freshly bled pixels until the run is finalized
OPAQUE = 255

NEIGHBOR_OFFSETS = tuple((dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dx, dy) != (0, 0))


class Pixel(NamedTuple):
    r: int
    g: int
    b: int
    a: int

    @property
    def is_transparent(self) -> bool:
        return self.a == 0


@dataclass(frozen=True)
class BleedStats:
    """Outcome of one run: passes executed and pixels that received color."""

    passes: int
    bled: int


def as_grid(array):
    """Validate an RGBA grid, returning it without copying."""
    grid = np.asarray(array)
    if grid.ndim != 3 or grid.shape[2] != 4:
        raise ValueError(f"Expected an RGBA grid of shape (height, width, 4), got {grid.shape}")
    if grid.dtype != np.uint8:
        raise ValueError(f"Expected 8-bit channels, got {grid.dtype}")
    return grid


def grid_from_pixels(width, height, pixels):
    """Build a grid from a row-major sequence of (R, G, B, A) quadruples."""
    pixels = [tuple(p) for p in pixels]
    if len(pixels) != width * height:
        raise ValueError(f"Expected {width * height} pixels for {width}x{height}, got {len(pixels)}")
    if any(len(p) != 4 for p in pixels):
        raise ValueError("Every pixel must have exactly 4 channels (R, G, B, A)")
    return np.array(pixels, dtype=np.uint8).reshape(height, width, 4)


def grid_pixels(grid):
    """Row-major list of Pixels in a grid."""
    return [Pixel(*(int(c) for c in p)) for p in as_grid(grid).reshape(-1, 4)]


def iter_neighbors(xs, ys, width, height):
    """Yield (inside, nx, ny) for each of the 8 neighbor offsets.

    Works on scalars or arrays of positions. ``inside`` masks the positions
    whose neighbor at that offset lies within the grid; nx/ny are only
    meaningful where it is true.
    """
    xs = np.asarray(xs)
    ys = np.asarray(ys)
    for dx, dy in NEIGHBOR_OFFSETS:
        nx = xs + dx
        ny = ys + dy
        inside = (nx >= 0) & (nx < width) & (ny >= 0) & (ny < height)
        yield inside, nx, ny


def neighbors(x: int, y: int, width: int, height: int) -> list:
    """In-bounds 8-connected neighbors of a single position."""
    return [(int(nx), int(ny)) for inside, nx, ny in iter_neighbors(x, y, width, height) if inside]


def seed_frontier(grid, marks):
    """Mark opaque pixels and return the transparent pixels touching them.

    Every returned position is marked as processed too. Transparent pixels
    with no opaque neighbor stay unmarked for propagation to reach later.
    """
    width = grid.shape[1]
    opaque = grid[:, :, 3].ravel() > 0
    marks[opaque] = True

    transparent = np.flatnonzero(~opaque)
    ys, xs = np.divmod(transparent, width)
    touching = np.zeros(transparent.size, dtype=bool)
    for inside, nx, ny in iter_neighbors(xs, ys, width, grid.shape[0]):
        touching[inside] |= opaque[ny[inside] * width + nx[inside]]

    frontier = transparent[touching]
    marks[frontier] = True
    return frontier


def propagate(grid, frontier, marks, pending):
    """Run one pass over the frontier and return the next one.

    Neighbor values are gathered from the grid as it stood before the pass;
    the bled colors are written back in a single commit at the end.
    """
    height, width = grid.shape[:2]
    ys, xs = np.divmod(frontier, width)
    rows = np.arange(frontier.size)

    sums = np.zeros((frontier.size, 3), dtype=np.uint32)
    counts = np.zeros(frontier.size, dtype=np.uint32)
    reached = []
    for inside, nx, ny in iter_neighbors(xs, ys, width, height):
        nx, ny = nx[inside], ny[inside]
        neighbor = grid[ny, nx]
        opaque = neighbor[:, 3] > 0

        # at most one neighbor per offset, so rows never repeat here
        contributors = rows[inside][opaque]
        sums[contributors] += neighbor[opaque, :3]
        counts[contributors] += 1
        reached.append((ny * width + nx)[~opaque])

    if not counts.all():
        raise AssertionError("Frontier pixel has no opaque neighbor to bleed from")

    reached = np.unique(np.concatenate(reached))
    next_frontier = reached[~marks[reached]]
    marks[next_frontier] = True

    bled = np.empty((frontier.size, 4), dtype=np.uint8)
    bled[:, :3] = sums // counts[:, None]
    bled[:, 3] = OPAQUE
    grid[ys, xs] = bled
    pending.append(frontier)
    return next_frontier


def finalize(grid, pending):
    """Reset alpha to 0 on every bled position, keeping its RGB."""
    ys, xs = np.divmod(pending, grid.shape[1])
    grid[ys, xs, 3] = 0


def bleed(grid):
    """Alpha-bleed an RGBA grid in place."""
    grid = as_grid(grid)
    height, width = grid.shape[:2]
    if grid.size == 0:
        return BleedStats(passes=0, bled=0)

    marks = np.zeros(width * height, dtype=bool)
    pending = []
    passes = 0
    frontier = seed_frontier(grid, marks)
    while frontier.size:
        frontier = propagate(grid, frontier, marks, pending)
        passes += 1

    cleared = np.concatenate(pending) if pending else np.empty(0, dtype=np.intp)
    finalize(grid, cleared)
    return BleedStats(passes=passes, bled=int(cleared.size))
