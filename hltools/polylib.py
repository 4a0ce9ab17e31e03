"""Convex polygons (windings) lying on planes: building, measuring, clipping."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Optional, Sequence

from hltools.common import ToolError
from hltools.mathlib import (
    ON_EPSILON,
    VEC3_ORIGIN,
    add_point_to_bounds,
    clear_bounds,
    cross_product,
    dot_product,
    vector_add,
    vector_length,
    vector_ma,
    vector_normalize,
    vector_scale,
    vector_subtract,
)

__all__ = ["MAX_POINTS_ON_WINDING", "BOGUS_RANGE", "Side", "Winding"]

MAX_POINTS_ON_WINDING = 128
BOGUS_RANGE = 8192

Vec3 = tuple[float, float, float]


class Side(IntEnum):
    """Where a point or winding lies relative to a plane."""

    FRONT = 0
    BACK = 1
    ON = 2
    CROSS = -2


@dataclass(frozen=True)
class Winding:
    """An ordered loop of points forming a convex polygon."""

    points: tuple[Vec3, ...] = ()

    def __init__(self, points: Iterable[Sequence[float]] = ()) -> None:
        object.__setattr__(
            self, "points", tuple((float(p[0]), float(p[1]), float(p[2])) for p in points)
        )

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    @classmethod
    def base_for_plane(cls, normal: Sequence[float], dist: float) -> "Winding":
        """Return a huge square lying on the plane ``normal . x = dist``."""
        axis = -1
        best = -float(BOGUS_RANGE)
        for index in range(3):
            value = abs(normal[index])
            if value > best:
                axis = index
                best = value
        if axis == -1:
            raise ToolError("BaseWindingForPlane: no axis found")

        vup = (0.0, 0.0, 1.0) if axis in (0, 1) else (1.0, 0.0, 0.0)
        v = dot_product(vup, normal)
        vup, _ = vector_normalize(vector_ma(vup, -v, normal))
        org = vector_scale(normal, dist)
        vright = cross_product(vup, normal)
        vup = vector_scale(vup, 9000)
        vright = vector_scale(vright, 9000)

        return cls(
            (
                vector_add(vector_subtract(org, vright), vup),
                vector_add(vector_add(org, vright), vup),
                vector_subtract(vector_add(org, vright), vup),
                vector_subtract(vector_subtract(org, vright), vup),
            )
        )

    def area(self) -> float:
        """Return the surface area of the polygon."""
        if not self.points:
            return 0.0
        origin = self.points[0]
        total = 0.0
        for previous, current in zip(self.points[1:], self.points[2:]):
            cross = cross_product(
                vector_subtract(previous, origin), vector_subtract(current, origin)
            )
            total += 0.5 * vector_length(cross)
        return total

    def center(self) -> Vec3:
        """Return the average of the points."""
        total = VEC3_ORIGIN
        for point in self.points:
            total = vector_add(point, total)
        return vector_scale(total, 1.0 / len(self.points))

    def bounds(self) -> tuple[Vec3, Vec3]:
        """Return ``(mins, maxs)`` of the points."""
        mins, maxs = clear_bounds()
        for point in self.points:
            mins, maxs = add_point_to_bounds(point, mins, maxs)
        return mins, maxs

    def plane(self) -> tuple[Vec3, float]:
        """Return ``(normal, dist)`` of the plane through the first three points."""
        p0, p1, p2 = self.points[0], self.points[1], self.points[2]
        v1 = vector_subtract(p1, p0)
        v2 = vector_subtract(p2, p0)
        normal, _ = vector_normalize(cross_product(v2, v1))
        return normal, dot_product(p0, normal)

    def remove_colinear_points(self) -> "Winding":
        """Return a winding without the points that lie on a straight edge."""
        count = len(self.points)
        kept = []
        for i, point in enumerate(self.points):
            following = self.points[(i + 1) % count]
            preceding = self.points[(i + count - 1) % count]
            v1, _ = vector_normalize(vector_subtract(following, point))
            v2, _ = vector_normalize(vector_subtract(point, preceding))
            if dot_product(v1, v2) < 1.0 - ON_EPSILON:
                kept.append(point)
        if len(kept) == count:
            return self
        return Winding(kept)

    def _classify(
        self, normal: Sequence[float], dist: float
    ) -> tuple[list[float], list[Side], dict[Side, int]]:
        dists: list[float] = []
        sides: list[Side] = []
        counts = {Side.FRONT: 0, Side.BACK: 0, Side.ON: 0}
        for point in self.points:
            d = dot_product(point, normal) - dist
            if d > ON_EPSILON:
                side = Side.FRONT
            elif d < -ON_EPSILON:
                side = Side.BACK
            else:
                side = Side.ON
            dists.append(d)
            sides.append(side)
            counts[side] += 1
        return dists, sides, counts

    def _split(
        self,
        normal: Sequence[float],
        dist: float,
        dists: list[float],
        sides: list[Side],
    ) -> tuple[list[Vec3], list[Vec3]]:
        count = len(self.points)
        front: list[Vec3] = []
        back: list[Vec3] = []
        for i, p1 in enumerate(self.points):
            side = sides[i]
            if side == Side.ON:
                front.append(p1)
                back.append(p1)
                continue
            if side == Side.FRONT:
                front.append(p1)
            else:
                back.append(p1)

            following = (i + 1) % count
            next_side = sides[following]
            if next_side == Side.ON or next_side == side:
                continue

            p2 = self.points[following]
            fraction = dists[i] / (dists[i] - dists[following])
            mid = []
            for j in range(3):
                # avoid round off error when possible
                if normal[j] == 1:
                    mid.append(float(dist))
                elif normal[j] == -1:
                    mid.append(float(-dist))
                else:
                    mid.append(p1[j] + fraction * (p2[j] - p1[j]))
            midpoint = (mid[0], mid[1], mid[2])
            front.append(midpoint)
            back.append(midpoint)

        maxpts = count + 4
        if len(front) > maxpts or len(back) > maxpts:
            raise ToolError("ClipWinding: points exceeded estimate")
        if len(front) > MAX_POINTS_ON_WINDING or len(back) > MAX_POINTS_ON_WINDING:
            raise ToolError("ClipWinding: MAX_POINTS_ON_WINDING")
        return front, back

    def clip(
        self, normal: Sequence[float], dist: float
    ) -> tuple[Optional["Winding"], Optional["Winding"]]:
        """Split by a plane into ``(front, back)``; a side with no part is None.

        A winding lying entirely on the plane goes to the back.
        """
        dists, sides, counts = self._classify(normal, dist)
        if not counts[Side.FRONT]:
            return None, self
        if not counts[Side.BACK]:
            return self, None
        front, back = self._split(normal, dist, dists, sides)
        return Winding(front), Winding(back)

    def chop(self, normal: Sequence[float], dist: float) -> Optional["Winding"]:
        """Return the part in front of the plane, or None if there is none."""
        return self.clip(normal, dist)[0]

    def check(self) -> None:
        """Raise ToolError unless the winding is a sane, flat, convex polygon."""
        count = len(self.points)
        if count < 3:
            raise ToolError(f"CheckWinding: {count} points")

        area = self.area()
        if area < 1:
            raise ToolError(f"CheckWinding: {area:f} area")

        facenormal, facedist = self.plane()

        for i, p1 in enumerate(self.points):
            for value in p1:
                if value > BOGUS_RANGE or value < -BOGUS_RANGE:
                    raise ToolError(f"CheckFace: BUGUS_RANGE: {value:f}")

            d = dot_product(p1, facenormal) - facedist
            if d < -ON_EPSILON or d > ON_EPSILON:
                raise ToolError("CheckWinding: point off plane")

            p2 = self.points[(i + 1) % count]
            direction = vector_subtract(p2, p1)
            if vector_length(direction) < ON_EPSILON:
                raise ToolError("CheckWinding: degenerate edge")

            edgenormal, _ = vector_normalize(cross_product(facenormal, direction))
            edgedist = dot_product(p1, edgenormal) + ON_EPSILON

            for j, other in enumerate(self.points):
                if j == i:
                    continue
                if dot_product(other, edgenormal) > edgedist:
                    raise ToolError("CheckWinding: non-convex")

    def on_plane_side(self, normal: Sequence[float], dist: float) -> Side:
        """Return which side of the plane the winding is on, or Side.CROSS."""
        front = False
        back = False
        for point in self.points:
            d = dot_product(point, normal) - dist
            if d < -ON_EPSILON:
                if front:
                    return Side.CROSS
                back = True
            elif d > ON_EPSILON:
                if back:
                    return Side.CROSS
                front = True
        if back:
            return Side.BACK
        if front:
            return Side.FRONT
        return Side.ON