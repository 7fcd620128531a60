"""
Quadtree implementation for spatial partitioning.
Used by the reference world to answer radius queries (food, creatures, obstacles).
"""

from dataclasses import dataclass
from typing import Generic, Iterable, List, Optional, TypeVar

T = TypeVar('T')


@dataclass
class Rect:
    x: float
    y: float
    w: float
    h: float

    def contains(self, point: 'Point') -> bool:
        return (self.x <= point.x < self.x + self.w and
                self.y <= point.y < self.y + self.h)

    def intersects(self, other: 'Rect') -> bool:
        return not (other.x >= self.x + self.w or
                    other.x + other.w <= self.x or
                    other.y >= self.y + self.h or
                    other.y + other.h <= self.y)


@dataclass
class Point(Generic[T]):
    x: float
    y: float
    data: T


class QuadTree(Generic[T]):
    def __init__(self, boundary: Rect, capacity: int = 8, max_depth: int = 10, depth: int = 0):
        self.boundary = boundary
        self.capacity = capacity
        self.max_depth = max_depth
        self.depth = depth
        self.points: List[Point[T]] = []
        self.divided = False

        # Children
        self.northwest: Optional[QuadTree] = None
        self.northeast: Optional[QuadTree] = None
        self.southwest: Optional[QuadTree] = None
        self.southeast: Optional[QuadTree] = None

    @classmethod
    def covering(cls, points: Iterable[Point[T]], capacity: int = 8,
                 slack: float = 10.0, minimum: Optional[Rect] = None) -> 'QuadTree[T]':
        """
        Build a tree whose boundary covers every given point.

        Args:
            points: Points to insert
            capacity: Points per node before subdividing
            slack: Padding added around the extent of the points
            minimum: Area the boundary must cover even if empty

        Returns:
            Populated QuadTree
        """
        points = list(points)
        xs = [p.x for p in points]
        ys = [p.y for p in points]
        if minimum is not None:
            xs += [minimum.x, minimum.x + minimum.w]
            ys += [minimum.y, minimum.y + minimum.h]
        if not xs:
            xs, ys = [0.0], [0.0]

        x0, y0 = min(xs) - slack, min(ys) - slack
        tree = cls(Rect(x0, y0, max(xs) + slack - x0, max(ys) + slack - y0), capacity)
        for p in points:
            tree.insert(p)
        return tree

    def insert(self, point: Point[T]) -> bool:
        if not self.boundary.contains(point):
            return False

        # Coincident points would otherwise subdivide forever
        if len(self.points) < self.capacity or self.depth >= self.max_depth:
            self.points.append(point)
            return True

        if not self.divided:
            self.subdivide()

        return (self.northwest.insert(point) or
                self.northeast.insert(point) or
                self.southwest.insert(point) or
                self.southeast.insert(point))

    def subdivide(self):
        x = self.boundary.x
        y = self.boundary.y
        w = self.boundary.w / 2
        h = self.boundary.h / 2
        child_depth = self.depth + 1

        self.northwest = QuadTree(Rect(x, y, w, h), self.capacity, self.max_depth, child_depth)
        self.northeast = QuadTree(Rect(x + w, y, w, h), self.capacity, self.max_depth, child_depth)
        self.southwest = QuadTree(Rect(x, y + h, w, h), self.capacity, self.max_depth, child_depth)
        self.southeast = QuadTree(Rect(x + w, y + h, w, h), self.capacity, self.max_depth, child_depth)

        self.divided = True

    def query_points(self, range_rect: Rect, found: Optional[List[Point[T]]] = None) -> List[Point[T]]:
        """Query returning Point objects with coordinates."""
        if found is None:
            found = []

        if not self.boundary.intersects(range_rect):
            return found

        for p in self.points:
            if range_rect.contains(p):
                found.append(p)

        if self.divided:
            self.northwest.query_points(range_rect, found)
            self.northeast.query_points(range_rect, found)
            self.southwest.query_points(range_rect, found)
            self.southeast.query_points(range_rect, found)

        return found

    def query(self, range_rect: Rect) -> List[T]:
        return [p.data for p in self.query_points(range_rect)]

    def query_radius(self, x: float, y: float, radius: float) -> List[T]:
        """Find payloads within a circular radius (inclusive)."""
        # Padded bounding square first (Rect is half-open), then exact distance
        half = radius + 1.0
        candidates = self.query_points(Rect(x - half, y - half, half * 2, half * 2))

        r_sq = radius * radius
        return [p.data for p in candidates
                if (p.x - x) ** 2 + (p.y - y) ** 2 <= r_sq]

    def __len__(self) -> int:
        count = len(self.points)
        if self.divided:
            count += (len(self.northwest) + len(self.northeast) +
                      len(self.southwest) + len(self.southeast))
        return count

    def clear(self):
        self.points = []
        self.divided = False
        self.northwest = None
        self.northeast = None
        self.southwest = None
        self.southeast = None
