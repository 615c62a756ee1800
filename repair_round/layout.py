import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

import pygame

from .geometry import (
    center_distance,
    make_rect,
    rect_from_dict,
    rect_to_dict,
    rects_overlap,
    within_bounds,
)

logger = logging.getLogger(__name__)


@dataclass
class RepairTarget:
    id: int
    rect: pygame.Rect
    fixed: bool = False
    variant: int = 0

    def to_dict(self):
        data = rect_to_dict(self.rect)
        data.update({"id": self.id, "fixed": self.fixed, "variant": self.variant})
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=int(data["id"]),
            rect=rect_from_dict(data),
            fixed=bool(data.get("fixed", False)),
            variant=int(data.get("variant", 0)),
        )


@dataclass
class Obstacle:
    id: int
    rect: pygame.Rect
    kind: str = "tree"

    def to_dict(self):
        data = rect_to_dict(self.rect)
        data.update({"id": self.id, "kind": self.kind})
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(id=int(data["id"]), rect=rect_from_dict(data), kind=data.get("kind", "tree"))


@dataclass
class Layout:
    house: pygame.Rect
    spawn: pygame.Rect
    map_width: int
    map_height: int
    repair_targets: List[RepairTarget] = field(default_factory=list)
    obstacles: List[Obstacle] = field(default_factory=list)

    @property
    def all_fixed(self):
        return all(t.fixed for t in self.repair_targets)

    @property
    def unfixed_targets(self):
        return [t for t in self.repair_targets if not t.fixed]

    def target_by_id(self, target_id) -> Optional[RepairTarget]:
        for target in self.repair_targets:
            if target.id == target_id:
                return target
        return None

    def to_dict(self):
        return {
            "house": rect_to_dict(self.house),
            "spawn": rect_to_dict(self.spawn),
            "map_width": self.map_width,
            "map_height": self.map_height,
            "repair_targets": [t.to_dict() for t in self.repair_targets],
            "obstacles": [o.to_dict() for o in self.obstacles],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            house=rect_from_dict(data["house"]),
            spawn=rect_from_dict(data["spawn"]),
            map_width=int(data["map_width"]),
            map_height=int(data["map_height"]),
            repair_targets=[RepairTarget.from_dict(t) for t in data.get("repair_targets", [])],
            obstacles=[Obstacle.from_dict(o) for o in data.get("obstacles", [])],
        )


class LayoutGenerator:
    """
    Places the house, repair targets and decorative trees by bounded
    rejection sampling. Crowded maps lose targets or trees; generation
    itself never fails.
    """

    # Player spawn
    PLAYER_WIDTH, PLAYER_HEIGHT = 64, 96
    SPAWN_OFFSET = 50
    SPAWN_BUFFER = 150

    # House
    HOUSE_WIDTH, HOUSE_HEIGHT = 280, 240
    HOUSE_SPAWN_PADDING = 80
    HOUSE_ATTEMPTS = 50

    # Repair targets
    TARGET_SIZE = 80
    TARGET_MIN_DIST, TARGET_MAX_DIST = 140, 300
    TARGET_PADDING = 50
    TARGET_GAP = 40
    TARGET_ATTEMPTS = 100
    NUM_VARIANTS = 4

    # Trees
    OBSTACLE_COUNT_RANGE = (12, 19)
    OBSTACLE_SIZE_RANGE = (80, 140)
    OBSTACLE_PADDING = 200
    OBSTACLE_GAP = 20
    OBSTACLE_ATTEMPTS = 100

    def __init__(self, np_random, map_width=1920, map_height=1080, margin=150):
        self.np_random = np_random
        self.margin = max(0, int(margin))
        # The house must always fit between the margins
        self.map_width = max(int(map_width), 2 * self.margin + self.HOUSE_WIDTH)
        self.map_height = max(int(map_height), 2 * self.margin + self.HOUSE_HEIGHT)

    def spawn_rect(self):
        return make_rect(
            self.margin + self.SPAWN_OFFSET,
            self.map_height / 2 - self.PLAYER_HEIGHT / 2,
            self.PLAYER_WIDTH,
            self.PLAYER_HEIGHT,
        )

    def spawn_buffer(self, spawn):
        return spawn.inflate(2 * self.SPAWN_BUFFER, 2 * self.SPAWN_BUFFER)

    def generate(self, target_count) -> Layout:
        spawn = self.spawn_rect()
        buffer = self.spawn_buffer(spawn)

        house = self._place_house(buffer)
        targets = self._place_targets(int(target_count), buffer, house)
        obstacles = self._place_obstacles(buffer, house, targets)

        if len(targets) < target_count:
            logger.debug("Placed %d of %d repair targets", len(targets), target_count)

        return Layout(
            house=house,
            spawn=spawn,
            map_width=self.map_width,
            map_height=self.map_height,
            repair_targets=targets,
            obstacles=obstacles,
        )

    def _in_play_area(self, rect):
        return within_bounds(
            rect,
            self.margin,
            self.margin,
            self.map_width - self.margin,
            self.map_height - self.margin,
        )

    def _place_house(self, buffer):
        house = None
        for _ in range(self.HOUSE_ATTEMPTS):
            house = make_rect(
                self.margin + self.np_random.uniform() * (self.map_width - 2 * self.margin - self.HOUSE_WIDTH),
                self.margin + self.np_random.uniform() * (self.map_height - 2 * self.margin - self.HOUSE_HEIGHT),
                self.HOUSE_WIDTH,
                self.HOUSE_HEIGHT,
            )
            if not rects_overlap(house, buffer, self.HOUSE_SPAWN_PADDING):
                break
        # Best effort: the last sample stands even if it touches the buffer
        return house

    def _place_targets(self, target_count, buffer, house):
        targets = []
        hx, hy = house.center
        half = self.TARGET_SIZE / 2

        for _ in range(target_count):
            for _ in range(self.TARGET_ATTEMPTS):
                angle = self.np_random.uniform(0, 2 * math.pi)
                distance = self.np_random.uniform(self.TARGET_MIN_DIST, self.TARGET_MAX_DIST)
                rect = make_rect(
                    hx + math.cos(angle) * distance - half,
                    hy + math.sin(angle) * distance - half,
                    self.TARGET_SIZE,
                    self.TARGET_SIZE,
                )

                if not self._in_play_area(rect):
                    continue
                if rects_overlap(rect, buffer, self.TARGET_PADDING):
                    continue
                if rects_overlap(rect, house, self.TARGET_PADDING):
                    continue
                if any(center_distance(rect, t.rect) < self.TARGET_SIZE + self.TARGET_GAP for t in targets):
                    continue

                index = len(targets)
                targets.append(RepairTarget(id=index, rect=rect, variant=index % self.NUM_VARIANTS))
                break
        return targets

    def _place_obstacles(self, buffer, house, targets):
        obstacles = []
        low, high = self.OBSTACLE_COUNT_RANGE
        num_obstacles = int(self.np_random.integers(low, high + 1))

        for _ in range(num_obstacles):
            for _ in range(self.OBSTACLE_ATTEMPTS):
                size = int(round(self.np_random.uniform(*self.OBSTACLE_SIZE_RANGE)))
                span_x = max(0, self.map_width - 2 * self.margin - size)
                span_y = max(0, self.map_height - 2 * self.margin - size)
                rect = make_rect(
                    self.margin + int(self.np_random.uniform() * span_x),
                    self.margin + int(self.np_random.uniform() * span_y),
                    size,
                    size,
                )

                if not self._in_play_area(rect):
                    continue
                if rects_overlap(rect, buffer, self.OBSTACLE_PADDING):
                    continue
                if rects_overlap(rect, house, self.OBSTACLE_PADDING):
                    continue
                if any(rects_overlap(rect, t.rect, self.OBSTACLE_PADDING) for t in targets):
                    continue
                if any(rects_overlap(rect, o.rect, self.OBSTACLE_GAP) for o in obstacles):
                    continue

                obstacles.append(Obstacle(id=len(obstacles), rect=rect))
                break
        return obstacles


def generate_layout(target_count, np_random, map_width=1920, map_height=1080, margin=150):
    return LayoutGenerator(np_random, map_width, map_height, margin).generate(target_count)
