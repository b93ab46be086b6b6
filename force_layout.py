"""Iterative force-directed layout.

The simulation is a plain object advanced one tick at a time by ``step()``;
the caller decides when (and whether) to call it again. Dropping a stale run
is simply not stepping it any more.

Forces per tick, scaled by the current energy ``alpha``:
  * links: springs of fixed length and stiffness between parent and child
  * charge: every pair repels with strength / distance
  * collision: footprints (radius per node) may not overlap
  * centering: the mean position is moved onto the viewport center

Nodes start with a placeholder radius and an estimated label size. Once the
rendering surface reports real label sizes, ``apply_label_sizes`` swaps the
radius to the half-diagonal plus padding and reheats the simulation; nodes the
surface did not report keep the estimate.
"""
import logging
import math
import random
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from layout import build_layout_nodes
from models import LayoutNode, MindNode, tree_links
from text_wrap import MeasureFn, measure_block, wrap_label

logger = logging.getLogger(__name__)

_INITIAL_RADIUS = 10.0
_INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))


@dataclass(frozen=True)
class ForceConfig:
    link_distance: float = 120.0
    link_strength: float = 0.7
    charge_strength: float = -300.0
    collide_strength: float = 0.7
    collide_padding: float = 6.0
    placeholder_radius: float = 30.0
    alpha_start: float = 1.0
    alpha_min: float = 0.001
    alpha_decay: float = 1 - 0.001 ** (1 / 300)
    velocity_decay: float = 0.4
    max_iterations: int = 400
    text_max_width: float = 150.0
    font_size: int = 10
    seed: int = 1


def measured_radius(width: float, height: float, padding: float) -> float:
    return math.hypot(width, height) / 2 + padding


class ForceSimulation:
    def __init__(
        self,
        nodes: Dict[str, LayoutNode],
        links: List[Tuple[str, str]],
        center: Tuple[float, float],
        config: Optional[ForceConfig] = None,
    ) -> None:
        self.config = config or ForceConfig()
        self.nodes = nodes
        self.links = [(nodes[a], nodes[b]) for a, b in links if a in nodes and b in nodes]
        self.center = center
        self.alpha = self.config.alpha_start
        self.iterations = 0
        self.measured = False
        self._order = list(nodes.values())
        self._random = random.Random(self.config.seed)
        self._radius: Callable[[LayoutNode], float] = lambda _item: self.config.placeholder_radius
        self._link_bias: List[float] = []
        degree: Dict[str, int] = {key: 0 for key in nodes}
        for source, target in self.links:
            degree[source.id] += 1
            degree[target.id] += 1
        for source, target in self.links:
            self._link_bias.append(degree[source.id] / (degree[source.id] + degree[target.id]))
        self._seed_positions()
        self._apply_radius()

    def _seed_positions(self) -> None:
        cx, cy = self.center
        for index, item in enumerate(self._order):
            radius = _INITIAL_RADIUS * math.sqrt(0.5 + index)
            angle = index * _INITIAL_ANGLE
            item.x = cx + radius * math.cos(angle)
            item.y = cy + radius * math.sin(angle)
            item.vx = 0.0
            item.vy = 0.0

    def _apply_radius(self) -> None:
        for item in self._order:
            item.radius = float(self._radius(item))

    def _jiggle(self) -> float:
        return (self._random.random() - 0.5) * 1e-6

    def set_radius(self, radius: Callable[[LayoutNode], float]) -> None:
        self._radius = radius
        self._apply_radius()

    def restart(self, alpha: Optional[float] = None) -> None:
        self.alpha = self.config.alpha_start if alpha is None else alpha
        self.iterations = 0

    def apply_label_sizes(self, sizes: Dict[str, Tuple[float, float]]) -> None:
        """Adopt rendered label sizes as collision footprints and reheat."""
        for key, (width, height) in sizes.items():
            item = self.nodes.get(key)
            if item is not None:
                item.width = float(width)
                item.height = float(height)
        padding = self.config.collide_padding
        self.set_radius(lambda item: measured_radius(item.width, item.height, padding))
        self.measured = True
        self.restart()
        logger.debug("Collision radii updated for %d nodes; simulation restarted", len(sizes))

    @property
    def is_settled(self) -> bool:
        return self.alpha < self.config.alpha_min or self.iterations >= self.config.max_iterations

    def step(self) -> bool:
        """Advance one tick. Returns False once the simulation has settled."""
        if self.is_settled:
            return False
        config = self.config
        self.alpha += (0.0 - self.alpha) * config.alpha_decay
        self._force_links()
        self._force_charge()
        self._force_collide()
        keep = 1 - config.velocity_decay
        for item in self._order:
            item.vx *= keep
            item.vy *= keep
            item.x += item.vx
            item.y += item.vy
        self._force_center()
        self.iterations += 1
        return True

    def steps(self) -> Iterator[Dict[str, Tuple[float, float]]]:
        while self.step():
            yield self.snapshot()

    def run(self) -> Dict[str, Tuple[float, float]]:
        for _snapshot in self.steps():
            pass
        return self.snapshot()

    def snapshot(self) -> Dict[str, Tuple[float, float]]:
        return {item.id: (item.x, item.y) for item in self._order}

    def _force_links(self) -> None:
        config = self.config
        for (source, target), bias in zip(self.links, self._link_bias):
            dx = target.x + target.vx - source.x - source.vx
            dy = target.y + target.vy - source.y - source.vy
            if dx == 0:
                dx = self._jiggle()
            if dy == 0:
                dy = self._jiggle()
            distance = math.hypot(dx, dy)
            pull = (distance - config.link_distance) / distance * self.alpha * config.link_strength
            dx *= pull
            dy *= pull
            target.vx -= dx * bias
            target.vy -= dy * bias
            source.vx += dx * (1 - bias)
            source.vy += dy * (1 - bias)

    def _force_charge(self) -> None:
        strength = self.config.charge_strength * self.alpha
        order = self._order
        for i, a in enumerate(order):
            for b in order[i + 1:]:
                dx = b.x - a.x
                dy = b.y - a.y
                if dx == 0:
                    dx = self._jiggle()
                if dy == 0:
                    dy = self._jiggle()
                dist2 = max(dx * dx + dy * dy, 1.0)
                weight = strength / dist2
                a.vx += dx * weight
                a.vy += dy * weight
                b.vx -= dx * weight
                b.vy -= dy * weight

    def _force_collide(self) -> None:
        strength = self.config.collide_strength
        order = self._order
        for i, a in enumerate(order):
            for b in order[i + 1:]:
                reach = a.radius + b.radius
                dx = (a.x + a.vx) - (b.x + b.vx)
                dy = (a.y + a.vy) - (b.y + b.vy)
                dist2 = dx * dx + dy * dy
                if dist2 >= reach * reach:
                    continue
                if dx == 0:
                    dx = self._jiggle()
                    dist2 += dx * dx
                if dy == 0:
                    dy = self._jiggle()
                    dist2 += dy * dy
                distance = math.sqrt(dist2)
                push = (reach - distance) / distance * strength
                dx *= push
                dy *= push
                ra2 = a.radius * a.radius
                rb2 = b.radius * b.radius
                share = rb2 / (ra2 + rb2) if ra2 + rb2 else 0.5
                a.vx += dx * share
                a.vy += dy * share
                b.vx -= dx * (1 - share)
                b.vy -= dy * (1 - share)

    def _force_center(self) -> None:
        count = len(self._order)
        if not count:
            return
        mean_x = sum(item.x for item in self._order) / count
        mean_y = sum(item.y for item in self._order) / count
        shift_x = self.center[0] - mean_x
        shift_y = self.center[1] - mean_y
        for item in self._order:
            item.x += shift_x
            item.y += shift_y


def layout_force(
    tree: MindNode,
    measure: Optional[MeasureFn] = None,
    viewport: Tuple[float, float] = (800.0, 600.0),
    config: Optional[ForceConfig] = None,
) -> ForceSimulation:
    """Build a simulation for ``tree``; ``simulation.nodes`` is the id -> LayoutNode map."""
    config = config or ForceConfig()
    nodes = build_layout_nodes(tree)
    for item in nodes.values():
        item.lines = wrap_label(item.name, config.text_max_width, measure, config.font_size)
        # Estimated size; rendered label sizes refine it in apply_label_sizes.
        item.width, item.height = measure_block(item.lines, measure, config.font_size)
    center = (viewport[0] / 2, viewport[1] / 2)
    simulation = ForceSimulation(nodes, tree_links(tree), center, config)
    logger.debug("Force simulation created for %d nodes", len(nodes))
    return simulation
