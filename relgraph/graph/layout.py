"""Force-directed layout simulation.

The simulation follows the d3-force model: every tick the "temperature"
alpha decays toward ``alpha_target``, each force adds to node velocities in
proportion to alpha, and velocities are damped and integrated into positions.
The layout is considered settled once alpha drops below ``alpha_min``.

Positions and velocities are kept per node identifier, so a rebuilt graph
starts from where the previous one left off and only new nodes are seeded.
"""

from typing import Callable

import numpy as np
from loguru import logger
from numpy.typing import NDArray

from relgraph.config import GraphOptions
from relgraph.domain.graph import GraphModel

TickCallback = Callable[[dict[str, tuple[float, float]]], None]

ALPHA_MIN = 0.001
ALPHA_DECAY = 1 - ALPHA_MIN ** (1 / 300)
VELOCITY_DECAY = 0.4
RESTART_ALPHA = 0.8
DRAG_ALPHA_TARGET = 0.3
RESIZE_ALPHA = 0.3
COLLIDE_RADIUS = 40.0
SEED_SPREAD = 100.0
# Squared distance below which repulsion stops growing
DISTANCE_MIN2 = 1.0
# Rows per block when computing pairwise forces
FORCE_CHUNK_ROWS = 256


class ForceLayout:
    """Iterative force simulation over a graph model.

    The caller drives it: ``frame()`` once per display frame, or ``tick()``
    and ``run()`` directly. Nothing runs in the background.
    """

    def __init__(
        self,
        options: GraphOptions,
        *,
        width: float = 800,
        height: float = 600,
        collide_radius: float = COLLIDE_RADIUS,
        seed: int | None = None,
        chunk_rows: int = FORCE_CHUNK_ROWS,
    ) -> None:
        """Initialize an empty simulation.

        Args:
            options: Graph options providing link distance and node repulsion
            width: Viewport width, the layout is centred in the viewport
            height: Viewport height
            collide_radius: Minimum separation radius per node
            seed: Seed for the placement of new nodes
            chunk_rows: Rows of the pairwise distance matrix held in memory at once
        """
        self.options = options
        self.width = width
        self.height = height
        self.collide_radius = collide_radius
        self.chunk_rows = max(1, chunk_rows)

        self.alpha = 1.0
        self.alpha_min = ALPHA_MIN
        self.alpha_decay = ALPHA_DECAY
        self.alpha_target = 0.0
        self.velocity_decay = VELOCITY_DECAY

        self._rng = np.random.default_rng(seed)
        self._ids: list[str] = []
        self._index: dict[str, int] = {}
        self._pos: NDArray[np.float64] = np.zeros((0, 2))
        self._vel: NDArray[np.float64] = np.zeros((0, 2))
        self._pinned: dict[str, tuple[float, float]] = {}
        self._link_src: NDArray[np.int64] = np.zeros(0, dtype=np.int64)
        self._link_tgt: NDArray[np.int64] = np.zeros(0, dtype=np.int64)
        self._link_strength: NDArray[np.float64] = np.zeros(0)
        self._link_bias: NDArray[np.float64] = np.zeros(0)
        self._connectivity: set[tuple[str, str]] = set()

        self._callbacks: list[TickCallback] = []
        self._running = True
        self._destroyed = False

    @property
    def center(self) -> tuple[float, float]:
        return self.width / 2, self.height / 2

    @property
    def node_ids(self) -> list[str]:
        return list(self._ids)

    @property
    def settled(self) -> bool:
        return self.alpha < self.alpha_min

    @property
    def running(self) -> bool:
        return self._running and not self._destroyed

    def set_graph(self, model: GraphModel) -> bool:
        """Replace the simulated graph, keeping the state of known nodes.

        Nodes present before keep their position and velocity. New nodes are
        seeded near the viewport centre. The simulation is reheated when the
        node set or the connectivity changed.

        Args:
            model: Graph model to lay out

        Returns:
            True if the graph changed shape and the simulation was restarted
        """
        if self._destroyed:
            return False

        ids = model.node_ids()
        connectivity = model.connectivity()
        changed = ids != self._ids or connectivity != self._connectivity

        pos = np.empty((len(ids), 2))
        vel = np.zeros((len(ids), 2))
        cx, cy = self.center
        for i, node_id in enumerate(ids):
            old = self._index.get(node_id)
            if old is not None:
                pos[i] = self._pos[old]
                vel[i] = self._vel[old]
            else:
                pos[i] = (
                    cx + (self._rng.random() - 0.5) * SEED_SPREAD,
                    cy + (self._rng.random() - 0.5) * SEED_SPREAD,
                )

        self._ids = ids
        self._index = {node_id: i for i, node_id in enumerate(ids)}
        self._pos, self._vel = pos, vel
        had_pins = bool(self._pinned)
        self._pinned = {k: v for k, v in self._pinned.items() if k in self._index}
        if had_pins and not self._pinned:
            self.alpha_target = 0.0
        self._connectivity = connectivity
        self._build_links(model)

        if changed:
            logger.debug(f"Layout graph changed: {len(ids)} nodes, {len(model.edges)} edges")
            self.restart(RESTART_ALPHA)
        return changed

    def update_options(self, options: GraphOptions) -> None:
        """Apply new physics options and reheat if they affect the forces."""
        physics_changed = (
            options.link_distance != self.options.link_distance
            or options.node_repulsion != self.options.node_repulsion
        )
        self.options = options
        if physics_changed:
            self.restart(RESTART_ALPHA)

    def _build_links(self, model: GraphModel) -> None:
        src, tgt = [], []
        for edge in model.edges:
            if edge.source == edge.target:
                continue
            src.append(self._index[edge.source])
            tgt.append(self._index[edge.target])

        self._link_src = np.array(src, dtype=np.int64)
        self._link_tgt = np.array(tgt, dtype=np.int64)
        if not src:
            self._link_strength = np.zeros(0)
            self._link_bias = np.zeros(0)
            return

        count = np.bincount(
            np.concatenate([self._link_src, self._link_tgt]), minlength=len(self._ids)
        ).astype(np.float64)
        count_src, count_tgt = count[self._link_src], count[self._link_tgt]
        self._link_strength = 1.0 / np.minimum(count_src, count_tgt)
        self._link_bias = count_src / (count_src + count_tgt)

    def restart(self, alpha: float | None = None) -> None:
        """Resume the simulation, optionally reheating it to ``alpha``."""
        if self._destroyed:
            return
        if alpha is not None:
            self.alpha = alpha
        self._running = True

    def stop(self) -> None:
        """Pause the simulation. Positions are kept."""
        self._running = False

    def destroy(self) -> None:
        """Stop for good and drop every tick subscription."""
        self._running = False
        self._destroyed = True
        self._callbacks.clear()

    def on_tick(self, callback: TickCallback) -> Callable[[], None]:
        """Subscribe to position updates after every tick.

        Returns:
            Function that removes the subscription
        """
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def frame(self) -> bool:
        """Advance one tick if the simulation is running and not settled.

        Intended to be called once per display frame. The simulation stops
        itself when it settles; ``restart`` resumes it.

        Returns:
            True if a tick was performed
        """
        if not self.running:
            return False
        if self.settled and self.alpha_target < self.alpha_min:
            self._running = False
            return False
        self.tick()
        return True

    def run(self, max_ticks: int = 300) -> int:
        """Tick until settled or ``max_ticks`` is reached.

        Returns:
            Number of ticks performed
        """
        ticks = 0
        while ticks < max_ticks and self.frame():
            ticks += 1
        return ticks

    def tick(self, steps: int = 1) -> None:
        """Advance the simulation unconditionally by ``steps`` ticks."""
        if self._destroyed:
            return
        for _ in range(steps):
            self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay
            if len(self._ids):
                self._apply_links()
                self._apply_repulsion()
                self._apply_centering()
                self._apply_collision()
                self._integrate()
        self._emit()

    def _apply_links(self) -> None:
        if not len(self._link_src):
            return
        s, t = self._link_src, self._link_tgt
        delta = (self._pos[t] + self._vel[t]) - (self._pos[s] + self._vel[s])
        dist = np.hypot(delta[:, 0], delta[:, 1])
        dist = np.where(dist == 0, 1e-6, dist)
        k = (dist - self.options.link_distance) / dist * self.alpha * self._link_strength
        delta *= k[:, None]
        np.add.at(self._vel, t, -delta * self._link_bias[:, None])
        np.add.at(self._vel, s, delta * (1 - self._link_bias)[:, None])

    def _apply_repulsion(self) -> None:
        n = len(self._ids)
        if n < 2 or self.options.node_repulsion == 0:
            return
        strength = -self.options.node_repulsion * self.alpha
        columns = np.arange(n)
        for start in range(0, n, self.chunk_rows):
            rows = columns[start : start + self.chunk_rows]
            diff = self._pos[None, :, :] - self._pos[rows, None, :]
            l2 = np.einsum("ijk,ijk->ij", diff, diff)
            off_diagonal = columns[None, :] != rows[:, None]

            coincident = (l2 == 0) & off_diagonal
            if coincident.any():
                diff[coincident] = self._jiggle(int(coincident.sum()))
                l2 = np.einsum("ijk,ijk->ij", diff, diff)

            l2 = np.where(l2 < DISTANCE_MIN2, np.sqrt(DISTANCE_MIN2 * l2), l2)
            weight = np.zeros_like(l2)
            weight[off_diagonal] = strength / l2[off_diagonal]
            self._vel[rows] += np.einsum("ijk,ij->ik", diff, weight)

    def _apply_centering(self) -> None:
        shift = self._pos.mean(axis=0) - np.array(self.center)
        self._pos -= shift

    def _apply_collision(self) -> None:
        n = len(self._ids)
        if n < 2 or self.collide_radius <= 0:
            return
        predicted = self._pos + self._vel
        reach = 2 * self.collide_radius
        for start in range(0, n, self.chunk_rows):
            stop = min(start + self.chunk_rows, n)
            # Only pairs (i, j) with j > i, against the remaining columns
            diff = predicted[start:stop, None, :] - predicted[None, start:, :]
            l2 = np.einsum("ijk,ijk->ij", diff, diff)
            upper = np.arange(start, n)[None, :] > np.arange(start, stop)[:, None]
            bi, bj = np.nonzero((l2 < reach * reach) & upper)
            if not len(bi):
                continue

            delta = diff[bi, bj]
            dist = np.sqrt(l2[bi, bj])
            zero = dist == 0
            if zero.any():
                delta[zero] = self._jiggle(int(zero.sum()))
                dist[zero] = np.hypot(delta[zero, 0], delta[zero, 1])
            push = delta * ((reach - dist) / dist)[:, None] * 0.5
            np.add.at(self._vel, bi + start, push)
            np.add.at(self._vel, bj + start, -push)

    def _integrate(self) -> None:
        self._vel *= 1 - self.velocity_decay
        self._pos += self._vel
        for node_id, (x, y) in self._pinned.items():
            i = self._index[node_id]
            self._pos[i] = (x, y)
            self._vel[i] = 0.0

    def _jiggle(self, count: int) -> NDArray[np.float64]:
        return (self._rng.random((count, 2)) - 0.5) * 1e-6

    def _emit(self) -> None:
        if not self._callbacks:
            return
        snapshot = self.positions()
        for callback in list(self._callbacks):
            callback(snapshot)

    def positions(self) -> dict[str, tuple[float, float]]:
        """Current position of every node."""
        return {
            node_id: (float(self._pos[i, 0]), float(self._pos[i, 1]))
            for node_id, i in self._index.items()
        }

    def position(self, node_id: str) -> tuple[float, float]:
        i = self._index[node_id]
        return float(self._pos[i, 0]), float(self._pos[i, 1])

    def velocity(self, node_id: str) -> tuple[float, float]:
        i = self._index[node_id]
        return float(self._vel[i, 0]), float(self._vel[i, 1])

    def is_pinned(self, node_id: str) -> bool:
        return node_id in self._pinned

    def drag_start(self, node_id: str) -> None:
        """Pin a node where it is and keep the simulation warm while dragging."""
        self._pinned[node_id] = self.position(node_id)
        self.alpha_target = DRAG_ALPHA_TARGET
        self.restart()

    def drag_to(self, node_id: str, x: float, y: float) -> None:
        """Move the pin of a dragged node."""
        if node_id not in self._index:
            raise KeyError(f"Node {node_id} not in layout")
        self._pinned[node_id] = (x, y)
        i = self._index[node_id]
        self._pos[i] = (x, y)
        self._vel[i] = 0.0

    def drag_end(self, node_id: str) -> None:
        """Release the pin and let the simulation cool down once nothing is held.

        The node may already be gone if the graph changed mid-drag.
        """
        self._pinned.pop(node_id, None)
        if not self._pinned:
            self.alpha_target = 0.0

    def resize(self, width: float, height: float) -> None:
        """Recentre on a new viewport size."""
        self.width, self.height = width, height
        self.restart(RESIZE_ALPHA)
