"""Interactive 3D viewer for puzzle solutions, drawn with matplotlib."""

import matplotlib.pyplot as plt
from mpl_toolkits.mplot3d.art3d import Poly3DCollection
from matplotlib.colors import to_rgba
import numpy as np

from grid import solution_to_grid, idx_to_coord
from palette import piece_colors

CUBE_SIZE = 0.9
EXPLOSION_STEP = 0.25
CONTROL_KEYS = ("left", "right", "w", "s", "r")


def piece_centroids(solution):
    """Mean cube position of each placed piece, keyed by piece index."""
    return {
        placed.piece_index: np.mean(np.array(placed.positions, dtype=np.float64), axis=0)
        for placed in solution
    }


def scene_cubes(solution, dim, explosion=0.0):
    """Returns (center, piece_index) for every filled cell.

    The grid is centered at the origin. With a positive `explosion`, each
    piece moves away from the grid center along the direction of its
    centroid.
    """
    grid = solution_to_grid(solution, dim)
    center_value = (dim - 1) / 2.0
    grid_center = np.full(3, center_value)
    centroids = piece_centroids(solution)

    cubes = []
    for cell, piece_number in enumerate(grid):
        if piece_number == 0:
            continue
        piece_index = int(piece_number) - 1
        base_position = np.array(idx_to_coord(cell, dim), dtype=np.float64) - center_value

        direction = centroids[piece_index] - grid_center
        norm = np.linalg.norm(direction)
        if norm > 0:
            direction = direction / norm
        cubes.append((base_position + direction * explosion * 2.0, piece_index))

    return cubes


def cube_faces(center, size=CUBE_SIZE):
    """The six faces of an axis-aligned cube, four vertices each."""
    cx, cy, cz = center
    d = size / 2.0
    v = np.array([
        [cx - d, cy - d, cz - d],
        [cx + d, cy - d, cz - d],
        [cx + d, cy + d, cz - d],
        [cx - d, cy + d, cz - d],
        [cx - d, cy - d, cz + d],
        [cx + d, cy - d, cz + d],
        [cx + d, cy + d, cz + d],
        [cx - d, cy + d, cz + d],
    ])
    return [
        [v[0], v[1], v[2], v[3]],  # z min
        [v[4], v[5], v[6], v[7]],  # z max
        [v[0], v[1], v[5], v[4]],  # y min
        [v[2], v[3], v[7], v[6]],  # y max
        [v[0], v[3], v[7], v[4]],  # x min
        [v[1], v[2], v[6], v[5]],  # x max
    ]


class SolutionViewer:
    """Steps through a list of solutions with an explode control."""

    def __init__(self, solutions, num_pieces, dim):
        self.solutions = solutions
        self.dim = dim
        self.colors = piece_colors(num_pieces)
        self.index = 0
        self.explosion = 0.0

        self.fig = plt.figure(figsize=(8, 8))
        self.ax = self.fig.add_subplot(111, projection='3d')
        self.fig.canvas.mpl_connect('key_press_event', self.on_key)

    def title(self):
        return (f"Solution {self.index + 1}/{len(self.solutions)} - "
                "[Left/Right] navigate, [W/S] explode, [R] reset")

    def on_key(self, event):
        if event.key == 'right':
            self.index = (self.index + 1) % len(self.solutions)
        elif event.key == 'left':
            self.index = (self.index - 1) % len(self.solutions)
        elif event.key == 'w':
            self.explosion += EXPLOSION_STEP
        elif event.key == 's':
            self.explosion = max(0.0, self.explosion - EXPLOSION_STEP)
        elif event.key == 'r':
            self.explosion = 0.0
        else:
            return
        self.draw()

    def draw(self):
        ax = self.ax
        ax.clear()

        for center, piece_index in scene_cubes(self.solutions[self.index], self.dim, self.explosion):
            ax.add_collection3d(Poly3DCollection(
                cube_faces(center),
                facecolors=to_rgba(self.colors[piece_index], 0.9),
                edgecolors='black',
                linewidths=0.6,
            ))

        limit = self.dim / 2.0 + 2.0 * self.explosion + 0.5
        ax.set_xlim(-limit, limit)
        ax.set_ylim(-limit, limit)
        ax.set_zlim(-limit, limit)
        ax.set_box_aspect((1, 1, 1))
        ax.set_axis_off()
        ax.set_title(self.title())
        self.fig.canvas.draw_idle()


def display(solutions, puzzle):
    """Opens the viewer on `solutions` and blocks until the window closes."""
    if not solutions:
        print("No solutions to display")
        return

    # free the control keys from matplotlib's default navigation bindings
    for keymap in ('keymap.back', 'keymap.forward', 'keymap.save', 'keymap.home'):
        plt.rcParams[keymap] = [k for k in plt.rcParams[keymap] if k not in CONTROL_KEYS]

    viewer = SolutionViewer(solutions, puzzle.piece_count, puzzle.dimension)
    viewer.draw()
    plt.show()
