"""
K-means accent selection.

Clusters point samples into CENTER_COUNT centers with a fixed number of Lloyd
iterations, then emits the first accent_count centers in index order.
Sixteen centers are always computed, whatever the requested count.
"""

import numpy as np
from scipy.spatial.distance import cdist

from color_metrics import Color
from sample_colors import SampleSet, SAMPLE_COUNT


CENTER_COUNT = 16
ITERATIONS = 10
SEED_STRIDE = SAMPLE_COUNT // CENTER_COUNT  # 64 for a full sample set


def sort_by_vibrancy(samples: SampleSet) -> np.ndarray:
    """Sample RGB rows ordered by descending vibrancy."""
    rgb = samples.rgb_array()
    vibrancy = rgb.max(axis=1) - rgb.min(axis=1)
    return rgb[np.argsort(-vibrancy, kind='stable')]


def seed_centers(ordered: np.ndarray) -> np.ndarray:
    """
    Take evenly spaced samples from the vibrancy-sorted sequence.

    With a full set this is every SEED_STRIDE-th sample; smaller sets use
    the proportional stride (i * n) // CENTER_COUNT, so some seeds may repeat.
    """
    n = len(ordered)
    indices = [(i * n) // CENTER_COUNT for i in range(CENTER_COUNT)]
    return ordered[indices].copy()


def assign(points: np.ndarray, centers: np.ndarray) -> np.ndarray:
    """Index of the nearest center for every point (ties go to the lowest index)."""
    distances = cdist(points.astype(np.float64), centers.astype(np.float64))
    return distances.argmin(axis=1)


def update_centers(points: np.ndarray, labels: np.ndarray, centers: np.ndarray) -> np.ndarray:
    """Truncated channel mean per cluster; empty clusters keep their center."""
    updated = centers.copy()
    for k in range(len(centers)):
        members = points[labels == k]
        if len(members) > 0:
            updated[k] = members.sum(axis=0) // len(members)
    return updated


def run_kmeans(points: np.ndarray, iterations: int = ITERATIONS) -> np.ndarray:
    """
    Run fixed-iteration k-means over vibrancy-sorted points.

    Args:
        points: (n, 3) integer RGB rows, already sorted by descending vibrancy
        iterations: Number of Lloyd passes (no convergence check)

    Returns:
        (CENTER_COUNT, 3) integer array of final centers
    """
    if len(points) == 0:
        raise ValueError("Cannot cluster an empty sample set")

    centers = seed_centers(points)
    for _ in range(iterations):
        labels = assign(points, centers)
        centers = update_centers(points, labels, centers)
    return centers


def select_kmeans(samples: SampleSet, accent_count: int) -> list[Color]:
    """Return the first accent_count k-means centers as colors."""
    centers = run_kmeans(sort_by_vibrancy(samples))
    return [Color.from_rgb(*row) for row in centers[:accent_count].tolist()]
