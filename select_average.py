"""
Area-average accent selection.

Greedy pick over block-averaged samples in descending vibrancy order. A sample
becomes an accent only if it stays visually apart from the background and
foreground candidates and from every accent already picked.
"""

from color_metrics import Color, manhattan_distance
from sample_colors import SampleSet


LUMINANCE_GAP = 0.15  # Minimum luminance difference from background and foreground
MIN_ACCENT_DISTANCE = 50  # Minimum Manhattan RGB distance between accents


def is_distinct(candidate: Color, samples: SampleSet, picked: list[Color]) -> bool:
    """Check the luminance gap to bg/fg and the RGB gap to picked accents."""
    if abs(candidate.luminance - samples.darkest.luminance) < LUMINANCE_GAP:
        return False
    if abs(candidate.luminance - samples.lightest.luminance) < LUMINANCE_GAP:
        return False
    return all(manhattan_distance(candidate, other) >= MIN_ACCENT_DISTANCE for other in picked)


def select_average(samples: SampleSet, accent_count: int) -> list[Color]:
    """
    Pick up to accent_count distinct accents.

    Args:
        samples: Block-averaged samples with darkest/lightest candidates
        accent_count: Maximum number of accents to return

    Returns:
        Accents in pick order. May be shorter than accent_count, or empty.
    """
    ordered = sorted(samples.colors, key=lambda c: -c.vibrancy)

    picked: list[Color] = []
    for candidate in ordered:
        if len(picked) >= accent_count:
            break
        if is_distinct(candidate, samples, picked):
            picked.append(candidate)

    return picked
