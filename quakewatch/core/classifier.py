"""Magnitude classification - Pure functions.

Maps a magnitude onto two descriptive scales. Each band is closed on the
left and open on the right; the last band has no upper bound.
"""

# (upper bound exclusive, label), ascending
INTENSITY_BANDS: tuple[tuple[float, str], ...] = (
    (3.0, "Micro"),
    (4.0, "Minor"),
    (5.0, "Light"),
    (6.0, "Moderate"),
    (7.0, "Strong"),
    (8.0, "Major"),
)
INTENSITY_MAX = "Great"

MERCALLI_BANDS: tuple[tuple[float, str], ...] = (
    (3.0, "I-II"),
    (4.0, "III-IV"),
    (5.0, "V-VI"),
    (6.0, "VII-VIII"),
    (7.0, "IX-X"),
)
MERCALLI_MAX = "XI-XII"


def _classify(
    magnitude: float,
    bands: tuple[tuple[float, str], ...],
    top: str,
) -> str:
    for upper, label in bands:
        if magnitude < upper:
            return label
    return top


def get_intensity(magnitude: float) -> str:
    """Get a human-readable intensity label (Micro ... Great).

    Pure function.
    """
    return _classify(magnitude, INTENSITY_BANDS, INTENSITY_MAX)


def get_mercalli_band(magnitude: float) -> str:
    """Get the approximate Modified Mercalli band (I-II ... XI-XII).

    Pure function.
    """
    return _classify(magnitude, MERCALLI_BANDS, MERCALLI_MAX)
