"""XYZ text ingestion and height-based colorization."""

from __future__ import annotations

import logging
import math
import re

import numpy as np

from services.pointcloud.models import Bounds, ParseResult

logger = logging.getLogger(__name__)

COMMENT_MARKER = "#"
NUMBER_PATTERN = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
TOKEN_SEPARATOR = re.compile(r"[\s,;]+")

# Typical "123456.78 6543210.98 12.34\n" survey record
BYTES_PER_RECORD_ESTIMATE = 30
MIN_CAPACITY = 16

# Hue runs from blue (0.6) at the lowest point to red (0.0) at the highest
HUE_LOW = 0.6
HUE_HIGH = 0.0
SATURATION = 1.0
LIGHTNESS = 0.5


def _read_record(line: str):
    """Return the first three numeric tokens of a line, or None."""
    values = []
    for token in TOKEN_SEPARATOR.split(line):
        if not token or not NUMBER_PATTERN.fullmatch(token):
            continue
        value = float(token)
        if not math.isfinite(value):
            continue
        values.append(value)
        if len(values) == 3:
            return values
    return None


def _grow(buffer: np.ndarray, capacity: int) -> np.ndarray:
    grown = np.empty((capacity, 3), dtype=buffer.dtype)
    grown[: len(buffer)] = buffer
    return grown


def parse_xyz(text: str) -> ParseResult:
    """Parse "<x> <y> <z>" records into positions, colors and bounds.

    Lines that are blank, start with ``#`` or carry fewer than three
    numeric tokens are skipped. Zero parsed records yields ``count == 0``.
    """
    capacity = max(MIN_CAPACITY, len(text) // BYTES_PER_RECORD_ESTIMATE)
    buffer = np.empty((capacity, 3), dtype=np.float64)
    count = 0

    min_x = min_y = min_z = math.inf
    max_x = max_y = max_z = -math.inf

    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(COMMENT_MARKER):
            continue

        record = _read_record(stripped)
        if record is None:
            continue
        x, y, z = record

        if count == capacity:
            capacity *= 2
            buffer = _grow(buffer, capacity)

        buffer[count, 0] = x
        buffer[count, 1] = y
        buffer[count, 2] = z
        count += 1

        if x < min_x:
            min_x = x
        if x > max_x:
            max_x = x
        if y < min_y:
            min_y = y
        if y > max_y:
            max_y = y
        if z < min_z:
            min_z = z
        if z > max_z:
            max_z = z

    positions = buffer[:count].copy()
    bounds = Bounds(
        min=np.array([min_x, min_y, min_z], dtype=np.float64),
        max=np.array([max_x, max_y, max_z], dtype=np.float64),
    )

    if count == 0:
        logger.warning("No valid points found in input (%d bytes)", len(text))
        return ParseResult(
            positions=positions,
            colors=np.empty((0, 3), dtype=np.float64),
            count=0,
            bounds=bounds,
        )

    colors = height_colors(positions[:, 2], min_z, max_z)

    logger.info("Parsed %d points", count)
    logger.debug(
        "X range %.2f..%.2f, Y range %.2f..%.2f, Z range %.2f..%.2f",
        min_x, max_x, min_y, max_y, min_z, max_z,
    )

    return ParseResult(positions=positions, colors=colors, count=count, bounds=bounds)


def hsl_to_rgb(hue, saturation: float, lightness: float) -> np.ndarray:
    """Vectorized HSL to RGB conversion; hue in [0, 1], returns (N, 3)."""
    hue = np.atleast_1d(np.asarray(hue, dtype=np.float64))

    if lightness <= 0.5:
        q = lightness * (1.0 + saturation)
    else:
        q = lightness + saturation - lightness * saturation
    p = 2.0 * lightness - q

    def channel(t):
        t = np.mod(t, 1.0)
        return np.select(
            [t < 1.0 / 6.0, t < 0.5, t < 2.0 / 3.0],
            [p + (q - p) * 6.0 * t, q, p + (q - p) * (2.0 / 3.0 - t) * 6.0],
            default=p,
        )

    return np.column_stack([
        channel(hue + 1.0 / 3.0),
        channel(hue),
        channel(hue - 1.0 / 3.0),
    ])


def height_colors(z: np.ndarray, min_z: float, max_z: float) -> np.ndarray:
    """Blue-to-red gradient over the elevation range."""
    z_range = (max_z - min_z) or 1.0
    normalized = (np.asarray(z, dtype=np.float64) - min_z) / z_range
    hue = HUE_LOW + (HUE_HIGH - HUE_LOW) * normalized
    return hsl_to_rgb(hue, SATURATION, LIGHTNESS)


def generate_default_cloud(
    base_x: float = 500000.0,
    base_y: float = 6000000.0,
    base_z: float = -70.0,
    size: float = 100.0,
    resolution: int = 100,
) -> ParseResult:
    """Synthetic rolling terrain in UTM-like coordinates for demo loads.

    A ``resolution`` x ``resolution`` grid over ``size`` metres with a
    10 m elevation band starting at ``base_z``.
    """
    step = size / (resolution - 1)
    i, j = np.meshgrid(np.arange(resolution), np.arange(resolution), indexing="ij")
    i = i.ravel().astype(np.float64)
    j = j.ravel().astype(np.float64)

    wave1 = np.sin(i / 10) * 3
    wave2 = np.sin(j / 8) * 2
    wave3 = np.sin(i / 3) * np.cos(j / 4) * 1.5
    wave4 = np.sin((i + j) / 15) * 2.5
    noise = (np.sin(i * 0.5) * np.cos(j * 0.7) + np.sin(i * 1.3) * np.cos(j * 1.1)) * 0.5

    z = np.clip(base_z + 5 + wave1 + wave2 + wave3 + wave4 + noise, base_z, base_z + 10)
    positions = np.column_stack([base_x + i * step, base_y + j * step, z])

    bounds = Bounds.from_points(positions)
    colors = height_colors(z, bounds.min[2], bounds.max[2])

    logger.info("Generated default terrain with %d points", len(positions))
    return ParseResult(positions=positions, colors=colors, count=len(positions), bounds=bounds)
