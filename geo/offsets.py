"""Deterministic coordinate offsets derived from a location string."""
from processor.models import Coordinates

MAX_OFFSET_DEGREES = 0.004
SLICE_BITS = 10
SLICE_MASK = (1 << SLICE_BITS) - 1


def string_hash(text: str) -> int:
    """
    Classic polynomial string hash (h = h * 31 + unit), wrapped to 32 bits.

    Iterates UTF-16 code units so the value matches the browser build
    for any input, including characters outside the BMP.

    Returns:
        Unsigned 32-bit hash
    """
    value = 0
    encoded = text.encode('utf-16-le')
    for index in range(0, len(encoded), 2):
        unit = encoded[index] | (encoded[index + 1] << 8)
        value = (value * 31 + unit) & 0xFFFFFFFF
    return value


def _slice_to_offset(bits: int) -> float:
    return (bits / SLICE_MASK - 0.5) * 2 * MAX_OFFSET_DEGREES


def hash_offset(text: str) -> Coordinates:
    """Offset in [-0.004, 0.004] degrees per axis, stable for a given string."""
    value = string_hash(text)
    lat_bits = value & SLICE_MASK
    lng_bits = (value >> SLICE_BITS) & SLICE_MASK
    return Coordinates(lat=_slice_to_offset(lat_bits), lng=_slice_to_offset(lng_bits))


def offset_from(base: Coordinates, text: str) -> Coordinates:
    """Shift ``base`` by the deterministic offset of ``text``."""
    offset = hash_offset(text)
    return Coordinates(lat=base.lat + offset.lat, lng=base.lng + offset.lng)
