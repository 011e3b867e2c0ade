"""Client display colors.

An explicit color map (client name -> hex color) wins; otherwise a color is
picked from a fixed palette by hashing the client name. The hash is the
classic 31-multiplier string hash over UTF-16 code units with 32-bit
wrap-around, so the same name always maps to the same color. Different
names may collide.
"""

from typing import Dict, List, Optional, Union

from trafficboard.models.constants import CLIENT_COLOR_PALETTE, DEFAULT_CLIENT_COLOR


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _utf16_code_units(text: str) -> List[int]:
    raw = text.encode("utf-16-le")
    return [int.from_bytes(raw[i:i + 2], "little") for i in range(0, len(raw), 2)]


def client_name_hash(client_name: str) -> int:
    """Deterministic hash of a client name."""
    h = 0
    for unit in _utf16_code_units(client_name):
        h = unit + (_to_int32(_to_int32(h) << 5) - h)
    return h


def generate_color_for_client(client_name: str) -> str:
    """Palette color derived from the client name (stable across calls)."""
    return CLIENT_COLOR_PALETTE[abs(client_name_hash(client_name)) % len(CLIENT_COLOR_PALETTE)]


def color_for(client_name: Optional[Union[str, List[str]]], color_map: Dict[str, str]) -> str:
    """Display color for a client name.

    Args:
        client_name: Resolved client name (a list uses its first entry)
        color_map: Explicit client name -> color assignments

    Returns:
        Mapped color, else a generated palette color, else the default color when no name is known
    """
    if isinstance(client_name, list):
        client_name = client_name[0] if client_name else None
    if not client_name:
        return DEFAULT_CLIENT_COLOR
    return color_map.get(client_name) or generate_color_for_client(client_name)
