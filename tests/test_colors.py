"""Tests for client display colors."""

from trafficboard.engine.colors import client_name_hash, color_for, generate_color_for_client
from trafficboard.models.constants import CLIENT_COLOR_PALETTE, DEFAULT_CLIENT_COLOR


class TestClientNameHash:
    """The hash matches the 31-multiplier string hash with 32-bit wrap-around."""

    def test_known_values(self):
        assert client_name_hash("") == 0
        assert client_name_hash("a") == 97
        assert client_name_hash("ab") == 3105

    def test_palette_pick(self):
        assert generate_color_for_client("a") == CLIENT_COLOR_PALETTE[97 % 20]
        assert generate_color_for_client("ab") == CLIENT_COLOR_PALETTE[3105 % 20]

    def test_long_names_stay_in_palette(self):
        name = "Agence de communication très longue " * 20
        assert generate_color_for_client(name) in CLIENT_COLOR_PALETTE


class TestColorFor:
    def test_explicit_mapping_wins(self):
        assert color_for("Acme", {"Acme": "#123456"}) == "#123456"

    def test_generated_color_is_stable(self):
        first = color_for("Acme", {})
        assert first == color_for("Acme", {"Globex": "#000000"})
        assert first == generate_color_for_client("Acme")
        assert first in CLIENT_COLOR_PALETTE

    def test_no_name_uses_default(self):
        assert color_for(None, {"Acme": "#123456"}) == DEFAULT_CLIENT_COLOR
        assert color_for("", {}) == DEFAULT_CLIENT_COLOR
        assert color_for([], {}) == DEFAULT_CLIENT_COLOR

    def test_list_uses_first_entry(self):
        assert color_for(["Acme", "Globex"], {"Acme": "#123456"}) == "#123456"
