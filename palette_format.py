"""Render palette colors as rgb()/hex strings."""

from color_metrics import Color, Palette
from pal_config import Config, Format


def format_color(color: Color, fmt: Format) -> str:
    """Format as 'rgb(r, g, b)' or uppercase '#RRGGBB'."""
    if fmt == Format.RGB:
        return f"rgb({color.r}, {color.g}, {color.b})"
    return f"#{color.r:02X}{color.g:02X}{color.b:02X}"


def palette_strings(palette: Palette, fmt: Format) -> list[str]:
    """Background, foreground, then accents, all pre-formatted."""
    return [format_color(c, fmt) for c in palette.colors()]


def plain_lines(palette: Palette, config: Config) -> list[str]:
    """Lines for plain stdout output; bg/fg are dropped when show_bg_fg is off."""
    colors = palette.colors() if config.show_bg_fg else list(palette.accents)
    return [format_color(c, config.format) for c in colors]
