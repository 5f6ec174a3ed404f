"""
Backtick placeholder substitution for user templates.

Recognized placeholders:

    `@background`   background color
    `@foreground`   foreground color
    `@colorN`       accent N (decimal, 0-based)

Anything else between backticks, including accent indices past the end of the
palette, is copied through unchanged with its backticks.
"""

from pathlib import Path
import logging
import re

from color_metrics import Palette
from pal_config import Format
from palette_format import format_color


logger = logging.getLogger(__name__)

DELIMITER = "`"
MAX_PLACEHOLDER_LEN = 32  # Longer placeholder bodies are truncated to 31 chars for matching
MAX_TEMPLATES = 128

ACCENT_PATTERN = re.compile(r"@color([0-9]+)")


def resolve_placeholder(name: str, palette: Palette, fmt: Format) -> str | None:
    """Formatted color for a placeholder name, or None if it is not recognized."""
    if name == "@background":
        return format_color(palette.background, fmt)
    if name == "@foreground":
        return format_color(palette.foreground, fmt)

    match = ACCENT_PATTERN.fullmatch(name)
    if match:
        index = int(match.group(1))
        if index < len(palette.accents):
            return format_color(palette.accents[index], fmt)
    return None


def render_template(text: str, palette: Palette, fmt: Format) -> str:
    """Substitute every recognized placeholder in text."""
    out = []
    pos = 0
    while True:
        start = text.find(DELIMITER, pos)
        end = text.find(DELIMITER, start + 1) if start >= 0 else -1
        if end < 0:
            # No further complete placeholder; an unmatched backtick passes through
            out.append(text[pos:])
            break

        out.append(text[pos:start])
        name = text[start + 1:end][:MAX_PLACEHOLDER_LEN - 1]
        value = resolve_placeholder(name, palette, fmt)
        out.append(value if value is not None else text[start:end + 1])
        pos = end + 1

    return "".join(out)


def find_templates(directory: str | Path) -> list[Path]:
    """Regular files in the template directory, sorted by name."""
    directory = Path(directory)
    if not directory.is_dir():
        return []

    templates = sorted(p for p in directory.iterdir() if p.is_file())
    if len(templates) > MAX_TEMPLATES:
        logger.warning("Found %d templates, only the first %d are used", len(templates), MAX_TEMPLATES)
        templates = templates[:MAX_TEMPLATES]
    return templates


def write_templates(templates: list[Path], output_dir: str | Path, palette: Palette, fmt: Format) -> list[Path]:
    """
    Render each template into output_dir under the same file name.

    Templates that cannot be read, and outputs that cannot be written, are
    logged and skipped.

    Returns:
        Paths of the rendered files that were written
    """
    output_dir = Path(output_dir)
    written = []
    for template in templates:
        try:
            text = template.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping template %s: %s", template, e)
            continue

        output_path = output_dir / template.name
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            output_path.write_text(render_template(text, palette, fmt), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not write rendered template %s: %s", output_path, e)
            continue
        written.append(output_path)

    return written
