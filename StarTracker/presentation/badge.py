"""
Shields style SVG badge showing the total star count.
"""

from html import escape

from core.formatting import format_count
from presentation.shared import COLORS

BADGE_HEIGHT = 20
BADGE_RADIUS = 3
LABEL_CHAR_WIDTH = 6.5
VALUE_CHAR_WIDTH = 7.5
HORIZONTAL_PADDING = 12


def generate_badge(total_stars: int, label: str = "stars") -> str:
    value = f"★ {format_count(total_stars)}"

    label_width = round(len(label) * LABEL_CHAR_WIDTH + HORIZONTAL_PADDING)
    value_width = round(len(value) * VALUE_CHAR_WIDTH + HORIZONTAL_PADDING)
    total_width = label_width + value_width

    label = escape(label)
    value = escape(value)
    font = "Verdana,Geneva,DejaVu Sans,sans-serif"

    return f"""<svg xmlns="http://www.w3.org/2000/svg" width="{total_width}" height="{BADGE_HEIGHT}" role="img" aria-label="{label}: {value}">
  <title>{label}: {value}</title>
  <linearGradient id="s" x2="0" y2="100%">
    <stop offset="0" stop-color="{COLORS['gradient_start']}" stop-opacity=".1"/>
    <stop offset="1" stop-opacity=".1"/>
  </linearGradient>
  <clipPath id="r">
    <rect width="{total_width}" height="{BADGE_HEIGHT}" rx="{BADGE_RADIUS}" fill="{COLORS['white']}"/>
  </clipPath>
  <g clip-path="url(#r)">
    <rect width="{label_width}" height="{BADGE_HEIGHT}" fill="{COLORS['muted']}"/>
    <rect x="{label_width}" width="{value_width}" height="{BADGE_HEIGHT}" fill="{COLORS['accent']}"/>
    <rect width="{total_width}" height="{BADGE_HEIGHT}" fill="url(#s)"/>
  </g>
  <g fill="{COLORS['white']}" text-anchor="middle" font-family="{font}" text-rendering="geometricPrecision" font-size="11">
    <text aria-hidden="true" x="{label_width / 2}" y="15" fill="{COLORS['shadow']}" fill-opacity=".3">{label}</text>
    <text x="{label_width / 2}" y="14">{label}</text>
    <text aria-hidden="true" x="{label_width + value_width / 2}" y="15" fill="{COLORS['shadow']}" fill-opacity=".3">{value}</text>
    <text x="{label_width + value_width / 2}" y="14">{value}</text>
  </g>
</svg>
"""
