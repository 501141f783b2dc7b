"""Deterministic placeholder illustrations.

When no remote provider is selected or available, the generation endpoint
returns a locally synthesised SVG.  The document is a pure function of the
request: the same request always produces the same bytes, so placeholders are
stable across reloads and easy to assert on in tests.

Seed Derivation
---------------
The request fields are joined with ``"|"`` and hashed with the classic
``hash * 31 + code_unit`` string hash over UTF-16 code units, using 32-bit
signed integer arithmetic.  Python integers never overflow, so the wraparound
is emulated explicitly: the accumulator is masked to 32 bits after every step
and the final value is reinterpreted as signed before taking its absolute
value.  Shape placement reuses the same 32-bit view for the ``>> 4`` shift, so
every coordinate matches what a fixed-width implementation would compute.

Layout
------
- 960x640 canvas with a diagonal gradient background
- an inset translucent "card"
- 4, 7 or 11 seeded circles depending on complexity
- a three-line caption: options, the prompt headline, and the mode label
"""

from __future__ import annotations

import struct
from urllib.parse import quote
from xml.sax.saxutils import escape

from illustratelab.api.models import GenerateRequest

CANVAS_WIDTH = 960
CANVAS_HEIGHT = 640
SHAPE_SEED_STEP = 197
HEADLINE_MAX_LENGTH = 86
HEADLINE_FALLBACK = "IllustrateLab mock output"

_SHAPE_COUNTS = {"simple": 4, "medium": 7, "detailed": 11}

# saxutils.escape handles &, <, > (ampersand first); quotes are added here.
_QUOTE_ENTITIES = {'"': "&quot;", "'": "&apos;"}

# Characters left unescaped by URI component encoding besides alphanumerics.
_URI_COMPONENT_SAFE = "-_.!~*'()"

_UINT32_MASK = 0xFFFFFFFF
_INT32_SIGN_BIT = 0x80000000

_FONT_FAMILY = "Arial, Helvetica, sans-serif"

_SVG_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {width} {height}" width="{width}" height="{height}" role="img" aria-label="Mock illustration output">
  <defs>
    <linearGradient id="bg" x1="0" y1="0" x2="1" y2="1">
      <stop offset="0%" stop-color="{primary}" />
      <stop offset="100%" stop-color="{secondary}" />
    </linearGradient>
  </defs>
  <rect width="100%" height="100%" fill="url(#bg)" />
  <rect x="56" y="56" rx="28" ry="28" width="{card_width}" height="{card_height}" fill="rgba(0, 0, 0, 0.18)" stroke="rgba(255,255,255,0.32)" />
  {shapes}
  <g fill="white">
    <text x="96" y="{meta_y}" font-size="20" font-family="{font}" opacity="0.85">{meta}</text>
    <text x="96" y="{headline_y}" font-size="30" font-weight="600" font-family="{font}">{headline}</text>
    <text x="96" y="{mode_y}" font-size="16" font-family="{font}" opacity="0.9">Mode: mock</text>
  </g>
</svg>"""


def _to_int32(value: int) -> int:
    """Reinterpret the low 32 bits of *value* as a signed integer."""
    value &= _UINT32_MASK
    return value - (1 << 32) if value & _INT32_SIGN_BIT else value


def _truncated_mod(dividend: int, divisor: int) -> int:
    """Remainder with the sign of the dividend (C-style ``%``)."""
    remainder = abs(dividend) % divisor
    return -remainder if dividend < 0 else remainder


def hash_text(text: str) -> int:
    """Hash a string to a non-negative integer with 32-bit wraparound.

    Iterates over UTF-16 code units, so characters outside the Basic
    Multilingual Plane contribute their surrogate pair.

    Args:
        text: Arbitrary input string.

    Returns:
        ``abs`` of the signed 32-bit accumulator, in ``[0, 2**31]``.
    """
    encoded = text.encode("utf-16-le", "surrogatepass")
    code_units = struct.unpack(f"<{len(encoded) // 2}H", encoded)

    accumulator = 0
    for unit in code_units:
        accumulator = (accumulator * 31 + unit) & _UINT32_MASK

    return abs(_to_int32(accumulator))


def escape_xml(text: str) -> str:
    """Escape ``& < > " '`` for use in XML text and attribute values."""
    return escape(text, _QUOTE_ENTITIES)


def shape_count(complexity: str) -> int:
    """Return the number of circles drawn for a complexity level.

    Raises:
        ValueError: If *complexity* is not ``simple``, ``medium`` or
            ``detailed``.
    """
    try:
        return _SHAPE_COUNTS[complexity]
    except KeyError:
        raise ValueError(f"Unknown complexity: {complexity!r}") from None


def seed_for(request: GenerateRequest) -> int:
    """Derive the base seed from the seven seed fields of *request*."""
    palette = request.palette
    return hash_text(
        "|".join(
            [
                request.prompt,
                request.illustration_type,
                request.style,
                request.complexity,
                palette.primary,
                palette.secondary,
                palette.accent,
            ]
        )
    )


def _circle(base_seed: int, index: int, accent: str, secondary: str) -> str:
    seed = base_seed + index * SHAPE_SEED_STEP
    x = seed % 86 + 6
    y = _truncated_mod(_to_int32(seed) >> 4, 76) + 8
    radius = seed % 24 + 8
    opacity = 0.08 + (seed % 50) / 100
    fill = secondary if index % 2 else accent
    return (
        f'<circle cx="{x}%" cy="{y}%" r="{radius}" fill="{fill}" opacity="{opacity:.2f}" />'
    )


def create_placeholder_svg(request: GenerateRequest) -> str:
    """Render the deterministic placeholder SVG for a validated request.

    Args:
        request: Validated generation request.

    Returns:
        A complete SVG document (with XML declaration) as text.
    """
    palette = request.palette
    base_seed = seed_for(request)
    count = shape_count(request.complexity)

    accent_color = palette.primary if palette.monochrome else palette.accent
    secondary_color = palette.primary if palette.monochrome else palette.secondary

    shapes = "".join(
        _circle(base_seed, index, accent_color, secondary_color) for index in range(count)
    )

    meta = " / ".join(
        escape_xml(value)
        for value in (request.illustration_type, request.style, request.complexity)
    )
    headline = escape_xml(request.prompt[:HEADLINE_MAX_LENGTH]) or HEADLINE_FALLBACK

    return _SVG_TEMPLATE.format(
        width=CANVAS_WIDTH,
        height=CANVAS_HEIGHT,
        card_width=CANVAS_WIDTH - 112,
        card_height=CANVAS_HEIGHT - 112,
        primary=palette.primary,
        secondary=secondary_color,
        shapes=shapes,
        font=_FONT_FAMILY,
        meta=meta,
        meta_y=CANVAS_HEIGHT - 132,
        headline=headline,
        headline_y=CANVAS_HEIGHT - 90,
        mode_y=CANVAS_HEIGHT - 52,
    )


def svg_to_data_url(svg: str) -> str:
    """Encode an SVG document as a percent-encoded ``data:`` URL."""
    return f"data:image/svg+xml;charset=utf-8,{quote(svg, safe=_URI_COMPONENT_SAFE)}"
