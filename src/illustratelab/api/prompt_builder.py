"""Provider prompt compilation for IllustrateLab.

Remote text-to-image models only see a single prompt string, so the form's
style options have to be folded into text before the request leaves the
server.  The compiled prompt is built from up to three sections:

Template Structure::

    [User prompt]

    [Illustration directive: type, style, level of detail]

    [Colour palette directive]

Each section is separated by double newlines.  The local placeholder never
uses this text; it reads the structured request directly.

Usage
-----
::

    compiled = build_provider_prompt(request)
"""

from __future__ import annotations

from illustratelab.api.models import GenerateRequest

# ---------------------------------------------------------------------------
# Phrase tables.
# Keys cover every member of the option sets in illustratelab.api.models.
# ---------------------------------------------------------------------------

_TYPE_PHRASES = {
    "icons": "A cohesive set of icons",
    "flat vector scene": "A flat vector scene",
    "outline": "An outline illustration",
    "isometric": "An isometric illustration",
    "sticker": "A die-cut sticker illustration",
    "minimal line art": "Minimal line art",
}

_STYLE_PHRASES = {
    "clean": "in a clean style with crisp shapes and generous whitespace",
    "playful": "in a playful style with rounded forms and cheerful energy",
    "corporate": "in a polished corporate style",
    "sketchy": "in a sketchy style with loose hand-drawn linework",
    "bold": "in a bold style with strong shapes and high contrast",
}

_COMPLEXITY_PHRASES = {
    "simple": "a simple composition with only a few elements",
    "medium": "a moderate level of detail",
    "detailed": "a richly detailed composition",
}


def build_palette_directive(request: GenerateRequest) -> str:
    """Describe the palette as a sentence for the remote model."""
    palette = request.palette
    if palette.monochrome:
        return f"Colour palette: monochrome, built only from tints and shades of {palette.primary}."
    return (
        f"Colour palette: primary {palette.primary}, secondary {palette.secondary}, "
        f"accent {palette.accent}."
    )


def build_provider_prompt(request: GenerateRequest) -> str:
    """Compile the prompt sent to remote image providers.

    Args:
        request: Validated generation request.

    Returns:
        The user prompt followed by the illustration and palette directives,
        separated by double newlines (``\\n\\n``).
    """
    directive = (
        f"{_TYPE_PHRASES[request.illustration_type]} "
        f"{_STYLE_PHRASES[request.style]}, with "
        f"{_COMPLEXITY_PHRASES[request.complexity]}."
    )

    return "\n\n".join([request.prompt, directive, build_palette_directive(request)])
