"""Pydantic request and response models for the IllustrateLab API.

These models define the JSON schema for every API endpoint.  FastAPI uses
them for automatic request validation, serialisation, and OpenAPI
documentation generation.

The wire format is camelCase (``illustrationType``, ``forceMock``,
``pngDataUrl``) while Python attributes are snake_case.  Every model accepts
either spelling on input and serialises by alias on output.

Models
------
Palette
    Three hex colours plus a monochrome flag.
GenerateRequest
    Payload for ``POST /api/generate`` and ``POST /api/prompt/compile``.
GenerateSuccess
    Successful generation result (remote image or placeholder).
GenerateFailure
    Error envelope returned for 400 and 500 responses.
"""

from __future__ import annotations

from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

IllustrationType = Literal[
    "icons", "flat vector scene", "outline", "isometric", "sticker", "minimal line art"
]
StyleOption = Literal["clean", "playful", "corporate", "sketchy", "bold"]
ComplexityOption = Literal["simple", "medium", "detailed"]
OutputOption = Literal["svg", "png"]
GenerationMode = Literal["cloudflare", "hf", "mock"]

ILLUSTRATION_TYPES: tuple[str, ...] = get_args(IllustrationType)
STYLE_OPTIONS: tuple[str, ...] = get_args(StyleOption)
COMPLEXITY_OPTIONS: tuple[str, ...] = get_args(ComplexityOption)
OUTPUT_OPTIONS: tuple[str, ...] = get_args(OutputOption)

PROMPT_MAX_LENGTH = 240
HEX_COLOR_PATTERN = r"^#(?:[0-9a-fA-F]{3}){1,2}$"

INVALID_JSON_MESSAGE = "Invalid JSON body."
INVALID_BODY_MESSAGE = "Invalid request body. Check prompt, options, and hex colors."


class _CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Palette(_CamelModel):
    """Colour palette for an illustration.

    Attributes:
        primary: Background gradient start colour (``#RGB`` or ``#RRGGBB``).
        secondary: Gradient end colour and odd-shape fill.
        accent: Even-shape fill.
        monochrome: When ``True`` every working colour collapses to
            ``primary``.  ``null`` counts as ``False``; other values follow
            pydantic's lax boolean parsing, so ``"false"`` is ``False`` and
            ``5`` is rejected rather than read as truthy.
    """

    primary: str = Field(..., pattern=HEX_COLOR_PATTERN)
    secondary: str = Field(..., pattern=HEX_COLOR_PATTERN)
    accent: str = Field(..., pattern=HEX_COLOR_PATTERN)
    monochrome: bool = False

    @field_validator("monochrome", mode="before")
    @classmethod
    def _null_is_false(cls, value: object) -> object:
        return False if value is None else value


class GenerateRequest(_CamelModel):
    """Request body for the ``POST /api/generate`` endpoint.

    A constructed instance is always valid: the prompt is trimmed, non-empty
    and at most :data:`PROMPT_MAX_LENGTH` characters, every option is a member
    of its fixed set and every palette colour is a hex colour.

    Attributes:
        prompt: Free-text description of the illustration.  Surrounding
            whitespace is stripped and the result is truncated to 240
            characters.  Empty after stripping is rejected.
        illustration_type: One of :data:`ILLUSTRATION_TYPES`.
        style: One of :data:`STYLE_OPTIONS`.
        complexity: One of :data:`COMPLEXITY_OPTIONS`.
        palette: Colour palette.
        output: ``"png"`` consults remote providers, ``"svg"`` always
            returns the local placeholder.
        force_mock: Skip remote providers even for PNG output.  ``null``
            counts as ``False``.  Unlike a JavaScript truthiness check,
            strings such as ``"false"`` or ``"0"`` parse as ``False`` and
            non-boolean values such as ``5`` are rejected.
    """

    prompt: str = Field(..., description="Illustration description (1-240 chars after trim).")
    illustration_type: IllustrationType
    style: StyleOption
    complexity: ComplexityOption
    palette: Palette
    output: OutputOption
    force_mock: bool = Field(
        default=False,
        description="Skip remote providers and return the placeholder image.",
    )

    @field_validator("prompt")
    @classmethod
    def _normalise_prompt(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("prompt must not be empty")
        return stripped[:PROMPT_MAX_LENGTH]

    @field_validator("force_mock", mode="before")
    @classmethod
    def _null_is_false(cls, value: object) -> object:
        return False if value is None else value


class GenerateSuccess(_CamelModel):
    """Successful response from ``POST /api/generate``.

    Remote providers fill only ``png_data_url``.  The placeholder fills both
    ``svg`` and ``png_data_url`` (the latter holding the SVG as a data URL).
    """

    ok: Literal[True] = True
    mode: GenerationMode
    svg: str | None = None
    png_data_url: str | None = None


class GenerateFailure(_CamelModel):
    """Error envelope for failed requests."""

    ok: Literal[False] = False
    error: str


# Initial form values served to the frontend through ``GET /api/config``.
DEFAULT_REQUEST = GenerateRequest(
    prompt="A cheerful robot watering houseplants",
    illustration_type="flat vector scene",
    style="clean",
    complexity="medium",
    palette=Palette(primary="#57a6ff", secondary="#22d3a6", accent="#ffd166"),
    output="svg",
)
