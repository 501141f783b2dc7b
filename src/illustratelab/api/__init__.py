"""IllustrateLab — FastAPI REST API layer.

This package contains the FastAPI application, Pydantic request/response
models, the placeholder generator, and the remote provider chain.

Modules
-------
main
    FastAPI application with all route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic models and option sets for API request and response validation.
placeholder
    Deterministic seeded SVG placeholder and data-URL encoding.
providers
    Cloudflare and Hugging Face providers plus the ordered fallback chain.
prompt_builder
    Folds style options into the prompt sent to remote providers.
"""
