"""Bundled models."""

from dsgeswitch.models.an_schorfheide import TAYLOR93, ZERO_RATE, AnSchorfheide

MODELS = {
    AnSchorfheide.name: AnSchorfheide,
}

__all__ = ["AnSchorfheide", "MODELS", "TAYLOR93", "ZERO_RATE"]
