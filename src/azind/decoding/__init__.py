"""Event decoding for the Azimuth contract logs.

This package provides:
- Event catalog (signature -> topic0 fingerprint, built once at startup)
- Topic and ABI word helpers
- Effect compiler that turns a raw log into an upsert on the point snapshot
"""

from azind.decoding.catalog import (
    AZIMUTH_EVENT_SIGNATURES,
    CatalogEntry,
    EventCatalog,
    build_catalog,
    canonical_signature,
    fingerprint,
)
from azind.decoding.effects import EFFECT_RULES, EffectCompiler, compile_effect

__all__ = [
    "AZIMUTH_EVENT_SIGNATURES",
    "CatalogEntry",
    "EventCatalog",
    "build_catalog",
    "canonical_signature",
    "fingerprint",
    "EFFECT_RULES",
    "EffectCompiler",
    "compile_effect",
]
