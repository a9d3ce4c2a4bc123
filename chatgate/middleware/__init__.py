# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Edge middleware helpers for chatgate.
"""

from .cors import CorsHeaders, apply_cors_headers, is_preflight, preflight_response

__all__ = ["CorsHeaders", "apply_cors_headers", "is_preflight", "preflight_response"]
