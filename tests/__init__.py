# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Test package for chatgate.

- Unit tests for the registry, normalizer, upstream client and relay
- Integration tests through the FastAPI app with a mocked upstream
"""
