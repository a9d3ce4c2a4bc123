# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
chatgate - Chat Inference Gateway

Accepts chat requests in several client conventions, resolves short model aliases
to upstream model identifiers and forwards one canonical request to a single
upstream chat-completion API.
"""

__version__ = "1.0.0"
__author__ = "chatgate Team"
