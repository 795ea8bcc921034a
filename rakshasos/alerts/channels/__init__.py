"""
channels — Delivery channel backends.

Each channel exposes:
    is_available() → bool
    send(numbers, message) → None   (raises on failure)

Channels are single-shot. Single-flight and outcome accounting live in the
dispatcher.
"""
