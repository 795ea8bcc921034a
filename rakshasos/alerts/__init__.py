"""
alerts — Distress-alert dispatch.

Sub-modules:
    channels/    — delivery channel backends (SMS)
    dispatcher   — one alert attempt: compose, check channel, batched send
    cues         — haptic/audible feedback hooks
"""
