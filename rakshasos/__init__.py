"""
rakshasos — Offline-tolerant distress-alert engine.

Sub-packages:
    core/       — config, logging, errors, durable storage, status report
    location/   — last-known-position tracking
    network/    — reachability classification
    messaging/  — localized distress message composition
    api/        — remote contacts/settings service client
    contacts/   — bounded trusted-contact store
    alerts/     — dispatcher, delivery channels, feedback cues
"""

__version__ = "1.0.0"
