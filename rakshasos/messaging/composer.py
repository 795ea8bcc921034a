"""
composer.py — Localized distress message composition.

    compose(category, location, language) → str

Pure and total: every input combination yields a non-empty message.

═══════════════════════════════════════════════════════════════════════════
MESSAGE TEMPLATES
═══════════════════════════════════════════════════════════════════════════

    en: "SOS ALERT! {label}. I need immediate help! My location: {location}"
    hi: "SOS अलर्ट! {label}। मुझे तुरंत मदद चाहिए! मेरा स्थान: {location}"
    mr: "SOS अलर्ट! {label}। मला तातडीने मदत हवी! माझे स्थान: {location}"

    {location} is a Google Maps link when a sample is known,
    otherwise the localized "location unavailable" token.

Language fallback: anything that is not a supported language code is
rendered in English. The fallback is logged at DEBUG so it is visible
when tracing a dispatch.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Optional, Union

from rakshasos.models import EmergencyCategory, Language, LocationSample

logger = logging.getLogger(__name__)

BASE_LANGUAGE = Language.ENGLISH
MAPS_URL = "https://maps.google.com/maps?q={lat},{lon}"

CATEGORY_LABELS: Dict[Language, Dict[EmergencyCategory, str]] = {
    Language.ENGLISH: {
        EmergencyCategory.MEDICAL:  "MEDICAL EMERGENCY",
        EmergencyCategory.FIRE:     "FIRE EMERGENCY",
        EmergencyCategory.POLICE:   "POLICE HELP NEEDED",
        EmergencyCategory.THREAT:   "KIDNAPPING/THREAT",
        EmergencyCategory.DISASTER: "NATURAL DISASTER",
    },
    Language.HINDI: {
        EmergencyCategory.MEDICAL:  "चिकित्सा आपातकाल",
        EmergencyCategory.FIRE:     "आग आपातकाल",
        EmergencyCategory.POLICE:   "पुलिस सहायता चाहिए",
        EmergencyCategory.THREAT:   "अपहरण/धमकी",
        EmergencyCategory.DISASTER: "प्राकृतिक आपदा",
    },
    Language.MARATHI: {
        EmergencyCategory.MEDICAL:  "वैद्यकीय आणीबाणी",
        EmergencyCategory.FIRE:     "आग आणीबाणी",
        EmergencyCategory.POLICE:   "पोलीस मदत हवी",
        EmergencyCategory.THREAT:   "अपहरण/धमकी",
        EmergencyCategory.DISASTER: "नैसर्गिक आपत्ती",
    },
}

LOCATION_UNAVAILABLE: Dict[Language, str] = {
    Language.ENGLISH: "Location unavailable",
    Language.HINDI:   "स्थान उपलब्ध नहीं",
    Language.MARATHI: "स्थान उपलब्ध नाही",
}

MESSAGE_TEMPLATES: Dict[Language, str] = {
    Language.ENGLISH: "SOS ALERT! {label}. I need immediate help! My location: {location}",
    Language.HINDI:   "SOS अलर्ट! {label}। मुझे तुरंत मदद चाहिए! मेरा स्थान: {location}",
    Language.MARATHI: "SOS अलर्ट! {label}। मला तातडीने मदत हवी! माझे स्थान: {location}",
}


def resolve_language(language: Union[Language, str, None]) -> Language:
    """Map any input to a supported language, defaulting to English."""
    if isinstance(language, Language):
        return language
    try:
        return Language(language)
    except (TypeError, ValueError):
        logger.debug("Unsupported language %r — composing in %s", language, BASE_LANGUAGE.value)
        return BASE_LANGUAGE


def format_coordinate(value: float) -> str:
    """
    Shortest round-trip decimal text in positional form, without a trailing
    ".0". Maps links do not parse "1e-05", and rounding would move the pin.
    """
    text = format(Decimal(repr(float(value))), "f")
    if text.endswith(".0"):
        text = text[:-2]
    return text


def maps_link(location: LocationSample) -> str:
    return MAPS_URL.format(
        lat=format_coordinate(location.latitude),
        lon=format_coordinate(location.longitude),
    )


def compose(
    category: EmergencyCategory,
    location: Optional[LocationSample],
    language: Union[Language, str, None] = BASE_LANGUAGE,
) -> str:
    """Build the distress message for one alert."""
    lang = resolve_language(language)
    labels = CATEGORY_LABELS[lang]
    label = labels.get(category) or labels[EmergencyCategory.MEDICAL]
    where = maps_link(location) if location is not None else LOCATION_UNAVAILABLE[lang]
    return MESSAGE_TEMPLATES[lang].format(label=label, location=where)
