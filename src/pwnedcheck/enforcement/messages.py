"""
User-facing message keys and their English and French strings.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

PASSWORD_BREACHED = "PASSWORD_BREACHED"

DEFAULT_LOCALE = "en"

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        PASSWORD_BREACHED: (
            "Your password has been found in a breach. "
            "Please use another password on your account."
        ),
    },
    "fr": {
        PASSWORD_BREACHED: (
            "Votre mot de passe a été trouvé dans une fuite de données. "
            "Veuillez utiliser un autre mot de passe pour votre compte."
        ),
    },
}


def get_message(key: str, locale: str = DEFAULT_LOCALE) -> str:
    """Resolve a message key for a locale.

    Accepts region-qualified locales ("fr_CA", "fr-FR") and falls back
    to English for locales without a string table.

    Raises:
        KeyError: If the key is unknown
    """
    language = locale.replace("-", "_").split("_")[0].lower()
    table = MESSAGES.get(language, MESSAGES[DEFAULT_LOCALE])
    if key in table:
        return table[key]
    return MESSAGES[DEFAULT_LOCALE][key]
