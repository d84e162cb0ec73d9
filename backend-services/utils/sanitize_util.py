"""
The contents of this file are property of Doorman Dev, LLC
Review the Apache License 2.0 for valid authorization of use
See https://github.com/apidoorman/doorman for more information
"""

import logging
from typing import Any

logger = logging.getLogger('caregate.gateway')

OPERATOR_PREFIX = '$'
PATH_SEPARATOR = '.'


def is_operator_key(key: Any) -> bool:
    """
    Whether a key could be read by MongoDB as a query operator or a dotted path.
    """
    if not isinstance(key, str):
        return False
    return key.startswith(OPERATOR_PREFIX) or PATH_SEPARATOR in key


def sanitize_html(text: str) -> str:
    """
    Neutralize markup so script tags cannot be rendered back to a browser.
    """
    if not text or not isinstance(text, str):
        return text
    return text.replace('<', '&lt;')


def sanitize_value(value: Any) -> Any:
    """
    Recursively drop operator keys and neutralize string values.
    """
    if isinstance(value, dict):
        cleaned = {}
        for key, item in value.items():
            if is_operator_key(key):
                logger.warning(f'Removed disallowed key from input: {key!r}')
                continue
            cleaned[key] = sanitize_value(item)
        return cleaned
    if isinstance(value, list):
        return [sanitize_value(item) for item in value]
    if isinstance(value, str):
        return sanitize_html(value)
    return value


def sanitize_pairs(pairs: list[tuple[str, str]]) -> list[tuple[str, str]]:
    """
    Apply the same rules to decoded query-string or form pairs.

    Keys in bracket notation (filter[$ne]) are checked segment by segment.
    """
    cleaned = []
    for key, value in pairs:
        segments = [s for s in key.replace(']', '').split('[') if s]
        if any(is_operator_key(s) for s in segments) or is_operator_key(key):
            logger.warning(f'Removed disallowed parameter from input: {key!r}')
            continue
        cleaned.append((key, sanitize_html(value)))
    return cleaned
