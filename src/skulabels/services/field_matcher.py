"""
Deterministic SKU/barcode matcher.

Finds every identifier and scan-payload occurrence in the normalized text and
pairs each identifier with the closest payload by character offset. PDF text
extraction scrambles reading order, so the closest payload may sit before or
after the identifier.
"""

import logging
import re
from typing import Iterable, Sequence

from skulabels.models.domain import LabelRecord, MatchCandidate, normalize_identifier
from skulabels.services.text_utils import normalize_text, normalized_offset

logger = logging.getLogger(__name__)

# Ordered by priority; the first rule with any match wins for the whole text.
LABELLED_IDENTIFIER_RULES: tuple[re.Pattern[str], ...] = (
    re.compile(r"seller\s*sku\s*:\s*([A-Za-z0-9]{3,15})(?![A-Za-z0-9])", re.IGNORECASE),
    re.compile(r"sku\s*:\s*([A-Za-z0-9]{3,15})(?![A-Za-z0-9])", re.IGNORECASE),
)

# Last resort, matched on the raw text: the digits must share a line with "seller".
SELLER_DIGITS_RULE = re.compile(r"seller\b[^\n\r\f\v]*?(?<!\d)(\d{8,15})(?!\d)", re.IGNORECASE)

SCAN_PAYLOAD_RULES: tuple[re.Pattern[str], ...] = (
    re.compile(r"barcode\s*:\s*(\S+)", re.IGNORECASE),
    re.compile(r"(?<!\d)(\d{12,13})(?!\d)"),
)


def _collect(text: str, rules: Iterable[re.Pattern[str]]) -> list[MatchCandidate]:
    for rule in rules:
        found = [
            MatchCandidate(value=match.group(1).strip(), offset=match.start())
            for match in rule.finditer(text)
        ]
        if found:
            return found
    return []


def find_identifiers(text: str) -> list[MatchCandidate]:
    """Collect SKU occurrences with offsets into the normalized text."""
    found = _collect(normalize_text(text), LABELLED_IDENTIFIER_RULES)
    if found:
        return found
    return [
        MatchCandidate(value=match.group(1), offset=normalized_offset(text, match.start()))
        for match in SELLER_DIGITS_RULE.finditer(text)
    ]


def find_scan_payloads(text: str) -> list[MatchCandidate]:
    return _collect(normalize_text(text), SCAN_PAYLOAD_RULES)


def nearest_scan_payload(identifier: MatchCandidate, payloads: Sequence[MatchCandidate]) -> str:
    """Return the payload closest to ``identifier``.

    Ties go to the earliest payload in scan order. Without any payload the
    identifier's own raw value is used, so the label still encodes something
    scannable.
    """
    best = identifier.value
    min_distance = None
    for payload in payloads:
        distance = abs(identifier.offset - payload.offset)
        if min_distance is None or distance < min_distance:
            min_distance = distance
            best = payload.value
    return best


def aggregate_records(
    identifiers: Sequence[MatchCandidate],
    payloads: Sequence[MatchCandidate],
) -> list[LabelRecord]:
    scan_payloads: dict[str, str] = {}
    counts: dict[str, int] = {}

    for identifier in identifiers:
        key = normalize_identifier(identifier.value)
        if key in counts:
            # The payload stays pinned to the first occurrence.
            counts[key] += 1
            continue
        scan_payloads[key] = nearest_scan_payload(identifier, payloads)
        counts[key] = 1

    records = [
        LabelRecord(identifier=key, scan_payload=scan_payloads[key], count=count)
        for key, count in counts.items()
    ]
    return sorted(records, key=lambda record: record.count, reverse=True)


def match_label_records(text: str) -> list[LabelRecord]:
    """Match raw document text; line breaks still matter for the seller-digits rule."""
    identifiers = find_identifiers(text)
    if not identifiers:
        logger.debug("No SKU pattern matched; deterministic extraction is empty")
        return []

    payloads = find_scan_payloads(text)
    if not payloads:
        logger.debug(f"No barcode pattern matched; falling back to SKU values for {len(identifiers)} occurrences")

    records = aggregate_records(identifiers, payloads)
    logger.debug(f"Matched {len(identifiers)} SKU occurrences into {len(records)} records")
    return records
