"""QR payload helpers.

The payload string is what matters: the next stage scans it and submits it
as its ``collectorId`` (or as a trace id).  The SVG data URI is a rendering
of the same string for the frontend to display.
"""

import json

import segno

from herbtrace.config import settings


def collector_token(collector_id: str) -> str:
    return collector_id


def lab_test_token(lab_test_id: str) -> str:
    return f"{settings.lab_token_prefix}{lab_test_id}"


def strip_lab_token(token: str) -> str:
    """Accept either a bare lab test id or its prefixed QR form."""
    prefix = settings.lab_token_prefix
    if token.startswith(prefix):
        return token[len(prefix):]
    return token


def product_batch_payload(product_batch_id: str, manufacturer_id: str) -> str:
    return json.dumps({"productBatchId": product_batch_id, "manufacturerId": manufacturer_id})


def qr_data_uri(payload: str) -> str:
    """Render ``payload`` as an SVG QR code data URI."""
    qr = segno.make(payload, error="m")
    return qr.svg_data_uri(scale=4, border=2)
