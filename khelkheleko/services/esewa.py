"""
eSewa ePay v2 form signing, callback verification and status lookup.

The checkout form and the success callback are both signed with
HMAC-SHA256 over ``signed_field_names`` (``key=value`` pairs joined by
commas) using the merchant secret, base64 encoded.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import logging
import uuid
from typing import Any, Optional

import requests

from khelkheleko.errors import PaymentVerificationError
from khelkheleko.utils import epoch_millis

logger = logging.getLogger(__name__)

TIMEOUT = 15
FORM_SIGNED_FIELDS = "total_amount,transaction_uuid,product_code"
CALLBACK_SIGNED_FIELDS = (
    "transaction_code,status,total_amount,transaction_uuid,product_code,signed_field_names"
)
STATUS_COMPLETE = "COMPLETE"


def generate_transaction_uuid() -> str:
    """Unique transaction id in the form ``TXN_<millis>_<random>``."""
    return f"TXN_{epoch_millis()}_{uuid.uuid4().hex[:9]}"


def format_amount(amount: Any) -> str:
    """Render an amount the way it is sent (and signed) on the form."""
    value = float(str(amount).replace(",", ""))
    if value.is_integer():
        return str(int(value))
    return f"{value:.2f}"


def sign(message: str, secret_key: str) -> str:
    """Base64 HMAC-SHA256 of ``message``."""
    digest = hmac.new(
        secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).digest()
    return base64.b64encode(digest).decode("utf-8")


def signature_message(fields: dict[str, Any], signed_field_names: str) -> str:
    """Build the ``key=value,...`` string covered by the signature."""
    try:
        return ",".join(
            f"{name}={fields[name]}" for name in signed_field_names.split(",")
        )
    except KeyError as e:
        raise PaymentVerificationError(f"Signed field {e} is missing.") from e


def build_payment_form(
    amount: Any,
    transaction_uuid: str,
    success_url: str,
    failure_url: str,
    merchant_code: str,
    secret_key: str,
) -> dict[str, str]:
    """Fields for the auto-submitting checkout form."""
    total = format_amount(amount)
    fields = {
        "amount": total,
        "tax_amount": "0",
        "total_amount": total,
        "transaction_uuid": transaction_uuid,
        "product_code": merchant_code,
        "product_service_charge": "0",
        "product_delivery_charge": "0",
        "success_url": success_url,
        "failure_url": failure_url,
        "signed_field_names": FORM_SIGNED_FIELDS,
    }
    fields["signature"] = sign(signature_message(fields, FORM_SIGNED_FIELDS), secret_key)
    return fields


def encode_callback(fields: dict[str, Any]) -> str:
    """Base64 JSON, as eSewa passes it in the ``data`` query parameter."""
    return base64.b64encode(json.dumps(fields).encode("utf-8")).decode("utf-8")


def decode_callback(data: str) -> dict[str, Any]:
    """Decode the ``data`` query parameter of a success redirect."""
    if not data:
        raise PaymentVerificationError("Missing payment response.")
    try:
        payload = json.loads(base64.b64decode(data, validate=False).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise PaymentVerificationError("Malformed payment response.") from e
    if not isinstance(payload, dict):
        raise PaymentVerificationError("Malformed payment response.")
    return payload


def verify_callback(payload: dict[str, Any], secret_key: str) -> bool:
    """Check the signature on a decoded callback payload."""
    signature = payload.get("signature")
    signed_field_names = payload.get("signed_field_names")
    if not signature or not signed_field_names:
        return False
    try:
        expected = sign(signature_message(payload, signed_field_names), secret_key)
    except PaymentVerificationError:
        return False
    return hmac.compare_digest(expected, str(signature))


def build_callback(
    transaction_uuid: str,
    total_amount: Any,
    merchant_code: str,
    secret_key: str,
    status: str = STATUS_COMPLETE,
) -> dict[str, str]:
    """A gateway-shaped signed callback, used by the local payment simulator."""
    fields = {
        "transaction_code": uuid.uuid4().hex[:7].upper(),
        "status": status,
        "total_amount": format_amount(total_amount),
        "transaction_uuid": transaction_uuid,
        "product_code": merchant_code,
        "signed_field_names": CALLBACK_SIGNED_FIELDS,
    }
    fields["signature"] = sign(signature_message(fields, CALLBACK_SIGNED_FIELDS), secret_key)
    return fields


def check_transaction_status(
    status_url: str, merchant_code: str, total_amount: Any, transaction_uuid: str
) -> Optional[str]:
    """
    Ask eSewa for the status of a transaction.

    :return: the gateway status string (e.g. ``COMPLETE``) or None when the
        lookup itself failed.
    """
    try:
        resp = requests.get(
            status_url,
            params={
                "product_code": merchant_code,
                "total_amount": format_amount(total_amount),
                "transaction_uuid": transaction_uuid,
            },
            timeout=TIMEOUT,
        )
        if resp.status_code != 200:
            logger.warning("eSewa status error %s: %s", resp.status_code, resp.text[:200])
            return None
        return resp.json().get("status")
    except (requests.RequestException, ValueError) as e:
        logger.warning("eSewa status request failed: %s", e)
        return None
