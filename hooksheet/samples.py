# hooksheet/samples.py
"""
Webhook simulator support: canned sample events and a display-only endpoint URL.

Nothing here listens on a socket; the endpoint URL is an identifier shown to
users, and "simulating" a sample just hands its payload to the orchestrator.
"""

import json
import os
import random
import string
from typing import List

from hooksheet.schemas import WebhookSample

WEBHOOK_BASE_URL = os.getenv("WEBHOOK_BASE_URL", "https://api.transformer.ai").rstrip("/")

_BASE36 = string.digits + string.ascii_lowercase


def make_endpoint_url(base_url: str = WEBHOOK_BASE_URL, rng: random.Random = None) -> str:
    rng = rng or random.Random()
    hook_id = "".join(rng.choice(_BASE36) for _ in range(8))
    return f"{base_url}/v1/hooks/{hook_id}"


# fixed for the lifetime of the process
ENDPOINT_URL = make_endpoint_url()


def _pretty(obj) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


SAMPLE_WEBHOOKS: List[WebhookSample] = [
    WebhookSample(
        name="Stripe: Payment Succeeded",
        description="Stripe payment approved event",
        payload=_pretty({
            "id": "evt_1M5j2i2eZvKYlo2C0",
            "object": "event",
            "api_version": "2022-11-15",
            "created": 1678892345,
            "data": {
                "object": {
                    "id": "pi_3M5j2i2eZvKYlo2C1",
                    "object": "payment_intent",
                    "amount": 2000,
                    "currency": "usd",
                    "payment_method_details": {
                        "card": {"brand": "visa", "last4": "4242"},
                        "type": "card",
                    },
                    "receipt_email": "jenny.rosen@example.com",
                }
            },
            "type": "payment_intent.succeeded",
        }),
        instructions="Extract the event ID, the receipt email, the amount (convert cents to dollars), "
                     "the currency and the card brand.",
    ),
    WebhookSample(
        name="Shopify: Order Created",
        description="New e-commerce order",
        payload=_pretty({
            "id": 820982911946154508,
            "email": "bob.norman@hostmail.com",
            "created_at": "2023-10-02T14:45:00-04:00",
            "total_price": "199.00",
            "currency": "BRL",
            "line_items": [
                {"id": 866550311766439020, "title": "Pro Running Shoes", "price": "199.00", "quantity": 1}
            ],
            "customer": {
                "first_name": "Bob",
                "last_name": "Norman",
                "default_address": {"city": "Rio de Janeiro", "country": "Brazil"},
            },
        }),
        instructions="Extract the order ID, the customer's full name (concatenate first and last name), "
                     "email, city, main product name and total value.",
    ),
    WebhookSample(
        name="GitHub: Push Event",
        description="Commit pushed to a repository",
        payload=_pretty({
            "ref": "refs/heads/main",
            "repository": {
                "id": 1296269,
                "full_name": "octocat/Hello-World",
                "owner": {"login": "octocat", "id": 1},
                "html_url": "https://github.com/octocat/Hello-World",
            },
            "pusher": {"name": "octocat", "email": "octocat@github.com"},
            "commits": [
                {
                    "id": "b6568db1bc1dcdfd754caa13d3506e75a9b9b5a3",
                    "message": "Update README.md fixed typo",
                    "timestamp": "2023-10-01T12:00:00-07:00",
                    "url": "https://github.com/octocat/Hello-World/commit/b6568db1bc1dcdfd754caa13d3506e75a9b9b5a3",
                    "author": {"name": "Monalisa Octocat", "email": "support@github.com"},
                }
            ],
        }),
        instructions="Take the repository name, the name of who pushed, the last commit message "
                     "and the repository HTML link.",
    ),
]


def get_sample(index: int) -> WebhookSample:
    """Raises IndexError for an unknown sample index."""
    if index < 0 or index >= len(SAMPLE_WEBHOOKS):
        raise IndexError(f"No sample webhook at index {index}")
    return SAMPLE_WEBHOOKS[index]
