"""Prometheus metrics for the checkout workflow (exposed at /metrics)."""

from prometheus_client import Counter

CHECKOUTS = Counter(
    "storefront_checkouts_total",
    "Checkout attempts by outcome",
    ["outcome"],
)

UNRECONCILED_CHARGES = Counter(
    "storefront_unreconciled_charges_total",
    "Charges captured at the gateway whose order could not be saved",
)
