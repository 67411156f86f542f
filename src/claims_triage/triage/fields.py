"""Standardized field catalog.

Every client configuration maps these names to its own report headers. The
list is a public contract shared with the mapping editor: entries may be
appended, never renamed, removed or reordered.
"""

from typing import Tuple

CLAIM_NUMBER = "Claim Number"
CLAIM_STATE = "Claim State"
CLAIM_STATUS = "Claim Status"
BILLING_PROVIDER_NAME = "Billing Provider Name"
AGE = "Age"
TOTAL_CHARGES = "TotalCharges"
TOTAL_NET_PAYMENT = "TotalNetPaymentAmt"
CLAIM_EDITS = "Claim Edits"
CLAIM_NOTES = "Claim Notes"

STANDARD_FIELDS: Tuple[str, ...] = (
    "Payer",
    "Category",
    CLAIM_NUMBER,
    "Type",
    "Received Date",
    BILLING_PROVIDER_NAME,
    "Billing Provider Tax ID",
    "Billing Provider NPI",
    CLAIM_STATE,
    CLAIM_STATUS,
    "Patient",
    "Subs Id",
    "Rendering Provider Name",
    "Rendering Provider NPI",
    "DOSFromDate",
    "DOSToDate",
    "Clean Age",
    AGE,
    TOTAL_CHARGES,
    TOTAL_NET_PAYMENT,
    "NetworkStatus",
    "PBP Name",
    "Plan Name",
    "DSNP or Non DSNP",
    CLAIM_EDITS,
    CLAIM_NOTES,
    "Activity Logger Description",
    "Activity Performed By",
    "Activity Performed On",
)


def is_standard_field(name: str) -> bool:
    """Check whether a name belongs to the standardized catalog."""
    return name in STANDARD_FIELDS
