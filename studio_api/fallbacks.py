"""Fixed grids served in place of a failed fetch when STUDIO_USE_FALLBACK_DATA is on."""

from __future__ import annotations

from typing import Dict

from studio_core.fetch import Grid, freeze_grid


LATE_CANCELLATIONS_FALLBACK: Grid = freeze_grid(
    [
        ["Late Cancellations by Location"],
        ["Location", "Aug-2025", "Jul-2025", "Jun-2025", "Grand Total"],
        ["Kwality House, Kemps Corner", "500", "462", "442", "4,481"],
        ["Supreme HQ, Bandra", "1,005", "882", "914", "7,346"],
        ["Kenkere House", "44", "71", "79", "1,098"],
        ["Grand Total", "1,549", "1,415", "1,435", "12,925"],
    ]
)

_NEW_CLIENT_HEADER = [
    "Member ID", "First Name", "Last Name", "Email", "Phone Number", "First Visit Date",
    "First Visit Entity Name", "First Visit Type", "First Visit Location", "Payment Method",
    "Membership Used", "Home Location", "Class No", "Trainer Name", "Is New", "Visits Post Trial",
    "Memberships Bought Post Trial", "Purchase Count Post Trial", "LTV", "Retention Status",
    "Conversion Status", "Period", "Unique", "First Purchase", "Conversion Span",
]

NEW_CLIENTS_FALLBACK: Grid = freeze_grid(
    [
        _NEW_CLIENT_HEADER,
        ["M001", "John", "Doe", "john.doe@email.com", "+91-9876543210", "2024-01-15",
         "Kwality House, Kemps Corner", "Trial Class", "Kwality House, Kemps Corner", "Credit Card",
         "Unlimited Monthly", "Kwality House, Kemps Corner", "1", "Sarah Johnson", "Yes", "8",
         "Unlimited Monthly", "1", "15000", "Retained", "Converted", "January 2024", "unique_123",
         "Unlimited Monthly", "5"],
        ["M002", "Jane", "Smith", "jane.smith@email.com", "+91-9876543211", "2024-01-20",
         "Supreme HQ, Bandra", "Drop-in Class", "Supreme HQ, Bandra", "UPI",
         "Class Pack 10", "Supreme HQ, Bandra", "2", "Mike Wilson", "Yes", "12",
         "Class Pack 10", "2", "8000", "Retained", "Converted", "January 2024", "unique_124",
         "Class Pack 10", "7"],
        ["M003", "Alex", "Brown", "alex.brown@email.com", "+91-9876543212", "2024-02-01",
         "Kenkere House, Bengaluru", "Trial Class", "Kenkere House, Bengaluru", "Debit Card",
         "Class Pack 5", "Kenkere House, Bengaluru", "3", "Lisa Davis", "Yes", "5",
         "Class Pack 5", "1", "4500", "Not Retained", "Converted", "February 2024", "unique_125",
         "Class Pack 5", "3"],
        ["M004", "Emma", "Wilson", "emma.wilson@email.com", "+91-9876543213", "2024-02-10",
         "Kwality House, Kemps Corner", "Trial Class", "Kwality House, Kemps Corner", "UPI",
         "Unlimited Monthly", "Kwality House, Kemps Corner", "4", "Sarah Johnson", "Yes", "6",
         "", "0", "0", "Not Retained", "Not Converted", "February 2024", "unique_126", "", "0"],
        ["M005", "David", "Garcia", "david.garcia@email.com", "+91-9876543214", "2024-02-15",
         "Supreme HQ, Bandra", "Drop-in Class", "Supreme HQ, Bandra", "Credit Card",
         "Unlimited Monthly", "Supreme HQ, Bandra", "5", "Mike Wilson", "Yes", "10",
         "Unlimited Monthly", "1", "12000", "Retained", "Converted", "February 2024", "unique_127",
         "Unlimited Monthly", "8"],
    ]
)

FALLBACK_GRIDS: Dict[str, Grid] = {
    "discounts": (),
    "sessions": (),
    "late_cancellations": LATE_CANCELLATIONS_FALLBACK,
    "new_clients": NEW_CLIENTS_FALLBACK,
}
