"""Data transformers.

Converts ORM models into the dictionaries returned in API envelopes.
"""

from .response import (
    admin_log_to_dict,
    amendment_to_dict,
    application_to_dict,
    closure_to_dict,
    menu_item_to_dict,
    report_to_dict,
    review_to_dict,
    stall_to_dict,
    user_to_dict,
)

__all__ = [
    "admin_log_to_dict",
    "amendment_to_dict",
    "application_to_dict",
    "closure_to_dict",
    "menu_item_to_dict",
    "report_to_dict",
    "review_to_dict",
    "stall_to_dict",
    "user_to_dict",
]
