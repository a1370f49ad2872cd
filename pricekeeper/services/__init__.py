"""
pricekeeper services.

Price policy, ledger persistence, reconciliation, and run bookkeeping.
"""

from pricekeeper.services.checkpoint import Checkpoint
from pricekeeper.services.ledger import (
    append_to_combined,
    escape_csv_field,
    format_ledger_row,
    load_ledger,
    save_ledger,
    truncate_file,
)
from pricekeeper.services.price_policy import adjust_price, format_price
from pricekeeper.services.reconciler import ReconcileResult, reconcile
from pricekeeper.services.set_registry import (
    SetRegistry,
    list_available_sets,
    load_set_code_map,
    load_set_names,
    save_selected_sets,
)

__all__ = [
    "Checkpoint",
    "ReconcileResult",
    "SetRegistry",
    "adjust_price",
    "append_to_combined",
    "escape_csv_field",
    "format_ledger_row",
    "format_price",
    "list_available_sets",
    "load_ledger",
    "load_set_code_map",
    "load_set_names",
    "reconcile",
    "save_ledger",
    "save_selected_sets",
    "truncate_file",
]
