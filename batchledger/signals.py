"""
Change notifications.

ledger_posted is sent after the DB transaction of a ledger operation
commits. Listeners get:

    operation     "stock_in" | "stock_out" | "transfer" | "edit" |
                  "remove_batch" | "resume_transfer"
    warehouses    codes of the warehouses whose batches changed
    transactions  ids of the transactions written

Usage:
    from django.dispatch import receiver
    from batchledger.signals import ledger_posted

    @receiver(ledger_posted)
    def refresh_dashboard(sender, operation, warehouses, transactions, **kwargs):
        ...
"""

from django.dispatch import Signal

ledger_posted = Signal()
