"""Services Layer — stores, the reminder scheduler and its drivers.

Invariants:
    - EventCache and NotificationLedger are the only owners of persisted state
    - ReminderScheduler is the only caller of ledger mutations (under its tick guard)

Design Decisions:
    - Wiring lives in reminder_runtime.py; routes and the one-shot tick share it
"""
