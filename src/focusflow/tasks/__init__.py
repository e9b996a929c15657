"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Priority)
- task_store.py: SQLite-backed storage + change listeners
- ledger.py: durable fired-flag ledger (exactly-once keys)
- time_state.py: today / overdue / missed classification
- evaluator.py: polling loop that fires reminders and escalates missed tasks
- runtime.py: clock, asyncio timer and view signals
"""
