"""
Core - Contract-interaction state manager.

- reader:    point-in-time ledger reads and atomic snapshot refresh
- lifecycle: single in-flight transaction state machine
- models:    requests, call specs, handles and confirmation signals
- errors:    error taxonomy shared by the core and the chain layer
"""
