"""
Chain - JSON-RPC collaborators for the bank contract.

Provides the query service, local-key broadcaster and receipt watcher
consumed by the core. Uses httpx + eth-account + eth-abi instead of
the heavyweight web3.py.
"""
