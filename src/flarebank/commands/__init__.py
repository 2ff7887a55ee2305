"""
Commands - CLI command implementations.

- balance:  Show bank liquidity and the personal balance
- deposit:  Deposit native tokens into the bank
- withdraw: Withdraw native tokens from the bank
"""
