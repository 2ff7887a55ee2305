"""
Sigil - Signing keys and identity context.
"""
