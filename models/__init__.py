"""
models: lease, invoice, payment and ledger dataclasses.
"""
