"""
engine: billing period arithmetic, coverage, ledgers, statements and the monthly countdown job.
"""
