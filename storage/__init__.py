"""
storage: countdown markers (DuckDB) and the JSONL audit trail.
"""
