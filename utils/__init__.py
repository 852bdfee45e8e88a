"""
utils: parsing, normalisation, validation and error types.
"""
