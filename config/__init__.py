"""
config: engine settings and status mappings.
"""
