"""
API server package: read-only HTTP interface over wallet lookups.
"""
