"""
lists_sync/api package marker.
"""
