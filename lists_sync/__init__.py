"""
lists_sync package marker.
"""
