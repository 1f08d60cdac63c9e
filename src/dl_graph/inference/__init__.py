"""
Import of externally defined models.
"""
