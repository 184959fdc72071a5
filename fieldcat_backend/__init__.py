"""
Media metadata field catalog backend.
"""
