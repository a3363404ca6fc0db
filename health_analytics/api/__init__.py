"""
HTTP surface of the Health Analytics service.
"""
