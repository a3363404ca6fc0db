"""
Core infrastructure: configuration, logging, errors, DI and the metric registry.
"""
