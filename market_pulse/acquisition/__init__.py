"""
Acquisition layer — TTL cache, ordered provider fallback and synthetic
placeholders behind ``AcquisitionService``.
"""
