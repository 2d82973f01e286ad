"""
Background tasks for Celery workers.
"""
