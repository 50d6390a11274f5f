"""
Jobs package - background and scheduled tasks
"""
from jobs.scheduler import JobScheduler, purge_expired_tokens

__all__ = ['JobScheduler', 'purge_expired_tokens']
