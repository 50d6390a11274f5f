"""
Background Jobs - scheduled maintenance of the token store
"""
import atexit

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
import logging

logger = logging.getLogger('main')


def purge_expired_tokens(app):
    """Delete expired resumption tokens, returns how many were removed"""
    from repositories.token_repository import TokenRepository

    with app.app_context():
        clock = app.extensions["oai"].clock
        deleted = TokenRepository.purge_expired(clock())
        logger.info(f"Purged {deleted} expired resumption tokens")
        return deleted


class JobScheduler:
    """Background job manager"""

    def __init__(self):
        self.scheduler = BackgroundScheduler()
        self._jobs_registered = False

    def init_app(self, app, purge_interval):
        """Register the jobs for app and start the scheduler"""
        self._register_jobs(app, purge_interval)
        self.scheduler.start()
        atexit.register(self.shutdown)
        app.extensions["oai_scheduler"] = self
        logger.info("Job scheduler initialized")

    def _register_jobs(self, app, purge_interval):
        if self._jobs_registered:
            return

        # Expired token purge (every purge_interval minutes)
        self.scheduler.add_job(
            func=purge_expired_tokens,
            trigger=IntervalTrigger(minutes=purge_interval),
            id='purge_resumption_tokens',
            name='Purge expired resumption tokens',
            args=[app],
            max_instances=1,
            coalesce=True,
        )

        self._jobs_registered = True
        logger.info("Background jobs registered")

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Job scheduler shutdown")
