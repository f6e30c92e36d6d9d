"""
Periodic maintenance for the refresh-token table.

Meant to be triggered by an external scheduler (cron, a k8s CronJob, ...):

    fitness-auth-cleanup
"""
import logging
from typing import Optional

from .config import settings
from .db import init_db
from .service import AuthService

logger = logging.getLogger(__name__)


def run_cleanup(service: Optional[AuthService] = None) -> int:
    """Revoke expired refresh tokens and return how many were revoked."""
    if service is None:
        from .dependencies import get_auth_service

        service = get_auth_service()
    return service.cleanup_expired_tokens()


def main() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    init_db()
    revoked = run_cleanup()
    logger.info("Maintenance finished, revoked=%d", revoked)


if __name__ == "__main__":
    main()
