# jobs/expire_invitations.py

import logging
from typing import Optional

from sqlalchemy.orm import sessionmaker

from database import build_engine, build_session_factory, session_scope
from services.invitation_workflow import InvitationWorkflow
from utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def run(session_factory: Optional[sessionmaker] = None) -> int:
    """
    CLI entry point for the invitation expiry sweep.
    Meant to be scheduled as a cron job; readers already treat stale
    invitations as expired, so a missed run is harmless.
    """
    if session_factory is None:
        session_factory = build_session_factory(build_engine())

    with session_scope(session_factory) as db:
        count = InvitationWorkflow(db).expire_stale_invitations()

    logger.info("Invitation expiry sweep finished: %d expired", count)
    return count


if __name__ == "__main__":
    setup_logging()
    run()
