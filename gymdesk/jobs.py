"""
Scheduled maintenance, meant for cron:

    python -m gymdesk.jobs update-statuses
    python -m gymdesk.jobs cleanup

Needs SUPABASE_URL and SUPABASE_SERVICE_KEY in the environment.
"""
import argparse
import logging
import os
import sys

from gymdesk.config import DEFAULT_TIMEZONE
from gymdesk.services.maintenance import update_class_statuses, cleanup_old_classes
from gymdesk.services.workflows import REMOTE_ERRORS
from gymdesk.utils.dates import now_in

logger = logging.getLogger("gymdesk.jobs")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="gymdesk.jobs")
    parser.add_argument("job", choices=["update-statuses", "cleanup"])
    parser.add_argument("--timezone", default=os.environ.get("GYM_TIMEZONE", DEFAULT_TIMEZONE))
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    # Imported late so --help works without Streamlit secrets or credentials
    from gymdesk.services.supabase_client import client_from_env

    try:
        client = client_from_env()
    except ValueError as e:
        logger.error("%s (set SUPABASE_URL and SUPABASE_SERVICE_KEY)", e)
        return 1

    now = now_in(args.timezone)
    try:
        if args.job == "update-statuses":
            summary = update_class_statuses(client, now)
            logger.info("Classes set to ongoing: %d, completed: %d", summary["ongoing"], summary["completed"])
        else:
            removed = cleanup_old_classes(client, now.date())
            logger.info("Deleted %d old completed classes", removed)
    except REMOTE_ERRORS:
        logger.exception("Job %s failed", args.job)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
