"""
Basic usage example of KeyAuthClient.

This example initializes a session, activates a license key and reads an
application variable. Application settings come from the environment
(KEYLIC_APP_NAME, KEYLIC_OWNER_ID, KEYLIC_APP_SECRET, KEYLIC_APP_VERSION);
point KEYLIC_API_URL at ``keylic serve-mock`` to try it locally.
"""

import logging
import sys
from pathlib import Path

# Add the project root to the path to import keylic
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from keylic.client.client import KeyAuthClient
from keylic.common.exceptions import ApplicationError, IntegrityError


def error_callback(error: Exception) -> None:
    """Treat tampered responses as fatal."""
    if isinstance(error, IntegrityError):
        logging.getLogger(__name__).critical("Response tampered with, exiting")
        sys.exit(3)


def main() -> None:
    # Configure logging
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    client = KeyAuthClient(log_level=logging.INFO, on_error_callback=error_callback)

    try:
        info = client.init()
        logger.info("Session %s started, %s users online", client.session_id, info.num_online_users)

        key = input("License key: ")
        account = client.license(key)
        logger.info(
            "Logged in as %s, %s subscription expires %s",
            account.username,
            account.subscription,
            account.expiry,
        )

        logger.info("Message of the day: %s", client.var("motd"))
        client.log("basic usage example finished")
    except ApplicationError as e:
        logger.error("Rejected: %s", e.message)
        sys.exit(1)


if __name__ == "__main__":
    main()
