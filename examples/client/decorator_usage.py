"""
Guarding features with license decorators.

Features decorated with requires_active_license only run once the client
holds the facts of a verified login, license activation or registration.
"""

import logging
import sys
from pathlib import Path

# Add the project root to the path to import keylic
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from keylic.client.client import KeyAuthClient
from keylic.common.decorators import license_protected, requires_active_license
from keylic.common.exceptions import KeyAuthError, LicenseInactiveError

client = KeyAuthClient(log_level=logging.WARNING)


@requires_active_license(client, "Export requires an active license")
def export_report() -> str:
    return "report exported"


@requires_active_license(client, raise_exception=False)
def show_tips() -> str:
    return "tip of the day"


class Editor:
    def __init__(self, auth: KeyAuthClient):
        self.auth = auth

    @license_protected(lambda self: self.auth)
    def save_as_pdf(self) -> str:
        return "saved"


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    # Not logged in yet
    logger.info("Tips: %s", show_tips())
    try:
        export_report()
    except LicenseInactiveError as e:
        logger.info("Blocked: %s", e)

    try:
        client.init()
        client.license(input("License key: "))
    except KeyAuthError:
        logger.exception("Activation failed")
        sys.exit(1)

    logger.info("Export: %s", export_report())
    logger.info("Editor: %s", Editor(client).save_as_pdf())


if __name__ == "__main__":
    main()
