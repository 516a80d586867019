# util/errors.py
import logging
from config.settings import settings

logger = logging.getLogger(__name__)


class ContractViolation(AssertionError):
    # Flow: raised only under STRICT_ASSERTS; production builds log and refuse.
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def contract_violation(message: str) -> None:
    """
    Report a broken programming contract (unknown enum, NULL argument, failed
    delete verification). Always logged; raised only when STRICT_ASSERTS is on.
    """
    logger.error("contract.violation msg=%s", message)
    if settings.STRICT_ASSERTS:
        raise ContractViolation(message)
