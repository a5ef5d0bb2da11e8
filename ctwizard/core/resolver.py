"""Confirmation gates for values that differ from the recommended defaults."""
from typing import Callable, Optional

from ctwizard.core.logger import get_logger
from ctwizard.models.validation import ConfirmationTier, ValidationResult

logger = get_logger(__name__)


class ConflictResolver:
    """Asks the operator to sign off on non-standard values.

    SAFE needs one "yes", RISKY needs two ("is the network VLAN ready" and
    "accept anyway"), MANUAL never falls back silently and loops on manual
    entry until a value validates. A "no" anywhere returns False and the
    caller goes back to the top of its input loop.
    """

    def __init__(self, prompter):
        self.prompter = prompter

    def resolve(self, result: ValidationResult, label: str) -> bool:
        """Run the gates required by result.tier; True means commit the value."""
        if not result.accepted:
            return False

        if result.tier == ConfirmationTier.NONE:
            return True

        if result.tier == ConfirmationTier.SAFE:
            self.prompter.warn("There may be issues with your input:", result.notes,
                               "Proceed with caution - you have been advised.")
            if self.prompter.confirm(f"Accept your non-standard {label} '{result.value}'?"):
                logger.info(f"Operator accepted non-standard {label}: {result.value}")
                return True
            self.prompter.say("Try again...")
            return False

        if result.tier == ConfirmationTier.RISKY:
            self.prompter.warn("There are serious issues with your input:", result.notes,
                               "Proceed with caution - you have been advised.")
            if not self.prompter.confirm("Is your LAN network VLAN ready & enabled (L2/L3 switches)?"):
                self.prompter.say("Then best use a VLAN1 IPv4 address. Try again...")
                return False
            if self.prompter.confirm(f"Accept your non-standard {label} '{result.value}'?"):
                logger.info(f"Operator accepted risky {label}: {result.value} (VLAN {result.vlan_tag})")
                return True
            self.prompter.say("Try again...")
            return False

        # MANUAL results never carry a value to confirm
        return False

    def manual_entry(
        self,
        message: str,
        default: Optional[str],
        validate: Callable[[str], ValidationResult],
    ) -> ValidationResult:
        """Loop until the operator types a value that validates."""
        while True:
            answer = self.prompter.ask(message, default=default)
            self.prompter.say("Performing checks on your input (be patient, may take a while)...")
            result = validate(answer)
            if result.accepted:
                return result
            self.prompter.warn("There are problems with your input:", result.problems, "Try again...")
            default = answer
