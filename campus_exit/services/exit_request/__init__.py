from campus_exit.services.exit_request.lifecycle_service import (
    ExitRequestLifecycleService,
    make_pass_credential,
    parse_status,
)
from campus_exit.services.exit_request.pass_verification_service import (
    PassVerificationService,
    next_gate_action,
)

__all__ = [
    "ExitRequestLifecycleService",
    "PassVerificationService",
    "make_pass_credential",
    "next_gate_action",
    "parse_status",
]
