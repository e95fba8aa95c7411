from medcheck.services.exceptions import PreconditionError


class InvalidTransitionError(PreconditionError):
    """Raised when a transition is not valid in the current workflow state."""


class WorkflowBusyError(PreconditionError):
    """Raised when an operation is triggered while another one is in flight."""
