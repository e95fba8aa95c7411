from medcheck.workflow.controller import WorkflowController, build_controller
from medcheck.workflow.models import DetailPanel, ImageAsset, Step, Timing, WorkflowState
from medcheck.workflow.reducer import reduce

__all__ = [
    "DetailPanel",
    "ImageAsset",
    "Step",
    "Timing",
    "WorkflowController",
    "WorkflowState",
    "build_controller",
    "reduce",
]
