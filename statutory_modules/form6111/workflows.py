"""Form 6111 report lifecycle."""

from statutory_kernel.domain.workflow import Guard, Transition, Workflow
from statutory_kernel.logging_config import get_logger

logger = get_logger("modules.form6111.workflows")

REVIEWER_SIGNED_OFF = Guard("reviewer_signed_off", "A reviewer has checked the validation warnings")
SUBMITTED_TO_AUTHORITY = Guard("submitted_to_authority", "Report submitted to the tax authority")

STATUTORY_REPORT_WORKFLOW = Workflow(
    name="statutory_report",
    description="Form 6111 report lifecycle",
    initial_state="generated",
    states=("generated", "reviewed", "filed"),
    transitions=(
        Transition("generated", "reviewed", action="review", guard=REVIEWER_SIGNED_OFF),
        Transition("reviewed", "filed", action="file", guard=SUBMITTED_TO_AUTHORITY),
    ),
    terminal_states=("filed",),
)

logger.info(
    "form6111_workflow_registered",
    extra={
        "workflow": STATUTORY_REPORT_WORKFLOW.name,
        "states": list(STATUTORY_REPORT_WORKFLOW.states),
    },
)
