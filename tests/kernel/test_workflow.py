"""Tests for the workflow value objects and the statutory report lifecycle."""

import pytest

from statutory_kernel.domain.workflow import Transition, Workflow
from statutory_modules.form6111.workflows import STATUTORY_REPORT_WORKFLOW


class TestWorkflowDefinition:
    def test_initial_state_must_be_a_state(self):
        with pytest.raises(ValueError, match="initial state"):
            Workflow(
                name="w",
                description="",
                initial_state="missing",
                states=("a",),
                transitions=(),
            )

    def test_transition_to_unknown_state_rejected(self):
        with pytest.raises(ValueError, match="unknown state"):
            Workflow(
                name="w",
                description="",
                initial_state="a",
                states=("a",),
                transitions=(Transition("a", "b", action="go"),),
            )

    def test_terminal_state_cannot_have_outgoing_transition(self):
        with pytest.raises(ValueError, match="terminal"):
            Workflow(
                name="w",
                description="",
                initial_state="a",
                states=("a", "b"),
                transitions=(Transition("b", "a", action="reopen"),),
                terminal_states=("b",),
            )


class TestStatutoryReportWorkflow:
    def test_lifecycle_is_linear(self):
        wf = STATUTORY_REPORT_WORKFLOW
        assert wf.initial_state == "generated"
        assert wf.allowed_targets("generated") == ("reviewed",)
        assert wf.allowed_targets("reviewed") == ("filed",)
        assert wf.allowed_targets("filed") == ()

    def test_transitions_carry_actions_and_guards(self):
        review = STATUTORY_REPORT_WORKFLOW.find_transition("generated", "reviewed")
        file_ = STATUTORY_REPORT_WORKFLOW.find_transition("reviewed", "filed")
        assert review.action == "review"
        assert review.guard.name == "reviewer_signed_off"
        assert file_.action == "file"
        assert file_.guard.name == "submitted_to_authority"

    @pytest.mark.parametrize(
        "from_state, to_state",
        [
            ("generated", "filed"),
            ("reviewed", "generated"),
            ("filed", "reviewed"),
            ("generated", "generated"),
        ],
    )
    def test_undefined_transitions(self, from_state, to_state):
        assert STATUTORY_REPORT_WORKFLOW.find_transition(from_state, to_state) is None
