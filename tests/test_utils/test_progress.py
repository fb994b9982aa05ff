"""Tests for step progress derivation."""
import pytest

from humorai.models.pipeline import PipelineStage, PipelineStep, StepStatus
from humorai.utils.progress import all_step_statuses, step_status

P, A, D, E = StepStatus.PENDING, StepStatus.ACTIVE, StepStatus.DONE, StepStatus.ERROR


class TestStepStatus:
    """Tests for step_status function."""

    @pytest.mark.parametrize('stage,expected', [
        (PipelineStage.IDLE, [P, P, P, P]),
        (PipelineStage.PRESIGNING, [A, P, P, P]),
        (PipelineStage.UPLOADING, [D, A, P, P]),
        (PipelineStage.REGISTERING, [D, D, A, P]),
        (PipelineStage.GENERATING, [D, D, D, A]),
        (PipelineStage.DONE, [D, D, D, D]),
    ])
    def test_running_and_terminal_stages(self, stage, expected):
        assert all_step_statuses(stage) == expected

    @pytest.mark.parametrize('failed_step,expected', [
        (PipelineStep.PRESIGN, [E, P, P, P]),
        (PipelineStep.UPLOAD, [D, E, P, P]),
        (PipelineStep.REGISTER, [D, D, E, P]),
        (PipelineStep.GENERATE, [D, D, D, E]),
    ])
    def test_error_marks_failed_step(self, failed_step, expected):
        """Steps before the failure are done, the failure is error, the rest pending."""
        assert all_step_statuses(PipelineStage.ERROR, failed_step) == expected

    def test_error_without_failed_step(self):
        assert all_step_statuses(PipelineStage.ERROR) == [P, P, P, P]

    def test_accepts_step_name(self):
        assert step_status('upload', PipelineStage.REGISTERING) == StepStatus.DONE

    def test_unknown_step_name(self):
        with pytest.raises(ValueError):
            step_status('resize', PipelineStage.IDLE)
