"""Derivation of per-step progress from the overall pipeline stage."""
from humorai.models.pipeline import (
    STEP_FOR_STAGE,
    STEP_ORDER,
    PipelineStage,
    PipelineStep,
    StepStatus,
)


def step_status(
    step: PipelineStep | str,
    stage: PipelineStage,
    failed_step: PipelineStep | None = None
) -> StepStatus:
    """
    Status of one pipeline step given the overall stage.

    :param step: The step to describe
    :param stage: Current overall stage of the run
    :param failed_step: The step that was executing when the run entered `error`, if any
    :return: pending, active, done or error
    """
    target = STEP_ORDER.index(PipelineStep(step))

    if stage == PipelineStage.ERROR:
        if failed_step is None:
            return StepStatus.PENDING
        failed = STEP_ORDER.index(failed_step)
        if target < failed:
            return StepStatus.DONE
        if target == failed:
            return StepStatus.ERROR
        return StepStatus.PENDING
    if stage == PipelineStage.DONE:
        return StepStatus.DONE
    if stage == PipelineStage.IDLE:
        return StepStatus.PENDING

    current = STEP_ORDER.index(STEP_FOR_STAGE[stage])
    if target < current:
        return StepStatus.DONE
    if target == current:
        return StepStatus.ACTIVE
    return StepStatus.PENDING


def all_step_statuses(stage: PipelineStage, failed_step: PipelineStep | None = None) -> list[StepStatus]:
    return [step_status(step, stage, failed_step) for step in STEP_ORDER]
