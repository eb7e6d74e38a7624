"""Batch submission endpoint."""

from fastapi import APIRouter, Body, Depends

from storytext.api.dependencies import get_runner
from storytext.pipeline.batch import BatchRunner

router = APIRouter(prefix="/api/v1", tags=["batches"])


@router.post("/batches")
def run_batch(event: dict = Body(...), runner: BatchRunner = Depends(get_runner)):
    """Run a queue event through the pipeline and report failed message ids.

    The raw body goes to the runner unvalidated so that a malformed batch is
    reported as all-failed rather than rejected.
    """
    return runner.run(event).to_response()
