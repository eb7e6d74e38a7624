"""Story status endpoint."""

from fastapi import APIRouter, Depends

from storytext.api.dependencies import get_record_store
from storytext.models.errors import StoryNotFoundError
from storytext.storage.records import TaskRecordStore

router = APIRouter(prefix="/api/v1", tags=["stories"])


@router.get("/stories/{story_id}")
def get_story(story_id: str, store: TaskRecordStore = Depends(get_record_store)):
    """Get a story's metadata record and its tasks."""
    metadata = store.get_metadata(story_id)
    if metadata is None:
        raise StoryNotFoundError(story_id)

    return {
        "metadata": metadata.model_dump(mode="json", by_alias=True),
        "tasks": [
            task.model_dump(mode="json", by_alias=True) for task in store.list_tasks(story_id)
        ],
    }
