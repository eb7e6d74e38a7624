"""Queue message and batch result models."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class QueueModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageAttribute(QueueModel):
    """A typed per-message attribute, e.g. ``task_type``."""

    string_value: str | None = None
    data_type: str = Field(default="String")


class QueueRecord(QueueModel):
    """A single delivered queue message."""

    message_id: str = Field(..., min_length=1)
    body: str
    message_attributes: dict[str, MessageAttribute] = Field(default_factory=dict)


class QueueEvent(BaseModel):
    """A batch of queue messages delivered in one invocation."""

    records: list[QueueRecord] = Field(default_factory=list, alias="Records")

    model_config = ConfigDict(populate_by_name=True)


class DecodedMessage(BaseModel):
    """Normalized task payload extracted from a queue record."""

    message_id: str
    story_id: str = Field(..., min_length=1)
    story_prompt: str
    attributes: dict[str, MessageAttribute] = Field(default_factory=dict)


class BatchItemFailure(QueueModel):
    item_identifier: str


class BatchResult(QueueModel):
    """Failed item identifiers reported back to the queue for redelivery."""

    batch_item_failures: list[BatchItemFailure] = Field(default_factory=list)

    @classmethod
    def from_failed_ids(cls, failed_ids: list[str]) -> "BatchResult":
        return cls(batch_item_failures=[BatchItemFailure(item_identifier=i) for i in failed_ids])

    @property
    def failed_ids(self) -> list[str]:
        return [f.item_identifier for f in self.batch_item_failures]

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True)
