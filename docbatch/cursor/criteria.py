import copy
from typing import Any
from typing import Dict

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator


class FilterCriteria(BaseModel):
    """
    Read predicate, in the store's query language, selecting the records
    the cursor streams (ex. {"rs": {"$exists": False}}).

    The predicate is copied on construction and on every read, so it cannot
    be changed once the criteria object exists.
    """

    predicate: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @field_validator("predicate")
    @classmethod
    def copy_predicate(cls, predicate):
        return copy.deepcopy(predicate)

    def as_query(self) -> Dict[str, Any]:
        return copy.deepcopy(self.predicate)
