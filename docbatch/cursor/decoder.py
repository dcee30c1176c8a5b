from abc import ABC
from abc import abstractmethod
from typing import Any
from typing import Mapping

from pydantic import BaseModel
from pydantic import ValidationError

from docbatch.exceptions import DecodeError


class Decoder(ABC):
    @abstractmethod
    def decode(self, raw_record: Any, record_type: type) -> Any:
        """
        Map a raw record, as returned by the store, to an instance of
        'record_type'. Raises DecodeError when the mapping is not possible.
        """


class PydanticDecoder(Decoder):
    """
    Decodes raw documents into pydantic models using model validation.
    Any other record type is instantiated with the document fields as keyword
    arguments.
    """

    def decode(self, raw_record: Any, record_type: type) -> Any:
        if not isinstance(raw_record, Mapping):
            raise DecodeError(
                record_type,
                raw_record,
                TypeError(f"Expected a document, got '{type(raw_record).__name__}'."),
            )

        try:
            if issubclass(record_type, BaseModel):
                return record_type.model_validate(raw_record)
            return record_type(**raw_record)
        except (ValidationError, TypeError, ValueError) as exc:
            raise DecodeError(record_type, raw_record, exc) from exc
