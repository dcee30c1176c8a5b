import pytest
from pydantic import BaseModel

from docbatch.cursor.decoder import PydanticDecoder
from docbatch.exceptions import DecodeError


class ClusteredVariant(BaseModel):
    accession: int
    contig: str


class PlainRecord:
    def __init__(self, accession):
        self.accession = accession


def test_decode_pydantic_model_ignores_store_fields():
    record = PydanticDecoder().decode(
        {"_id": "abc", "accession": 3, "contig": "chr1"}, ClusteredVariant
    )

    assert record == ClusteredVariant(accession=3, contig="chr1")


def test_decode_plain_class():
    record = PydanticDecoder().decode({"accession": 3}, PlainRecord)

    assert record.accession == 3


@pytest.mark.parametrize(
    "raw_record, record_type",
    [
        pytest.param({"accession": "rs3"}, ClusteredVariant, id="invalid field"),
        pytest.param({"accession": 3}, ClusteredVariant, id="missing field"),
        pytest.param({"contig": "chr1"}, PlainRecord, id="unexpected keyword"),
        pytest.param(["not", "a", "document"], ClusteredVariant, id="not a document"),
    ],
)
def test_decode_error(raw_record, record_type):
    with pytest.raises(DecodeError) as exc_info:
        PydanticDecoder().decode(raw_record, record_type)

    assert exc_info.value.record_type is record_type
    assert exc_info.value.raw_record == raw_record
    assert record_type.__name__ in exc_info.value.message
