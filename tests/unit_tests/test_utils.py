import pytest

from docbatch import AttrDict
from docbatch.utils import default_collection_name


def test_attrdict_nested_access():
    config = AttrDict({"retry": {"max_attempts": 5}, "log_level": "INFO"})

    assert config.retry.max_attempts == 5
    assert config["retry"]["max_attempts"] == 5
    assert config.log_level == "INFO"


def test_attrdict_missing_entry():
    config = AttrDict({"retry": {"max_attempts": 5}})

    with pytest.raises(AttributeError, match="'backoff_period'"):
        config.retry.backoff_period
    assert getattr(config, "session", None) is None


class SubmittedVariantEntity:
    pass


class DbsnpSubmittedVariantEntity:
    __collection_name__ = "dbsnpSubmittedVariantEntity_custom"


def test_default_collection_name_from_class_name():
    assert default_collection_name(SubmittedVariantEntity) == "submittedVariantEntity"


def test_default_collection_name_bound_by_attribute():
    assert (
        default_collection_name(DbsnpSubmittedVariantEntity)
        == "dbsnpSubmittedVariantEntity_custom"
    )
