from collections.abc import Mapping

COLLECTION_NAME_ATTRIBUTE = "__collection_name__"


class AttrDict(dict):
    """
    Configuration mapping whose keys, nested mappings included, can also be
    read as attributes (ex. config.retry.max_attempts).
    """

    def __init__(self, dct: Mapping):
        super().__init__(
            (key, AttrDict(val) if isinstance(val, Mapping) else val)
            for key, val in dct.items()
        )

    def __getattr__(self, name: str):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(
                f"Configuration has no '{name}' entry, found: {list(self)}"
            ) from None


def default_collection_name(record_type: type) -> str:
    """
    Derive the collection a record type is stored in.

    A '__collection_name__' class attribute binds the type to a specific
    collection. Otherwise the class name, with its first letter lower-cased,
    is used (ex. SubmittedVariantEntity -> submittedVariantEntity).
    """
    bound_name = getattr(record_type, COLLECTION_NAME_ATTRIBUTE, None)
    if bound_name:
        return bound_name

    type_name = record_type.__name__
    return type_name[:1].lower() + type_name[1:]
