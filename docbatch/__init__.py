from docbatch.utils import AttrDict
from docbatch.cursor.batch_iterator import BatchIterator
from docbatch.cursor.criteria import FilterCriteria
from docbatch.cursor.cursor import Cursor
from docbatch.cursor.cursor import CursorState

__all__ = [
    "AttrDict",
    "BatchIterator",
    "Cursor",
    "CursorState",
    "FilterCriteria",
]
