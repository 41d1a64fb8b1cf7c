"""Primary key generation (CUID2)."""

from cuid2 import Cuid

ID_LENGTH = 25

_cuid = Cuid(length=ID_LENGTH)


def generate_cuid() -> str:
    """Return a new CUID2 of ID_LENGTH characters.

    Used for automation ids and for every condition block and condition row
    written by the flattener.
    """
    return _cuid.generate()
