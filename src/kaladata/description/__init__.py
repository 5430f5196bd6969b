"""Build description handling for the ``kaladata build`` command."""

from .loader import (
    BuildDescription,
    DescriptionError,
    load_description,
    parse_build_dict,
)

__all__ = [
    "BuildDescription",
    "DescriptionError",
    "load_description",
    "parse_build_dict",
]
