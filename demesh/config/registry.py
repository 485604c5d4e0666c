"""
Parameter name bookkeeping for configuration blocks.

Each block of the configuration document accepts a fixed list of parameter
names, each at most once. A ParameterRegistry tracks the names accepted so
far within one parse call.
"""

from typing import Iterable, Set

from demesh.errors import DuplicateParameterError, InvalidParameterNameError


def check_parameter_name(
    block_name: str,
    prior_names: Set[str],
    valid_names: Iterable[str],
    candidate: str,
) -> None:
    """
    Validate a parameter name and record it.

    Args:
        block_name: Block the name appears in (used in error messages)
        prior_names: Names already accepted in this block; updated on success
        valid_names: Names the block accepts
        candidate: Name to check

    Raises:
        DuplicateParameterError: If candidate is already in prior_names
        InvalidParameterNameError: If candidate is not a valid name
    """
    if candidate in prior_names:
        raise DuplicateParameterError(block_name, candidate)
    if candidate not in valid_names:
        raise InvalidParameterNameError(block_name, candidate)
    prior_names.add(candidate)


class ParameterRegistry:
    """
    Valid and already-seen parameter names for one block.

    Attributes:
        block_name: Name of the block, as it appears in the document
        valid_names: Names the block accepts
        strict: If False, unknown names are accepted (duplicates are still
            rejected) and left for the block's value handler to ignore
    """

    def __init__(self, block_name: str, valid_names: Iterable[str], strict: bool = True):
        self.block_name = block_name
        self.valid_names = frozenset(valid_names)
        self.strict = strict
        self.seen: Set[str] = set()

    def check(self, candidate: str) -> None:
        """Validate candidate and record it as seen."""
        if self.strict:
            check_parameter_name(self.block_name, self.seen, self.valid_names, candidate)
        elif candidate in self.seen:
            raise DuplicateParameterError(self.block_name, candidate)
        else:
            self.seen.add(candidate)

    def is_known(self, name: str) -> bool:
        return name in self.valid_names

    def __contains__(self, name: str) -> bool:
        return name in self.seen

    def __len__(self) -> int:
        return len(self.seen)
