"""Derive class and test names from a fully-qualified test name."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

DEFAULT_SEPARATORS: tuple[str, ...] = ("#", ".")
UNKNOWN_CLASS = "UnknownClass"


def split_qualified_name(
    qualified_name: str,
    separators: Sequence[str] = DEFAULT_SEPARATORS,
    unknown_class: str = UNKNOWN_CLASS,
) -> tuple[str, str]:
    """Split *qualified_name* into ``(class_name, test_name)``.

    The first separator in *separators* that occurs in the name is used, and
    the name is divided at its rightmost occurrence. So with the default
    separators ``tests.test_login#test_ok`` splits on ``#`` and
    ``com.acme.LoginTest.testLogin`` on the last ``.``.

    A name without any separator yields *unknown_class* and the whole name.
    """
    name = qualified_name.strip()
    for separator in separators:
        if not separator or separator not in name:
            continue
        class_name, _, test_name = name.rpartition(separator)
        if class_name and test_name:
            return class_name, test_name
    return unknown_class, name
