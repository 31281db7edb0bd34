"""Validation rules shared by task configuration models.

Each rule is a plain function usable as a pydantic ``AfterValidator``.
"""

from __future__ import annotations

import re
from typing import Annotated

from pydantic import AfterValidator

DNS_LABEL_MAX_LENGTH = 63

RELEASE_NAME_PATTERN = re.compile(
    r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$"
)
NAMESPACE_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")


def validate_release_name(name: str | None) -> str:
    """Require a DNS-subdomain release name.

    Raises:
        ValueError: If the name is missing, empty, or malformed.
    """
    if not name:
        raise ValueError("release name is required")
    if not RELEASE_NAME_PATTERN.match(name):
        raise ValueError(
            f"invalid release name {name!r}: must consist of lower case alphanumeric "
            "characters, '-' or '.', and start and end with an alphanumeric character"
        )
    return name


def validate_optional_release_name(name: str | None) -> str | None:
    """Accept a blank release name as "let the server generate one"."""
    if name is None or not name.strip():
        return None
    return validate_release_name(name)


def validate_namespace(namespace: str | None) -> str | None:
    """Accept an unset namespace, otherwise require a DNS label.

    Raises:
        ValueError: If the namespace is too long or malformed.
    """
    if not namespace:
        return namespace
    if len(namespace) > DNS_LABEL_MAX_LENGTH:
        raise ValueError(
            f"invalid namespace {namespace!r}: must be no more than "
            f"{DNS_LABEL_MAX_LENGTH} characters"
        )
    if not NAMESPACE_PATTERN.match(namespace):
        raise ValueError(
            f"invalid namespace {namespace!r}: must consist of lower case alphanumeric "
            "characters or '-', and start and end with an alphanumeric character"
        )
    return namespace


ReleaseName = Annotated[str, AfterValidator(validate_release_name)]
OptionalReleaseName = Annotated[str | None, AfterValidator(validate_optional_release_name)]
Namespace = Annotated[str | None, AfterValidator(validate_namespace)]
