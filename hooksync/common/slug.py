"""Slug utilities.

Repository slugs are GitHub identifiers in ``owner/name`` format, and
BuildConfig keys share the same ``namespace/name`` shape. They are not
filesystem paths, even though they use ``/`` as a separator.
"""

from __future__ import annotations


def repo_slug(owner: str, name: str) -> str:
    """Build a slug from owner and name.

    Examples
    --------
    >>> repo_slug("octo", "reef")
    'octo/reef'

    """
    return f"{owner}/{name}"
