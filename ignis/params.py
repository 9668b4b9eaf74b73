"""Extraction of path parameters from route patterns."""

from __future__ import annotations

import re

_PATH_PARAM = re.compile(r"{(.+?)}")


def parse_path_params(path: str) -> list[str]:
    """Return the names of the path parameters in ``path``, in order.

    ``/item/{user}/{id}`` gives ``["user", "id"]``.
    """
    return [match.group(0).strip("{}") for match in _PATH_PARAM.finditer(path)]