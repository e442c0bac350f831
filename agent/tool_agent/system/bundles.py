"""
Application bundle path resolution.
"""
from pathlib import Path
from typing import Optional, Union

DEFAULT_BUNDLE_SUFFIX = ".app"


def find_app_bundle(path: Union[str, Path], suffix: str = DEFAULT_BUNDLE_SUFFIX) -> Optional[Path]:
    """
    Find the nearest enclosing application bundle of a path.

    The path itself and then each of its ancestors are checked, deepest
    first, so for ``/Applications/A.app/Contents/Helpers/B.app/Contents/MacOS/b``
    the result is ``.../Helpers/B.app``. Nothing is read from disk.

    :param path: Executable or file path inside a bundle
    :type path: Union[str, Path]
    :param suffix: Directory name suffix identifying a bundle
    :type suffix: str
    :return: The bundle directory, or None if no component carries the suffix
    :rtype: Optional[Path]
    """
    candidate = Path(path)
    for component in (candidate, *candidate.parents):
        name = component.name
        if name != suffix and name.endswith(suffix):
            return component
    return None
