from pathlib import Path
from typing import Union
from urllib.parse import urlparse


def to_file_url(path: Union[Path, str]) -> str:
    """
    Turn a file path into a ``file://`` URL.

    Relative paths resolve against the current working directory.
    Values that already carry a URL scheme are returned unchanged.

    :param path: File path or URL.
    :return: URL suitable for the host's navigation request.
    """
    text = str(path)
    scheme = urlparse(text).scheme
    # single letters are Windows drive names, not schemes
    if len(scheme) > 1:
        return text
    return Path(text).resolve().as_uri()
