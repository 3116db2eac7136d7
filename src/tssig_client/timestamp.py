"""High-level file timestamping.

Hashes a file, asks the signing service for a signed timestamp over the
digest, and stores the result next to the file as ``<file>.sts.json``.

Usage::

    from tssig_client.client import TimestampClient
    from tssig_client.timestamp import timestamp_file

    with TimestampClient("https://tssig.example.com/") as client:
        result = timestamp_file("/srv/contracts/nda.pdf", client)
        print(result.sts_path)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from .client import TimestampClient
from .digest import hash_file
from .guard import parse_signed_timestamp
from .models import HashAlgorithm, SignedTimeStamp, TimestampResult

logger = logging.getLogger("tssig_client.timestamp")

STS_SUFFIX = ".sts.json"


def sts_path_for(file_path: Union[str, Path]) -> Path:
    """Return the path where the signed timestamp for ``file_path`` is saved."""
    path = Path(file_path)
    return path.with_name(path.name + STS_SUFFIX)


def timestamp_file(
    file_path: Union[str, Path],
    client: TimestampClient,
    algorithm: HashAlgorithm = HashAlgorithm.SHA256,
    save: bool = True,
) -> TimestampResult:
    """Hash a file, have it signed, and optionally save the signed timestamp.

    Args:
        file_path: File to timestamp.
        client: Client used to reach the signing service.
        algorithm: Hash algorithm for the file digest.
        save: If True, write ``<file>.sts.json`` next to the file.

    Returns:
        :class:`TimestampResult` describing the signed file.

    Raises:
        FileNotFoundError: If ``file_path`` does not exist.
        TimestampClientError: Whatever ``client.sign`` raises.
    """
    path = Path(file_path).resolve()
    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    digest = hash_file(path, algorithm)
    logger.info("Requesting signed timestamp for %s from %s", path.name, client.config.endpoint)
    sts = client.sign(digest)

    result = TimestampResult(
        file_path=str(path),
        file_hash=digest.hex(),
        hash_algorithm=algorithm,
        endpoint=client.config.endpoint,
        signed_timestamp=sts,
    )

    if save:
        target = sts_path_for(path)
        target.write_text(sts.model_dump_json(indent=2), encoding="utf-8")
        result.sts_path = str(target)
        logger.info("Saved signed timestamp to %s", target)

    return result


def load_sts_file(sts_path: Union[str, Path]) -> SignedTimeStamp:
    """Load a signed timestamp saved by :func:`timestamp_file`.

    Raises:
        FileNotFoundError: If the file does not exist.
        MalformedResponseError: If the file is not a JSON object.
    """
    path = Path(sts_path).resolve()
    if not path.exists():
        raise FileNotFoundError(f"Signed timestamp file not found: {sts_path}")
    return parse_signed_timestamp(path.read_bytes())
