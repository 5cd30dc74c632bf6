"""JSON document IO with atomic replacement on write."""

import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any

from clawconf.store.errors import ConfigNotFoundError, ConfigValidationError, PersistenceError

logger = logging.getLogger(__name__)


def read_json_document(path: Path) -> dict[str, Any]:
    """Read a JSON object from disk."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigNotFoundError(path) from e
    except json.JSONDecodeError as e:
        raise ConfigValidationError("document", "$", f"invalid JSON: {e}", file=path) from e
    except UnicodeDecodeError as e:
        raise ConfigValidationError("document", "$", f"not UTF-8 text: {e}", file=path) from e

    if not isinstance(data, dict):
        raise ConfigValidationError("document", "$", "top level must be an object", file=path)
    return data


def _fsync_dir(parent: Path) -> None:
    try:
        fd = os.open(parent, os.O_RDONLY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        pass
    finally:
        os.close(fd)


def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """
    Write a JSON object via a temp file and ``os.replace``.

    Either the whole new document lands or the old file stays as it was.
    """
    body = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    parent = path.parent
    tmp = parent / f".{path.name}.{os.getpid()}.{uuid.uuid4().hex}.tmp"
    try:
        parent.mkdir(parents=True, exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(body)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
        _fsync_dir(parent)
    except OSError as e:
        raise PersistenceError(path, e) from e
    finally:
        try:
            tmp.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temp file {tmp}: {e}")

    logger.info(f"Saved {path}")
