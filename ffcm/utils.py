"""Utility functions for file I/O, money rounding and timestamps."""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from .constants import MONEY_DECIMAL_PLACES

T = TypeVar('T', bound=BaseModel)
logger = logging.getLogger('ffcm.utils')

_MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_DECIMAL_PLACES)


def round_money(value: float) -> float:
    """
    Round a monetary amount to cents, half away from zero.

    Goes through Decimal so that 2.675 rounds to 2.68 rather than the
    binary-float 2.67. Rounding an already-rounded amount returns it unchanged,
    which keeps repeated season escalation stable.

    Example:
        round_money(1150000.005)  # 1150000.01
    """
    rounded = Decimal(str(value)).quantize(_MONEY_QUANTUM, rounding=ROUND_HALF_UP)
    return float(rounded)


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


def load_json(
    path: Path | str,
    schema: type[T] | None = None,
) -> Any | T:
    """
    Load JSON file with optional schema validation.

    Args:
        path: Path to JSON file (str or Path object)
        schema: Optional Pydantic model to validate against

    Returns:
        Parsed JSON (validated if schema provided)

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If JSON is malformed
        ValueError: If schema validation fails

    Example:
        from ffcm.schemas import LeagueFile
        league = load_json('data/leagues/bad-place.json', schema=LeagueFile)
    """
    path = Path(path)

    logger.debug(f'Loading JSON from: {path}')

    if not path.exists():
        logger.error(f'File not found: {path}')
        raise FileNotFoundError(f'File not found: {path}')

    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
        logger.debug(f'Successfully loaded JSON from: {path}')
    except json.JSONDecodeError as e:
        logger.error(f'Invalid JSON in {path}: {e.msg} at position {e.pos}')
        raise json.JSONDecodeError(f'Invalid JSON in {path}: {e.msg}', e.doc, e.pos) from e

    if schema:
        try:
            validated = schema.model_validate(data)
            logger.debug(f'Schema validation passed for: {path}')
            return validated
        except ValidationError as e:
            logger.error(f'Schema validation failed for {path}: {e}')
            raise ValueError(f'Schema validation failed for {path}:\n{e}') from e

    return data


def save_json(
    path: Path | str,
    data: Any,
    indent: int = 2,
    create_dirs: bool = True,
) -> None:
    """
    Save data as JSON file.

    The file is written to a temporary sibling first and moved into place with
    os.replace, so readers see either the old or the new content, never a
    half-written file.

    Args:
        path: Path to write to (str or Path object)
        data: Data to serialize (must be JSON-serializable or Pydantic model)
        indent: Indentation level (default: 2 spaces)
        create_dirs: Create parent directories if they don't exist (default: True)

    Raises:
        TypeError: If data is not JSON-serializable
        OSError: If file cannot be written
    """
    path = Path(path)

    logger.debug(f'Saving JSON to: {path}')

    if create_dirs:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f'Failed to create directory {path.parent}: {e}')
            raise

    # Handle Pydantic models
    json_data = data.model_dump(mode='json', by_alias=True) if isinstance(data, BaseModel) else data

    try:
        payload = json.dumps(json_data, indent=indent, ensure_ascii=False)
    except TypeError as e:
        logger.error(f'Data is not JSON-serializable: {e}')
        raise TypeError(f'Data is not JSON-serializable: {e}') from e

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f'.{path.name}.', suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(payload)
        os.replace(tmp_name, path)
        logger.debug(f'Successfully saved JSON to: {path}')
    except OSError as e:
        logger.error(f'Failed to write file {path}: {e}')
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
