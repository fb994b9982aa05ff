"""File I/O utilities for the HumorAI client."""
import json
import mimetypes
import os
from collections.abc import Sequence

from loguru import logger
from pydantic import BaseModel

from humorai.exceptions import HumorAIError
from humorai.models.pipeline import ImageFile

# Not every platform's mime table knows these
mimetypes.add_type('image/heic', '.heic')
mimetypes.add_type('image/webp', '.webp')


class IOError(HumorAIError):
    """Raised when file I/O operations fail."""
    pass


def build_path(*args: str, make_dir: bool = True) -> str:
    """
    Join path components and optionally create parent directories.

    :param args: Path components to join
    :param make_dir: If True, create parent directories (default True)
    :return: The joined path
    :raises IOError: If directory creation fails
    """
    path = os.path.join(*args)
    if make_dir:
        parent_dir = os.path.dirname(path)
        if parent_dir:
            try:
                os.makedirs(parent_dir, exist_ok=True)
            except PermissionError as e:
                raise IOError(f"Permission denied creating directory '{parent_dir}': {e}") from e
            except OSError as e:
                raise IOError(f"Failed to create directory '{parent_dir}': {e}") from e
    return path


def guess_content_type(path: str) -> str:
    """Declared media type for a path, from its extension. Unknown extensions give 'application/octet-stream'."""
    content_type, _ = mimetypes.guess_type(path)
    return content_type or 'application/octet-stream'


def load_image_file(path: str, content_type: str | None = None) -> ImageFile:
    """
    Read a local file into an ImageFile.

    The media type is only declared, never sniffed from the bytes, matching what a browser
    file picker reports.

    :param path: File to read
    :param content_type: Declared media type, guessed from the extension when omitted
    :return: The file handle
    :raises IOError: If the file cannot be read
    """
    try:
        with open(path, 'rb') as f:
            data = f.read()
    except FileNotFoundError as e:
        raise IOError(f"File not found: '{path}'") from e
    except PermissionError as e:
        raise IOError(f"Permission denied reading '{path}': {e}") from e
    except OSError as e:
        raise IOError(f"Failed to read '{path}': {e}") from e

    return ImageFile(
        name=os.path.basename(path),
        content_type=content_type or guess_content_type(path),
        data=data,
    )


def write_model(model: BaseModel | Sequence[BaseModel], path: str) -> None:
    """
    Write a Pydantic model or sequence of models to a JSON file.

    :param model: A single model or sequence of models to serialize
    :param path: File path to write to
    :raises IOError: If file write fails
    """
    try:
        with open(path, 'w') as out:
            if isinstance(model, Sequence) and not isinstance(model, BaseModel):
                json.dump([m.model_dump(mode='json') for m in model], out, indent=2)
            else:
                json.dump(model.model_dump(mode='json'), out, indent=2)
        logger.debug(f"Wrote model data to {path}")
    except PermissionError as e:
        raise IOError(f"Permission denied writing to '{path}': {e}") from e
    except OSError as e:
        raise IOError(f"Failed to write to '{path}': {e}") from e
