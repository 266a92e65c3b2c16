"""
Texture reference resolution against a loose set of image files.

Models often reference textures by a path that only existed on the author's
machine ("C:\\work\\tex\\Wall-Diffuse.PNG"). The user hands us a flat set of
files instead, so references are matched on the last path segment with
progressively looser keys:

1. exact name
2. lowercased name
3. name with '_' → '-'
4. name with '-' → '_'
5. lowercased stem (extension dropped), same separator variants

An image reference that still does not match gets a 1x1 placeholder so the
model keeps displaying. Anything that is not an image is left to the
decoder's default resolution.
"""

import io
import logging
import os
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from PIL import Image
from trimesh.resolvers import Resolver

from .errors import UnresolvedTexture

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tga",
    ".tif", ".tiff", ".webp", ".dds",
})


def is_image_name(name: str) -> bool:
    return os.path.splitext(name)[1].lower() in IMAGE_EXTENSIONS


def last_segment(path: str) -> str:
    """Final component of a path written with either separator."""
    return re.split(r"[\\/]", str(path).strip())[-1]


def separator_variants(base: str) -> List[str]:
    """`base` with '_' → '-' and with '-' → '_'."""
    return [base.replace("_", "-"), base.replace("-", "_")]


def name_keys(name: str) -> List[str]:
    """Primary index keys for a file name, in lookup order."""
    base, ext = os.path.splitext(name)
    keys = [name, name.lower()]
    keys.extend(variant + ext for variant in separator_variants(base))
    return keys


def stem_keys(name: str) -> List[str]:
    """Secondary (basename-only) index keys for a file name, in lookup order."""
    stem = os.path.splitext(name)[0].lower()
    return [stem] + separator_variants(stem)


class TextureHandle:
    """
    A resolved image: where it came from plus its bytes, read on demand.

    Handles belong to one load session and are released with it; reading a
    released handle is an error.
    """

    def __init__(self, name: str, path: Optional[Path] = None, data: Optional[bytes] = None,
                 persistent: bool = False):
        if path is None and data is None:
            raise ValueError("TextureHandle needs a path or data")
        self.name = name
        self.path = Path(path) if path is not None else None
        self._data = data
        self.persistent = persistent
        self.released = False

    @property
    def uri(self) -> str:
        if self.path is not None:
            return self.path.resolve().as_uri()
        return f"memory:{self.name}"

    def read(self) -> bytes:
        if self.released:
            raise ValueError(f"Texture handle {self.name!r} has been released")
        if self._data is None:
            self._data = self.path.read_bytes()
        return self._data

    def release(self) -> None:
        if self.persistent:
            return
        self._data = None
        self.released = True

    def __repr__(self) -> str:
        return f"TextureHandle({self.name!r}, released={self.released})"


def _placeholder_png() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (1, 1), (255, 255, 255, 255)).save(buffer, format="PNG")
    return buffer.getvalue()


PLACEHOLDER = TextureHandle("placeholder.png", data=_placeholder_png(), persistent=True)


class TextureIndex:
    """
    Lookup tables from normalized file name keys to texture handles.

    An exact file name always binds to its own file. Derived keys (lowercase,
    separator variants, stems) keep whichever file registered them first.
    """

    def __init__(self):
        self.by_name: Dict[str, TextureHandle] = {}
        self.by_stem: Dict[str, TextureHandle] = {}
        self.handles: List[TextureHandle] = []
        self.skipped: List[str] = []
        self._exact: set = set()

    def __len__(self) -> int:
        return len(self.handles)

    def add(self, handle: TextureHandle) -> None:
        name = handle.name
        if name in self._exact:
            logger.debug(f"Duplicate texture name {name!r}, keeping first file")
            return
        self.handles.append(handle)
        self._exact.add(name)
        self.by_name[name] = handle
        for key in name_keys(name)[1:]:
            self.by_name.setdefault(key, handle)
        for key in stem_keys(name):
            self.by_stem.setdefault(key, handle)

    def release(self) -> None:
        """Free every handle and empty the tables."""
        for handle in self.handles:
            handle.release()
        logger.debug(f"Released {len(self.handles)} texture handles")
        self.by_name.clear()
        self.by_stem.clear()
        self.handles.clear()
        self._exact.clear()


def collect_files(paths: Iterable[Union[str, Path]]) -> List[Path]:
    """
    Flatten files and directories into one list of files.

    Directories are walked recursively; the result is what the index sees as
    one flat candidate set.
    """
    files = []
    for path in paths:
        path = Path(path)
        if path.is_dir():
            files.extend(sorted(p for p in path.rglob("*") if p.is_file()))
        elif path.is_file():
            files.append(path)
        else:
            logger.warning(f"Texture path not found: {path}")
    return files


def build_index(files: Iterable[Union[str, Path, TextureHandle]]) -> TextureIndex:
    """
    Index every image in `files`.

    Args:
        files: Paths or ready-made handles (e.g. in-memory images)

    Returns:
        TextureIndex over the recognized images
    """
    index = TextureIndex()
    for item in files:
        handle = item if isinstance(item, TextureHandle) else TextureHandle(Path(item).name, path=item)
        if not is_image_name(handle.name):
            index.skipped.append(handle.name)
            continue
        index.add(handle)
    logger.info(f"Texture index: {len(index)} images, {len(index.skipped)} other files")
    return index


def resolve(referenced_path: str, index: TextureIndex) -> Optional[TextureHandle]:
    """
    Resolve a texture reference from inside a model.

    Args:
        referenced_path: Path as written in the model's material definitions
        index: Index built from the user's files

    Returns:
        The matching handle, PLACEHOLDER for an unmatched image, or None for
        any non-image reference (leave it to default resolution)
    """
    name = last_segment(referenced_path)

    if not is_image_name(name):
        logger.debug(f"Reference {referenced_path!r} is not an image, using default resolution")
        return None

    for key in name_keys(name):
        handle = index.by_name.get(key)
        if handle is not None:
            logger.debug(f"Texture {referenced_path!r} → {handle.name}")
            return handle

    for key in stem_keys(name):
        handle = index.by_stem.get(key)
        if handle is not None:
            logger.debug(f"Texture {referenced_path!r} → {handle.name} (by basename)")
            return handle

    logger.warning(
        f"Texture {referenced_path!r} not found, using placeholder",
        extra={"category": UnresolvedTexture.__name__},
    )
    return PLACEHOLDER


class TextureResolver(Resolver):
    """
    Resolution strategy handed to the trimesh decoder.

    Image references are answered from the texture index (or the
    placeholder). Everything else goes to `fallback`, normally a
    FilePathResolver rooted at the model file.
    """

    def __init__(self, index: TextureIndex, fallback: Optional[Resolver] = None):
        self.index = index
        self.fallback = fallback
        self.hits: Dict[str, str] = {}
        self.placeholders: List[str] = []
        self.passed_through: List[str] = []

    def get(self, name: str) -> bytes:
        handle = resolve(name, self.index)
        if handle is None:
            self.passed_through.append(name)
            if self.fallback is None:
                raise KeyError(f"No resolver for {name!r}")
            return self.fallback.get(name)
        if handle is PLACEHOLDER:
            self.placeholders.append(name)
        else:
            self.hits[name] = handle.name
        return handle.read()

    def keys(self):
        return iter(self.index.by_name)

    def write(self, name: str, data) -> None:
        if self.fallback is None:
            raise NotImplementedError("TextureResolver has no writable fallback")
        return self.fallback.write(name, data)

    def namespaced(self, namespace: str) -> "TextureResolver":
        fallback = None if self.fallback is None else self.fallback.namespaced(namespace)
        child = TextureResolver(self.index, fallback)
        # share the counters with the parent
        child.hits = self.hits
        child.placeholders = self.placeholders
        child.passed_through = self.passed_through
        return child

    def summary(self) -> Dict[str, int]:
        return {
            "resolved": len(self.hits),
            "placeholders": len(self.placeholders),
            "passed_through": len(self.passed_through),
        }
