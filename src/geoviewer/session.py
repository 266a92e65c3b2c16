"""
Load sessions and the viewer state that swaps them.

A LoadSession owns everything one load produced: the decoded model, the
vertex snapshots and the texture index. The ViewerState holds the current
session and the active configuration. A new session replaces the old one
only after it is fully decoded and transformed; the old one is then released.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

import trimesh
from trimesh.resolvers import FilePathResolver

from .common.config import Config, ViewMetadata
from .common.coords import GeoBounds, GeoOrigin, GeoProjector
from .common.errors import InvalidMapping
from .common.io import load_model
from .common.mesh_ops import compute_model_stats
from .common.normalize import NormalizationResult, normalize_model, undo_normalization
from .common.snapshot import VertexSnapshotStore
from .common.textures import TextureIndex, TextureResolver, build_index, collect_files

logger = logging.getLogger(__name__)


@dataclass
class LoadSession:
    """Everything one model load owns."""
    source: Path
    model: Optional[trimesh.Scene]
    texture_index: TextureIndex
    resolver: TextureResolver
    snapshots: VertexSnapshotStore = field(default_factory=VertexSnapshotStore)
    geo_bounds: Optional[GeoBounds] = None
    geo_origin: Optional[GeoOrigin] = None
    normalization: Optional[NormalizationResult] = None
    released: bool = False

    @property
    def projector(self) -> GeoProjector:
        return GeoProjector(self.snapshots)

    def release(self) -> None:
        """Free texture handles, drop snapshots and the model."""
        if self.released:
            return
        self.texture_index.release()
        self.snapshots.clear()
        self.model = None
        self.released = True
        logger.debug(f"Released session for {self.source.name}")

    def metadata(self, config: Config) -> ViewMetadata:
        stats = compute_model_stats(self.model)
        normalization = self.normalization
        return ViewMetadata(
            source=str(self.source),
            geo_mode_enabled=config.geo_mode_enabled,
            axis_mapping=list(config.axis_mapping.as_tuple()),
            vertical_exaggeration=config.vertical_exaggeration,
            scale_factor=normalization.scale_factor if normalization else 1.0,
            translation=normalization.translation.tolist() if normalization else [0.0, 0.0, 0.0],
            n_meshes=stats["n_meshes"],
            n_vertices=stats["n_vertices"],
            n_faces=stats["n_faces"],
            geo_bounds=self.geo_bounds.to_dict() if self.geo_bounds else None,
            geo_origin=self.geo_origin.to_dict() if self.geo_origin else None,
            textures=self.resolver.summary(),
        )


def release(session: Optional[LoadSession]) -> None:
    if session is not None:
        session.release()


def apply_transforms(session: LoadSession, config: Config) -> LoadSession:
    """
    Bring `session.model` in line with `config`.

    Restores original vertices and node transforms, projects if geo mode is
    on, then normalizes. The result depends only on the original model and
    `config`.
    """
    projector = session.projector
    projector.restore(session.model)
    if session.normalization is not None:
        undo_normalization(session.model, session.normalization)
        session.normalization = None

    if config.geo_mode_enabled:
        session.geo_bounds = projector.project(
            session.model,
            config.axis_mapping,
            vertical_exaggeration=config.vertical_exaggeration,
            flip_z_scale=config.flip_z_scale,
            flip_vertical=config.flip_vertical,
        )
        session.geo_origin = projector.last_origin
    else:
        session.geo_bounds = None
        session.geo_origin = None

    session.normalization = normalize_model(session.model, target_size=config.target_size)
    return session


def load_session(
    model_path: Union[str, Path],
    texture_files: Iterable[Union[str, Path]] = (),
    config: Optional[Config] = None
) -> LoadSession:
    """
    Decode a model with its texture files and run the transform sequence.

    Args:
        model_path: Model file
        texture_files: Files and/or directories holding referenced images
        config: Configuration (defaults to Config())

    Returns:
        A fully transformed LoadSession

    Raises:
        UnsupportedFormat, DecodeFailure: nothing is left allocated
    """
    config = config or Config()
    model_path = Path(model_path)

    index = build_index(collect_files(texture_files))
    resolver = TextureResolver(index, fallback=FilePathResolver(str(model_path)))
    try:
        model = load_model(model_path, resolver=resolver)
        session = LoadSession(
            source=model_path,
            model=model,
            texture_index=index,
            resolver=resolver,
        )
        apply_transforms(session, config)
    except Exception:
        index.release()
        raise

    summary = resolver.summary()
    logger.info(f"Textures: {summary['resolved']} resolved, "
                f"{summary['placeholders']} placeholders, "
                f"{summary['passed_through']} passed through")
    return session


class ViewerState:
    """
    The current session plus the active configuration.

    Loads and parameter changes apply synchronously and completely; the last
    one requested is what the state holds.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self.session: Optional[LoadSession] = None

    @property
    def model(self) -> Optional[trimesh.Scene]:
        return self.session.model if self.session else None

    @property
    def geo_bounds(self) -> Optional[GeoBounds]:
        return self.session.geo_bounds if self.session else None

    def open(
        self,
        model_path: Union[str, Path],
        texture_files: Iterable[Union[str, Path]] = ()
    ) -> LoadSession:
        """
        Load a model and make it current.

        On failure the exception propagates and the current session is left
        exactly as it was.
        """
        new_session = load_session(model_path, texture_files, self.config)
        previous, self.session = self.session, new_session
        release(previous)
        return new_session

    def configure(self, **changes) -> bool:
        """
        Change configuration and reapply transforms to the current model.

        Args:
            **changes: Config fields, e.g. axis_mapping=(0, 2, 1)

        Returns:
            False if the change was rejected (invalid axis mapping); the
            previous configuration stays active in that case
        """
        try:
            config = self.config.replace(**changes)
        except InvalidMapping as e:
            logger.warning(f"Rejected axis mapping, keeping {self.config.axis_mapping.describe()}: {e}")
            return False

        self.config = config
        if self.session is not None:
            apply_transforms(self.session, self.config)
        return True

    def close(self) -> None:
        release(self.session)
        self.session = None

    def summary(self) -> Dict:
        if self.session is None:
            return {"loaded": False, "config": self.config.to_dict()}
        return {"loaded": True, **self.session.metadata(self.config).to_dict()}
