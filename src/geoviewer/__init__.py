"""
geoviewer - Geo reprojection and texture resolution for imported 3D models.

Pipeline:
- decode (trimesh) with fuzzy texture resolution against loose image files
- optional reinterpretation of raw vertices as lon/lat/height → local ENU meters
- center + uniform scale to a canonical display size

Usage:
    geoviewer-prepare model.obj --textures textures/ --geo --axis-mapping 0 2 1 -o out/model.glb
"""

__version__ = "1.0.0"
