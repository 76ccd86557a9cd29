"""Public package API for the meshwork half-edge toolkit.

This facade provides a flat import surface on top of the implementation
package ``meshwork.core``. The triangulation package pulls in scipy, so it
is loaded on first use; ``import meshwork`` stays light.

Example
-------
    from meshwork import HalfEdgeMesh, insert_polygon, triangulate_polygon

The deeper modules (``meshwork.core.*``) are considered internal and may
change; rely on this layer for public symbols.
"""
from importlib import import_module as _imp
import logging as _logging

try:
    from importlib.metadata import version as _pkg_version, PackageNotFoundError as _NotFound
    __version__ = _pkg_version("meshwork")  # populated when installed
except _NotFound:  # pragma: no cover - running from a source checkout
    __version__ = "0.0.0+dev"

_logging.getLogger(__name__).addHandler(_logging.NullHandler())

# Eager light-weight submodules
_const = _imp('meshwork.core.constants')
_errors = _imp('meshwork.core.errors')
_config = _imp('meshwork.core.config')
_geom = _imp('meshwork.core.geometry')
_payload = _imp('meshwork.core.payload')
_mesh = _imp('meshwork.core.mesh')
_cursor = _imp('meshwork.core.cursor')
_ops = _imp('meshwork.core.operations')
_fv = _imp('meshwork.core.face_vertex')
_stats = _imp('meshwork.core.stats')
_log = _imp('meshwork.core.logging_utils')


def _lazy_module(mod_name):
    class _ModuleProxy:
        __slots__ = ('_m',)

        def _load(self):
            try:
                return self._m
            except AttributeError:
                self._m = _imp(mod_name)
                return self._m

        def __getattr__(self, item):
            if item == '_m':  # slot not filled yet
                raise AttributeError(item)
            return getattr(self._load(), item)

        def __dir__(self):
            return dir(self._load())
    return _ModuleProxy()


def _lazy_tessellate_attr(name):
    def _wrapper(*args, **kwargs):
        return getattr(_imp('meshwork.core.tessellate'), name)(*args, **kwargs)
    _wrapper.__name__ = name
    _wrapper.__doc__ = f"Lazy entry point for meshwork.core.tessellate.{name}."
    return _wrapper


# Lazily loaded scipy-backed triangulation package
tessellate = _lazy_module('meshwork.core.tessellate')

triangulate_polygon = _lazy_tessellate_attr('triangulate_polygon')
select_algorithm = _lazy_tessellate_attr('select_algorithm')
verify_triangulation = _lazy_tessellate_attr('verify_triangulation')
triangulation_stats = _lazy_tessellate_attr('triangulation_stats')

# Mesh core
HalfEdgeMesh = _mesh.HalfEdgeMesh
FaceVertexMesh = _fv.FaceVertexMesh
is_halfedge_mesh = _fv.is_halfedge_mesh
VertexPayload = _payload.VertexPayload

# Cursors
VertexCursor = _cursor.VertexCursor
EdgeCursor = _cursor.EdgeCursor
FaceCursor = _cursor.FaceCursor
VertexCursorMut = _cursor.VertexCursorMut
EdgeCursorMut = _cursor.EdgeCursorMut
FaceCursorMut = _cursor.FaceCursorMut
Validity = _cursor.Validity
Access = _cursor.Access

# Construction operations
insert_polygon = _ops.insert_polygon
append_path = _ops.append_path
loft = _ops.loft
extrude_boundary = _ops.extrude_boundary
extrude_face = _ops.extrude_face
fill_hole = _ops.fill_hole
fill_hole_apex = _ops.fill_hole_apex
transform_mesh = _ops.transform_mesh
translate_mesh = _ops.translate_mesh
rotate_mesh = _ops.rotate_mesh
scale_mesh = _ops.scale_mesh

# Configuration
Algorithm = _config.Algorithm
TriangulationConfig = _config.TriangulationConfig
MeshConfig = _config.MeshConfig

# Errors
MeshError = _errors.MeshError
StructureError = _errors.StructureError
DeletedElementError = _errors.DeletedElementError
VoidCursorError = _errors.VoidCursorError
BorrowError = _errors.BorrowError
TriangulationError = _errors.TriangulationError
PreconditionError = _errors.PreconditionError

# Tolerances
NONE = _const.NONE
EPS_AREA = _const.EPS_AREA
EPS_COLINEAR = _const.EPS_COLINEAR
EPS_IMPROVEMENT = _const.EPS_IMPROVEMENT

configure_logging = _log.configure_logging
get_logger = _log.get_logger

# Namespace submodules for exploratory users
constants = _const
geometry = _geom
operations = _ops
stats = _stats

__all__ = [
    '__version__',
    # mesh core
    'HalfEdgeMesh', 'FaceVertexMesh', 'is_halfedge_mesh', 'VertexPayload',
    # cursors
    'VertexCursor', 'EdgeCursor', 'FaceCursor', 'VertexCursorMut', 'EdgeCursorMut', 'FaceCursorMut',
    'Validity', 'Access',
    # operations
    'insert_polygon', 'append_path', 'loft', 'extrude_boundary', 'extrude_face', 'fill_hole',
    'fill_hole_apex', 'transform_mesh', 'translate_mesh', 'rotate_mesh', 'scale_mesh',
    # triangulation
    'tessellate', 'triangulate_polygon', 'select_algorithm', 'verify_triangulation',
    'triangulation_stats',
    # configuration
    'Algorithm', 'TriangulationConfig', 'MeshConfig',
    # errors
    'MeshError', 'StructureError', 'DeletedElementError', 'VoidCursorError', 'BorrowError',
    'TriangulationError', 'PreconditionError',
    # tolerances
    'NONE', 'EPS_AREA', 'EPS_COLINEAR', 'EPS_IMPROVEMENT',
    # logging
    'configure_logging', 'get_logger',
    # submodules
    'constants', 'geometry', 'operations', 'stats',
]
