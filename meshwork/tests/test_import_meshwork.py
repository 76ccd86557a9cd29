"""Smoke test to ensure top-level package import works without triggering
circular import errors. This guards against regressions in the flat API
layer (`meshwork/__init__.py`).
"""


def test_import_meshwork_smoke():
    import meshwork  # noqa: F401
    # A couple of light sanity checks on expected public symbols
    assert hasattr(meshwork, 'HalfEdgeMesh')
    assert hasattr(meshwork, 'insert_polygon')
    assert callable(meshwork.tessellate.triangulate_polygon)  # lazy proxy should resolve


def test_lazy_entry_points_run():
    import meshwork
    tris = meshwork.triangulate_polygon([[0, 0], [1, 0], [1, 1], [0, 1]], [0, 1, 2, 3], algorithm='fan')
    assert len(tris) == 2
    assert meshwork.verify_triangulation([[0, 0], [1, 0], [1, 1], [0, 1]], [0, 1, 2, 3], tris) == []
