import math

import numpy as np
import pytest

import meshwork.core.tessellate.strategies as strategies_mod
from meshwork.core.config import Algorithm, TriangulationConfig
from meshwork.core.errors import PreconditionError, TriangulationError
from meshwork.core.face_vertex import FaceVertexMesh
from meshwork.core.geometry import polygon_signed_area, total_edge_weight, triangle_areas
from meshwork.core.mesh import HalfEdgeMesh
from meshwork.core.operations import insert_polygon
from meshwork.core.tessellate import (ChainedStrategy, DelaunayStrategy, EarClipStrategy, FanStrategy,
                                      SweepDelaunayStrategy, TriangulationStrategy, as_polygon,
                                      delaunay_triangulation, ear_clip_triangulation, edge_flip_triangulation,
                                      fan_triangulation, heuristic_triangulation, min_weight_quad,
                                      min_weight_triangulation, monotone_pieces, reset_triangulation_stats,
                                      select_algorithm, strategy_for, sweep_delaunay_triangulation,
                                      sweep_dynamic_triangulation, sweep_triangulation, triangulate_polygon,
                                      triangulation_stats, verify_triangulation)


def regular(n, r=1.0):
    return [(r * math.cos(2 * math.pi * k / n), r * math.sin(2 * math.pi * k / n)) for k in range(n)]


def star(n, outer=1.0, inner=0.4):
    pts = []
    for k in range(2 * n):
        r = outer if k % 2 == 0 else inner
        a = math.pi * k / n
        pts.append((r * math.cos(a), r * math.sin(a)))
    return pts


def zigzag(n):
    """Two interleaved saw-tooth chains; ``n`` must be odd."""
    pts = []
    for i in range(2 * n):
        x = i
        offset = 0
        if i > n:
            offset = 1
            x = 2 * n - i
        if i % 2 == 0:
            offset += 2
        pts.append((float(x), float(offset)))
    return pts


def random_star_polygon(rng, n):
    """Star-shaped about the origin (angular gaps below pi), hence simple."""
    step = 2 * math.pi / n
    angles = step * (np.arange(n) + rng.uniform(-0.4, 0.4, n))
    radii = rng.uniform(0.3, 1.0, n)
    return np.column_stack([radii * np.cos(angles), radii * np.sin(angles)])


HEXAGON = regular(6)
L_SHAPE = [(0, 0), (2, 0), (2, 1), (1, 1), (1, 2), (0, 2)]
U_SHAPE = [(0, 0), (3, 0), (3, 3), (2, 3), (2, 1), (1, 1), (1, 3), (0, 3)]
NOTCHED = [(0, 0), (4, 0), (4, 3), (2, 0.3), (0, 3)]
CROSSING = [(0, 0), (4, 0), (4, 3), (2, -1), (0, 3)]
BOWTIE = [(0, 0), (2, 2), (2, 0), (0, 2)]
# Qhull triangulates these vertices across the boundary edge 3-4
THIN_STAR = [[0.381, 0.011], [0.888, 0.22], [0.388, 0.33], [0.622, 0.538], [-0.923, -0.25], [0.544, -0.072]]

NONCONVEX = {
    'L': L_SHAPE,
    'U': U_SHAPE,
    'notched': NOTCHED,
    'star': star(5),
    'comb': [(0, 0), (5, 0), (5, 3), (4, 3), (4, 1), (3, 1), (3, 3), (2, 3), (2, 1), (1, 1), (1, 3), (0, 3)],
}

# polygons that stressed sweep implementations through near-parallel edges
NUMERICAL = {
    'hell_1': [[2.001453, 0.0], [0.7763586, 2.3893864], [-3.2887821, 2.3894396], [-2.7725635, -2.0143867],
               [0.023867942, -0.07345794]],
    'hell_2': [[2.8768363, 0.0], [1.6538008, 2.0738008], [-0.5499903, 2.4096634], [-6.9148006, 3.3299913],
               [-7.8863497, -3.7978687], [-0.8668613, -3.7979746], [1.1135457, -1.3963413]],
    'hell_3': [[7.15814, 0.0], [2.027697, 2.542652], [-1.5944574, 6.98577], [-0.36498743, 0.17576863],
               [-2.3863406, -1.149202], [-0.11696472, -0.5124569], [0.40876004, -0.5125686]],
    'hell_4': [[5.1792994, 0.0], [0.46844417, 0.5874105], [-0.13406669, 0.58738416], [-7.662568, 3.6900969],
               [-2.7504041, -1.3245257], [-0.4468068, -1.9575921], [0.7220693, -0.90544575]],
    'hell_5': [[9.576968, 0.0], [-3.2991974e-7, 7.5476837], [-0.9634365, -8.422629e-8],
               [5.8283815e-14, -4.887581e-6]],
    'hell_6': [[1.9081093, 0.0], [0.0056778197, 0.007119762], [-0.0015940086, 0.0069838036],
               [-0.018027846, 0.00868175], [-8.513409, -4.0998445], [-0.63087374, -2.7640438],
               [0.28846893, -0.36172837]],
    'hell_7': [[3.956943, 0.0], [0.42933345, 1.3213526], [-4.2110167, 3.059482], [-5.484937, -3.985043],
               [1.8108786, -5.573309]],
    'hell_9': [[1.877369, 0.0], [0.72744876, 0.912192], [-0.037827354, 0.16573237], [-1.0770108, 0.51866084],
               [-0.040608216, -0.0195559], [-0.3308545, -1.449571], [1.1276244, -1.4139954]],
    'tricky_quad': [[1.0, 0.0], [0.0, 1.0], [-1.0, 0.0], [0.0, 0.9]],
    'zigzag': zigzag(51),
}

ALL = list(Algorithm)
GENERAL = [a for a in Algorithm if a is not Algorithm.FAN]
DIRECT = [ear_clip_triangulation, sweep_triangulation, delaunay_triangulation, edge_flip_triangulation,
          min_weight_triangulation, sweep_dynamic_triangulation, sweep_delaunay_triangulation,
          heuristic_triangulation]

_rng = np.random.default_rng(1)
RANDOM_POLYGONS = [random_star_polygon(_rng, n) for n in range(4, 20) for _ in range(3)]


def covered_area(points, tris):
    pts = np.asarray(points, dtype=float)
    return float(np.sum(np.abs(triangle_areas(pts, tris))))


@pytest.fixture(autouse=True)
def _fresh_stats():
    reset_triangulation_stats()
    yield
    reset_triangulation_stats()


@pytest.mark.parametrize('algorithm', ALL, ids=lambda a: a.value)
def test_hexagon_every_algorithm(algorithm):
    tris = triangulate_polygon(HEXAGON, list(range(6)), algorithm=algorithm)
    assert len(tris) == 4
    assert covered_area(HEXAGON, tris) == pytest.approx(3 * math.sqrt(3) / 2)
    assert verify_triangulation(HEXAGON, list(range(6)), tris) == []


@pytest.mark.parametrize('fn', [fan_triangulation, ear_clip_triangulation, sweep_triangulation,
                                min_weight_triangulation, edge_flip_triangulation, heuristic_triangulation,
                                sweep_dynamic_triangulation, sweep_delaunay_triangulation])
def test_hexagon_direct_calls(fn):
    tris = fn(HEXAGON, list(range(6)))
    assert len(tris) == 4
    assert verify_triangulation(HEXAGON, list(range(6)), tris) == []


@pytest.mark.parametrize('name', sorted(NONCONVEX))
@pytest.mark.parametrize('algorithm', GENERAL, ids=lambda a: a.value)
def test_nonconvex_polygons(name, algorithm):
    pts = NONCONVEX[name]
    n = len(pts)
    tris = triangulate_polygon(pts, list(range(n)), algorithm=algorithm)
    assert len(tris) == n - 2
    assert covered_area(pts, tris) == pytest.approx(abs(polygon_signed_area(pts)))
    assert verify_triangulation(pts, list(range(n)), tris) == []


@pytest.mark.parametrize('name', sorted(NONCONVEX))
@pytest.mark.parametrize('algorithm', GENERAL, ids=lambda a: a.value)
def test_clockwise_input_keeps_winding(name, algorithm):
    pts = NONCONVEX[name][::-1]
    n = len(pts)
    tris = triangulate_polygon(pts, list(range(n)), algorithm=algorithm)
    assert verify_triangulation(pts, list(range(n)), tris) == []
    assert all(a < 0 for a in triangle_areas(np.asarray(pts, dtype=float), tris))


def test_caller_indices_are_preserved():
    points = np.zeros((10, 2))
    ids = [7, 2, 9, 4, 5, 0]
    for pos, i in enumerate(ids):
        points[i] = L_SHAPE[pos]
    for algorithm in GENERAL:
        tris = triangulate_polygon(points, ids, algorithm=algorithm)
        assert {i for t in tris for i in t} <= set(ids)
        assert verify_triangulation(points, ids, tris) == []


def test_delaunay_direct_on_notched_rectangle():
    tris = delaunay_triangulation(NOTCHED, list(range(5)))
    assert len(tris) == 3
    assert verify_triangulation(NOTCHED, list(range(5)), tris) == []
    # the notch apex sees every other vertex
    assert all(3 in t for t in tris)


def test_delaunay_convex_pentagon():
    pts = [(0, 0), (4, 0), (5, 3), (2, 5), (-1, 3)]
    tris = delaunay_triangulation(pts, list(range(5)))
    assert verify_triangulation(pts, list(range(5)), tris) == []


def test_delaunay_direct_keeps_boundary_edges():
    ids = list(range(6))
    tris = delaunay_triangulation(THIN_STAR, ids)
    assert len(tris) == 4
    assert verify_triangulation(THIN_STAR, ids, tris) == []
    # recovered by flipping an ear-clipped seed, as edge_flip does
    flipped = edge_flip_triangulation(THIN_STAR, ids)
    assert sorted(sorted(t) for t in tris) == sorted(sorted(t) for t in flipped)


def test_edge_flip_reaches_delaunay_on_quad():
    # the long diagonal 0-2 violates the empty-circle test, 1-3 does not
    pts = [(0, 0), (2, -0.2), (4, 0), (2, 0.2)]
    tris = edge_flip_triangulation(pts, [0, 1, 2, 3])
    diagonals = {frozenset(e) for t in tris for e in ((t[0], t[1]), (t[1], t[2]), (t[2], t[0]))}
    assert frozenset((1, 3)) in diagonals
    assert frozenset((0, 2)) not in diagonals


def test_sweep_delaunay_flips_within_pieces():
    # the stack walk joins 0-2; vertex 3 lies in the circle of 0, 1, 2
    pts = [(0, 0), (1, -2), (2, -2), (2.5, 0)]
    ids = [0, 1, 2, 3]

    def diagonals(tris):
        return {frozenset(e) for t in tris for e in ((t[0], t[1]), (t[1], t[2]), (t[2], t[0]))}

    assert frozenset((0, 2)) in diagonals(sweep_triangulation(pts, ids))
    tris = sweep_delaunay_triangulation(pts, ids)
    assert verify_triangulation(pts, ids, tris) == []
    assert frozenset((1, 3)) in diagonals(tris)
    assert frozenset((0, 2)) not in diagonals(tris)
    # a zero pass budget keeps the walk's diagonal
    assert frozenset((0, 2)) in diagonals(sweep_delaunay_triangulation(pts, ids, max_passes=0))


@pytest.mark.parametrize('name', sorted(NONCONVEX))
def test_min_weight_is_lightest(name):
    pts = NONCONVEX[name]
    ids = list(range(len(pts)))
    best = total_edge_weight(pts, min_weight_triangulation(pts, ids))
    for fn in (ear_clip_triangulation, sweep_triangulation, edge_flip_triangulation,
               heuristic_triangulation, sweep_dynamic_triangulation):
        assert best <= total_edge_weight(pts, fn(pts, ids)) + 1e-9


@pytest.mark.parametrize('name', sorted(NONCONVEX))
def test_sweep_variants_improve_on_plain_sweep(name):
    pts = NONCONVEX[name]
    ids = list(range(len(pts)))
    plain = total_edge_weight(pts, sweep_triangulation(pts, ids))
    assert total_edge_weight(pts, sweep_dynamic_triangulation(pts, ids)) <= plain + 1e-9
    assert total_edge_weight(pts, heuristic_triangulation(pts, ids)) <= plain + 1e-9


def test_min_weight_quad_picks_shorter_diagonal():
    pts = [(0, 0), (3, 0), (3.2, 1), (0, 1)]
    tris = min_weight_quad(pts, [0, 1, 2, 3])
    assert sorted(sorted(t) for t in tris) == [[0, 1, 3], [1, 2, 3]]
    # reflex quad: only one diagonal is inside
    dart = [(0, 0), (2, 1), (4, 0), (2, 3)]
    tris = min_weight_quad(dart, [0, 1, 2, 3])
    assert verify_triangulation(dart, [0, 1, 2, 3], tris) == []
    assert all(1 in t and 3 in t for t in tris)
    with pytest.raises(ValueError):
        min_weight_quad(HEXAGON, list(range(6)))


def test_fan_rejects_nonconvex():
    with pytest.raises(PreconditionError):
        fan_triangulation(L_SHAPE, list(range(6)))
    with pytest.raises(PreconditionError):
        triangulate_polygon(L_SHAPE, list(range(6)), algorithm='fan')
    # unchecked, the fan still returns n-2 triangles
    assert len(fan_triangulation(L_SHAPE, list(range(6)), check=False)) == 4


def test_fan_rejects_collinear_run():
    # convex hull-wise, but vertices 1 and 4 sit on straight edges
    pts = [(0, 0), (1, 0), (2, 0), (2, 1), (1, 1), (0, 1)]
    with pytest.raises(PreconditionError, match="strictly convex"):
        fan_triangulation(pts, list(range(6)))
    assert len(fan_triangulation(pts, list(range(6)), check=False)) == 4
    # the other algorithms handle the run without a zero-area triangle
    tris = triangulate_polygon(pts, list(range(6)))
    assert verify_triangulation(pts, list(range(6)), tris) == []


@pytest.mark.parametrize('fn', [ear_clip_triangulation, min_weight_triangulation, delaunay_triangulation,
                                edge_flip_triangulation, heuristic_triangulation,
                                sweep_dynamic_triangulation, sweep_delaunay_triangulation])
def test_simple_polygon_algorithms_reject_crossing_boundary(fn):
    with pytest.raises(PreconditionError):
        fn(CROSSING, list(range(5)))


def test_degenerate_input_rejected():
    with pytest.raises(PreconditionError):
        triangulate_polygon([(0, 0), (1, 0)], [0, 1])
    with pytest.raises(PreconditionError):
        sweep_triangulation([(0, 0), (1, 1), (2, 2), (3, 3)], [0, 1, 2, 3])
    with pytest.raises(PreconditionError):
        select_algorithm([(0, 0), (1, 0)], [0, 1])


def test_bowtie_winding_and_extent():
    poly = as_polygon(BOWTIE, [0, 1, 2, 3])
    assert poly.area == 0.0
    assert poly.extent == pytest.approx(4.0)
    assert poly.ccw
    assert not as_polygon(BOWTIE[::-1], [0, 1, 2, 3]).ccw


def test_sweep_covers_bowtie():
    ids = [0, 1, 2, 3]
    tris = sweep_triangulation(BOWTIE, ids)
    assert len(tris) == 2
    assert {i for t in tris for i in t} == set(ids)
    assert covered_area(BOWTIE, tris) == pytest.approx(4.0)
    with pytest.raises(PreconditionError):
        ear_clip_triangulation(BOWTIE, ids)


def test_auto_covers_bowtie():
    ids = [0, 1, 2, 3]
    assert select_algorithm(BOWTIE, ids) is Algorithm.SWEEP
    tris = triangulate_polygon(BOWTIE, ids)
    assert len(tris) == 2
    assert covered_area(BOWTIE, tris) == pytest.approx(4.0)
    stats = triangulation_stats()['sweep']
    assert stats['success'] == 1 and stats['fallback_used'] == 0


def test_chained_strategy_reraises_precondition():
    chain = ChainedStrategy([DelaunayStrategy(), EarClipStrategy()])
    with pytest.raises(PreconditionError):
        chain.triangulate(CROSSING, list(range(5)))


@pytest.mark.parametrize('name', sorted(NUMERICAL))
def test_sweep_numerical_shapes(name):
    pts = NUMERICAL[name]
    ids = list(range(len(pts)))
    tris = sweep_triangulation(pts, ids)
    assert verify_triangulation(pts, ids, tris) == []


@pytest.mark.parametrize('name', sorted(NUMERICAL))
def test_auto_numerical_shapes(name):
    pts = NUMERICAL[name]
    ids = list(range(len(pts)))
    tris = triangulate_polygon(pts, ids)
    assert verify_triangulation(pts, ids, tris) == []


def test_monotone_pieces_split_at_reflex_start():
    # the notch vertex has both neighbours ahead of it along the sweep
    pts = np.asarray([(0, 0), (4, -2), (1, 0), (4, 2)], dtype=float)
    pieces = monotone_pieces(pts)
    assert len(pieces) == 2
    assert sum(len(p) - 2 for p in pieces) == len(pts) - 2
    for piece in pieces:
        assert polygon_signed_area(pts[piece]) > 0


def test_zigzag_is_already_monotone():
    pts = np.asarray(zigzag(21), dtype=float)
    pieces = monotone_pieces(pts)
    assert len(pieces) == 1
    assert sum(len(p) - 2 for p in pieces) == len(pts) - 2
    for piece in pieces:
        assert polygon_signed_area(pts[piece]) > 0


def test_ear_clipping_collinear_boundary():
    pts = [(0, 0), (1, 0), (2, 0), (3, 0), (3, 1), (2, 1), (1, 1), (0, 1)]
    tris = ear_clip_triangulation(pts, list(range(8)))
    assert verify_triangulation(pts, list(range(8)), tris) == []


def test_extra_coordinates_are_ignored():
    pts = [(0, 0, 5), (1, 0, 5), (1, 1, 5), (0, 1, 5)]
    tris = triangulate_polygon(pts, [0, 1, 2, 3], algorithm='ear_clipping')
    assert len(tris) == 2


# ----------------------------------------------------------------------
# random simple polygons
# ----------------------------------------------------------------------
@pytest.mark.parametrize('fn', DIRECT, ids=lambda f: f.__name__)
def test_random_simple_polygons(fn):
    for pts in RANDOM_POLYGONS:
        ids = list(range(len(pts)))
        for boundary in (ids, ids[::-1]):
            tris = fn(pts, boundary)
            assert verify_triangulation(pts, boundary, tris) == [], pts.tolist()


def test_random_simple_polygons_auto():
    for pts in RANDOM_POLYGONS:
        ids = list(range(len(pts)))
        tris = triangulate_polygon(pts, ids)
        assert verify_triangulation(pts, ids, tris) == [], pts.tolist()


# ----------------------------------------------------------------------
# AUTO selection
# ----------------------------------------------------------------------
def test_select_algorithm_thresholds():
    assert select_algorithm(regular(3), [0, 1, 2]) is Algorithm.FAN
    assert select_algorithm(HEXAGON, list(range(6))) is Algorithm.MIN_WEIGHT
    assert select_algorithm(regular(40), list(range(40))) is Algorithm.DELAUNAY
    assert select_algorithm(regular(300), list(range(300))) is Algorithm.SWEEP
    assert select_algorithm(CROSSING, list(range(5))) is Algorithm.SWEEP


def test_select_algorithm_respects_config():
    cfg = TriangulationConfig(exact_max_vertices=4)
    assert select_algorithm(HEXAGON, list(range(6)), cfg) is Algorithm.DELAUNAY
    cfg = TriangulationConfig(exact_max_vertices=4, mid_size_algorithm='sweep_dynamic')
    assert select_algorithm(HEXAGON, list(range(6)), cfg) is Algorithm.SWEEP_DYNAMIC
    cfg = TriangulationConfig(exact_max_vertices=4, mid_size_algorithm='sweep_delaunay')
    assert select_algorithm(HEXAGON, list(range(6)), cfg) is Algorithm.SWEEP_DELAUNAY
    cfg = TriangulationConfig(exact_max_vertices=4, hybrid_max_vertices=5)
    assert select_algorithm(HEXAGON, list(range(6)), cfg) is Algorithm.SWEEP
    cfg = TriangulationConfig(check_simplicity_max_vertices=5)
    assert select_algorithm(HEXAGON, list(range(6)), cfg) is Algorithm.SWEEP


def test_auto_rejects_zero_length_edge():
    pts = [(0, 0), (1, 0), (1, 0), (1, 1), (0, 1)]
    with pytest.raises(PreconditionError, match="zero-length edge"):
        select_algorithm(pts, list(range(5)))
    with pytest.raises(PreconditionError):
        triangulate_polygon(pts, list(range(5)))


def test_auto_large_polygon():
    pts = regular(300, r=10.0)
    tris = triangulate_polygon(pts, list(range(300)))
    assert len(tris) == 298
    assert verify_triangulation(pts, list(range(300)), tris) == []
    assert triangulation_stats()['sweep']['attempts'] == 1


def test_auto_zigzag_with_verify():
    pts = zigzag(51)
    cfg = TriangulationConfig(verify=True)
    tris = triangulate_polygon(pts, list(range(len(pts))), config=cfg)
    assert len(tris) == len(pts) - 2


def test_config_validation():
    with pytest.raises(ValueError):
        TriangulationConfig(mid_size_algorithm='fan')
    with pytest.raises(ValueError):
        TriangulationConfig(exact_max_vertices=20, hybrid_max_vertices=10)
    with pytest.raises(ValueError):
        TriangulationConfig(exact_max_vertices=2)
    with pytest.raises(ValueError):
        Algorithm.coerce('bogus')
    assert Algorithm.coerce('EAR_CLIPPING') is Algorithm.EAR_CLIPPING
    assert TriangulationConfig().with_algorithm('sweep').algorithm is Algorithm.SWEEP


# ----------------------------------------------------------------------
# strategies, fallbacks and stats
# ----------------------------------------------------------------------
class _Broken(TriangulationStrategy):
    def triangulate(self, points, poly_indices, config=None):
        raise TriangulationError("broken on purpose")


def test_try_triangulate_protocol():
    ok, tris, err = EarClipStrategy().try_triangulate(L_SHAPE, list(range(6)))
    assert ok and len(tris) == 4 and err == ""
    ok, tris, err = FanStrategy().try_triangulate(L_SHAPE, list(range(6)))
    assert not ok and tris is None
    assert err.startswith('fan failed')


def test_chained_strategy_falls_back():
    chain = ChainedStrategy([_Broken(), EarClipStrategy()])
    tris = chain.triangulate(L_SHAPE, list(range(6)))
    assert chain.used == 1
    assert verify_triangulation(L_SHAPE, list(range(6)), tris) == []
    assert chain.name == '_Broken>ear_clipping'


def test_chained_strategy_all_fail():
    chain = ChainedStrategy([_Broken(), _Broken()])
    with pytest.raises(TriangulationError, match="All strategies failed"):
        chain.triangulate(L_SHAPE, list(range(6)))
    ok, tris, err = chain.try_triangulate(L_SHAPE, list(range(6)))
    assert not ok and 'Strategy 1' in err


def test_strategy_for():
    assert isinstance(strategy_for('delaunay'), ChainedStrategy)
    assert isinstance(strategy_for('delaunay', TriangulationConfig(delaunay_fallback=False)), DelaunayStrategy)
    assert isinstance(strategy_for(Algorithm.FAN), FanStrategy)
    assert isinstance(strategy_for('sweep_delaunay'), SweepDelaunayStrategy)
    with pytest.raises(ValueError):
        strategy_for('auto')


def _failing_delaunay(points, poly_indices, check=True):
    raise TriangulationError("qhull unavailable")


def test_delaunay_fallback_counts_in_stats(monkeypatch):
    monkeypatch.setattr(strategies_mod, 'delaunay_triangulation', _failing_delaunay)
    tris = triangulate_polygon(L_SHAPE, list(range(6)), algorithm='delaunay')
    assert verify_triangulation(L_SHAPE, list(range(6)), tris) == []
    stats = triangulation_stats()['delaunay']
    assert stats['attempts'] == 1
    assert stats['success'] == 1
    assert stats['fallback_used'] == 1


def test_delaunay_without_fallback_fails(monkeypatch):
    monkeypatch.setattr(strategies_mod, 'delaunay_triangulation', _failing_delaunay)
    cfg = TriangulationConfig(delaunay_fallback=False)
    with pytest.raises(TriangulationError):
        triangulate_polygon(L_SHAPE, list(range(6)), algorithm='delaunay', config=cfg)
    stats = triangulation_stats()['delaunay']
    assert stats['fail'] == 1
    assert stats['success'] == 0


def test_verify_flag_rejects_bad_output(monkeypatch):
    monkeypatch.setattr(strategies_mod, 'ear_clip_triangulation',
                        lambda points, poly_indices, check=True: [(0, 1, 2), (0, 1, 2), (0, 1, 2), (0, 1, 2)])
    with pytest.raises(TriangulationError, match="invalid triangulation"):
        triangulate_polygon(L_SHAPE, list(range(6)), algorithm='ear_clipping',
                            config=TriangulationConfig(verify=True))


def test_stats_reset():
    triangulate_polygon(HEXAGON, list(range(6)))
    assert triangulation_stats()['min_weight']['attempts'] == 1
    reset_triangulation_stats()
    assert triangulation_stats() == {}


# ----------------------------------------------------------------------
# verifier
# ----------------------------------------------------------------------
def test_verify_reports_problems():
    ids = [0, 1, 2, 3]
    square = [(0, 0), (1, 0), (1, 1), (0, 1)]
    assert verify_triangulation(square, ids, [(0, 1, 2), (0, 2, 3)]) == []
    assert any('expected 2' in p for p in verify_triangulation(square, ids, [(0, 1, 2)]))
    assert any('winds against' in p for p in verify_triangulation(square, ids, [(0, 2, 1), (0, 3, 2)]))
    assert any('shared' in p or 'used' in p
               for p in verify_triangulation(square, ids, [(0, 1, 2), (0, 1, 3)]))
    assert any('outside' in p for p in verify_triangulation(square, ids, [(0, 1, 2), (0, 2, 7)]))


# ----------------------------------------------------------------------
# mesh faces
# ----------------------------------------------------------------------
def test_mesh_triangulate_face_in_place():
    mesh = HalfEdgeMesh()
    f, _ = insert_polygon(mesh, [(x, y, 0.0) for x, y in U_SHAPE])
    faces = mesh.triangulate_face(f, algorithm='ear_clipping')
    assert faces[0] == f
    assert len(faces) == 6
    assert mesh.num_faces() == 6
    assert all(mesh.face_size(g) == 3 for g in faces)
    assert mesh.num_edges() == 8 + 5
    mesh.check()


def test_mesh_triangulate_faces_index_buffer():
    mesh = HalfEdgeMesh()
    insert_polygon(mesh, L_SHAPE)
    insert_polygon(mesh, regular(3))
    buf = mesh.triangulate_faces()
    assert buf.shape == (5, 3)
    assert mesh.num_faces() == 2


def test_face_vertex_mesh_triangulation():
    fv = FaceVertexMesh(L_SHAPE + [(3, 0), (4, 0), (4, 1)], [list(range(6)), [6, 7, 8]])
    buf = fv.triangulate_faces(algorithm='sweep')
    assert buf.shape == (5, 3)
    assert verify_triangulation(fv.points(), list(range(6)), [tuple(t) for t in buf[:4]]) == []
    assert FaceVertexMesh.from_halfedge(HalfEdgeMesh()).num_faces() == 0
