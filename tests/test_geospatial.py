import math

from fieldroute.services.geospatial import (
    EARTH_RADIUS_KM,
    centroid,
    haversine_km,
    haversine_matrix_km,
    haversine_rows_km,
    is_valid_coordinate,
)


def test_haversine_one_degree_of_latitude():
    expected = EARTH_RADIUS_KM * math.pi / 180
    assert math.isclose(haversine_km(0.0, 0.0, 1.0, 0.0), expected, rel_tol=1e-12)
    assert haversine_km(-6.52, -49.83, -6.52, -49.83) == 0.0


def test_matrix_matches_scalar_formula_and_is_symmetric():
    coords = [(-6.52, -49.83), (-6.53, -49.85), (-6.50, -49.80), (-6.60, -49.90)]
    matrix = haversine_matrix_km(coords)

    for i, (lat1, lon1) in enumerate(coords):
        assert matrix[i][i] == 0.0
        for j, (lat2, lon2) in enumerate(coords):
            assert matrix[i][j] == matrix[j][i]
            assert math.isclose(matrix[i][j], haversine_km(lat1, lon1, lat2, lon2), rel_tol=1e-9, abs_tol=1e-9)


def test_rows_match_scalar_formula():
    coords = [(-6.52, -49.83), (-6.53, -49.85), (-6.50, -49.80)]
    rows = haversine_rows_km(coords[1:2], coords)
    assert rows.shape == (1, 3)
    assert rows[0][1] == 0.0
    for j, (lat, lon) in enumerate(coords):
        assert math.isclose(rows[0][j], haversine_km(-6.53, -49.85, lat, lon), rel_tol=1e-9, abs_tol=1e-9)
    assert haversine_rows_km([], coords).shape == (0, 3)


def test_matrix_of_single_point():
    assert haversine_matrix_km([(10.0, 20.0)]).tolist() == [[0.0]]


def test_is_valid_coordinate():
    assert is_valid_coordinate(-6.5, -49.8)
    assert is_valid_coordinate(90, -180)
    assert not is_valid_coordinate(90.1, 0.0)
    assert not is_valid_coordinate(0.0, 180.5)
    assert not is_valid_coordinate(float("nan"), 0.0)
    assert not is_valid_coordinate(0.0, float("inf"))
    assert not is_valid_coordinate(None, 0.0)
    assert not is_valid_coordinate("1.0", 0.0)
    assert not is_valid_coordinate(True, 0.0)


def test_centroid():
    assert centroid([(0.0, 0.0), (2.0, 4.0)]) == (1.0, 2.0)
