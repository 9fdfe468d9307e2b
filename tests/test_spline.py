import numpy as np
import pytest
from scipy import integrate

from curve_builder import BSpline, DomainError, InvalidArgumentError, SplineConstraint, build_spline_basis

KNOTS = [0.0, 0.25, 1.0, 2.0, 5.0, 10.0]


@pytest.mark.parametrize("degree", [1, 2, 3])
def test_partition_of_unity(degree):
    spline = build_spline_basis(KNOTS, degree)
    for x in np.linspace(0.0, 10.0, 57):
        assert abs(np.sum(spline.evaluate(x)) - 1.0) < 1e-12
    # Right boundary is included.
    assert abs(np.sum(spline.evaluate(10.0)) - 1.0) < 1e-12


def test_basis_count():
    assert BSpline([0, 1, 2, 3], 2, add_multi_knots=True).basis_count() == 5
    assert BSpline([0, 1, 2, 3], 2).basis_count() == 1
    assert len(build_spline_basis(KNOTS, 3).evaluate(0.5)) == len(KNOTS) + 3 - 1


def test_knots_are_sorted_and_augmented():
    spline = BSpline([3, 0, 2, 1], 2, add_multi_knots=True)
    np.testing.assert_array_equal(spline.knots(), [0, 0, 0, 1, 2, 3, 3, 3])
    assert spline.degree() == 2


def test_order_zero_is_value():
    spline = build_spline_basis(KNOTS, 3)
    for x in [0.0, 0.1, 1.0, 3.7, 10.0]:
        np.testing.assert_array_equal(spline.evaluate(x, 0), spline.evaluate(x))


def test_linear_basis_interpolates():
    spline = BSpline([0, 1, 3], 1, add_multi_knots=True)
    np.testing.assert_allclose(spline.evaluate(2.0), [0.0, 0.5, 0.5], atol=1e-15)
    np.testing.assert_allclose(spline.evaluate(1.0), [0.0, 1.0, 0.0], atol=1e-15)


@pytest.mark.parametrize("degree", [2, 3])
def test_derivative_integrates_back(degree):
    spline = build_spline_basis(KNOTS, degree)
    x = 7.3
    points = [k for k in KNOTS if 0 < k < x]
    for i in range(spline.basis_count()):
        f = spline.basis(i)
        df = spline.basis(i, 1)
        area, _ = integrate.quad(df, 0.0, x, points=points, epsabs=1e-12)
        assert abs(area - (f(x) - f(0.0))) < 1e-8


def test_second_derivative_matches_finite_difference():
    spline = build_spline_basis(KNOTS, 3)
    x, h = 3.3, 1e-4
    fd = (spline.evaluate(x + h, 1) - spline.evaluate(x - h, 1)) / (2 * h)
    np.testing.assert_allclose(spline.evaluate(x, 2), fd, atol=1e-6)


def test_fit_reproduces_quadratic():
    spline = BSpline([0, 1, 2, 3], 2, add_multi_knots=True)
    f = spline.fit([
        SplineConstraint(0.0, 0.0),
        SplineConstraint(1.0, 1.0),
        SplineConstraint(2.0, 4.0),
        SplineConstraint(3.0, 9.0),
        SplineConstraint(0.0, 0.0, order=1),
    ])
    assert abs(f(1.5) - 2.25) < 1e-12
    assert abs(f(2.75) - 2.75 ** 2) < 1e-12


def test_apply_copies_weights():
    spline = BSpline([0, 1, 2], 1, add_multi_knots=True)
    w = np.array([0.0, 1.0, 2.0])
    f = spline.apply(w)
    w[:] = 0.0
    assert abs(f(1.5) - 1.5) < 1e-12
    with pytest.raises(InvalidArgumentError):
        spline.apply([1.0, 2.0])


@pytest.mark.parametrize(
    "knots, degree, multi",
    [([1.0], 1, False), ([0.0, 1.0], 0, False), ([0.0, 1.0], 2, False), ([0.0, np.nan], 1, False)],
)
def test_invalid_construction(knots, degree, multi):
    with pytest.raises(InvalidArgumentError):
        BSpline(knots, degree, add_multi_knots=multi)


def test_invalid_evaluation():
    spline = build_spline_basis(KNOTS, 2)
    with pytest.raises(DomainError):
        spline.evaluate(-0.1)
    with pytest.raises(DomainError):
        spline.evaluate(10.5)
    with pytest.raises(InvalidArgumentError):
        spline.evaluate(1.0, 3)
    with pytest.raises(InvalidArgumentError):
        spline.evaluate(1.0, -1)
    with pytest.raises(InvalidArgumentError):
        spline.basis(spline.basis_count())
