import unittest
import numpy as np

from dgsim import covModel as gcm
from dgsim import domain

class TestElementaryModels(unittest.TestCase):
    def test_value_at_origin_is_weight(self):
        h = np.array([0.0])
        for f in (gcm.cov_sph, gcm.cov_exp, gcm.cov_gau, gcm.cov_tri, gcm.cov_cub, gcm.cov_sinc):
            np.testing.assert_allclose(f(h, w=2.5, r=3.0), [2.5])
        np.testing.assert_allclose(gcm.cov_nug(h, w=2.5), [2.5])
        np.testing.assert_allclose(gcm.cov_matern(h, w=2.5, r=3.0, nu=1.5), [2.5])
        np.testing.assert_allclose(gcm.cov_gamma(h, w=2.5, r=3.0, s=2.0), [2.5])
        np.testing.assert_allclose(gcm.cov_exp_gen(h, w=2.5, r=3.0, s=2.0), [2.5])

    def test_compact_support(self):
        h = np.array([3.0, 4.0, 10.0])
        for f in (gcm.cov_sph, gcm.cov_tri, gcm.cov_cub):
            np.testing.assert_allclose(f(h, w=1.0, r=3.0), np.zeros(3), atol=1.e-12)

    def test_spherical_values(self):
        np.testing.assert_allclose(gcm.cov_sph(np.array([1.0]), w=1.0, r=2.0), [0.3125])

    def test_gamma_values(self):
        # w/20 at the range whatever s
        h = np.array([3.0])
        for s in (0.5, 1.0, 2.0):
            np.testing.assert_allclose(gcm.cov_gamma(h, w=2.0, r=3.0, s=s), [0.1])

    def test_exponential_generalized_values(self):
        h = np.array([1.5, 3.0])
        np.testing.assert_allclose(gcm.cov_exp_gen(h, w=2.0, r=3.0, s=2.0), 2.0 * np.exp([-0.75, -3.0]))
        np.testing.assert_allclose(gcm.cov_exp_gen(h, w=2.0, r=3.0, s=1.0), gcm.cov_exp(h, w=2.0, r=3.0))

    def test_matern_one_half_is_exponential(self):
        h = np.linspace(0.0, 10.0, 21)
        np.testing.assert_allclose(gcm.cov_matern(h, w=2.0, r=1.5, nu=0.5), gcm.cov_exp(h, w=2.0, r=4.5))

    def test_check_elem(self):
        ok, err = gcm.check_elem_cov_model(('spherical', {'w':1.0, 'r':2.0}))
        self.assertTrue(ok)
        self.assertEqual(err, [])
        ok, err = gcm.check_elem_cov_model(('spherical', {'w':1.0}))
        self.assertFalse(ok)
        ok, err = gcm.check_elem_cov_model(('unknown', {'w':1.0}))
        self.assertFalse(ok)
        ok, err = gcm.check_elem_cov_model(('nugget', {'w':-1.0}))
        self.assertFalse(ok)
        ok, err = gcm.check_elem_cov_model(('gaussian', {'w':1.0, 'r':1.0, 's':2.0}))
        self.assertFalse(ok)


class TestCovModel1D(unittest.TestCase):
    def setUp(self):
        self.cov_model = gcm.CovModel1D(elem=[
            ('spherical', {'w':2.0, 'r':5.0}),
            ('nugget', {'w':0.5}),
            ])

    def test_invalid_elem(self):
        with self.assertRaises(gcm.CovModelError):
            gcm.CovModel1D(elem=[('spherical', {'w':1.0})])

    def test_name(self):
        self.assertEqual(self.cov_model.name, 'cov1D-multi-contribution')
        self.assertEqual(gcm.CovModel1D(elem=[('gaussian', {'w':1.0, 'r':1.0})]).name, 'cov1D-gaussian')

    def test_sill(self):
        self.assertEqual(self.cov_model.sill(), 2.5)

    def test_stationarity(self):
        self.assertTrue(self.cov_model.is_stationary())
        cov_model = gcm.CovModel1D(elem=[('spherical', {'w':np.array([1.0, 2.0]), 'r':5.0})])
        self.assertFalse(cov_model.is_stationary())
        self.assertIsNone(cov_model.sill())
        self.assertIsNone(cov_model.func())
        cov_model = gcm.CovModel1D(elem=[('matern', {'w':1.0, 'r':5.0, 'nu':np.array([0.5, 1.5])})])
        self.assertFalse(cov_model.is_stationary())

    def test_covariance_plus_variogram_is_sill(self):
        h = np.linspace(0.0, 8.0, 17)
        np.testing.assert_allclose(self.cov_model(h) + self.cov_model(h, vario=True), 2.5 * np.ones(h.size))

    def test_shape_preserved(self):
        h = np.ones((3, 4))
        self.assertEqual(self.cov_model(h).shape, (3, 4))
        self.assertEqual(self.cov_model(1.0).shape, (1,))


class TestPairwise(unittest.TestCase):
    def setUp(self):
        self.grid = domain.Grid(nx=4, ny=3)
        self.cov_model = gcm.CovModel1D(elem=[('exponential', {'w':1.0, 'r':3.0})])

    def test_symmetric(self):
        locs = [0, 5, 7, 11]
        m = gcm.pairwise(self.cov_model, self.grid, locs)
        self.assertEqual(m.shape, (4, 4))
        np.testing.assert_allclose(m, m.T)
        np.testing.assert_allclose(np.diag(m), np.zeros(4))

    def test_rectangular(self):
        m = gcm.pairwise(self.cov_model, self.grid, [0, 1], [0, 4, 8], vario=False)
        self.assertEqual(m.shape, (2, 3))
        # locations 0 and 4 are one cell apart along y
        np.testing.assert_allclose(m[0, :2], [1.0, np.exp(-1.0)])

    def test_empty(self):
        m = gcm.pairwise(self.cov_model, self.grid, [], [1, 2])
        self.assertEqual(m.shape, (0, 2))

    def test_non_stationary(self):
        cov_model = gcm.CovModel1D(elem=[('exponential', {'w':1.0, 'r':np.array([1.0, 2.0])})])
        with self.assertRaises(gcm.CovModelError):
            gcm.pairwise(cov_model, self.grid, [0, 1])


if __name__ == '__main__':
    unittest.main()
