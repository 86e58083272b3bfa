import unittest
import numpy as np

from dgsim import covModel as gcm
from dgsim import domain
from dgsim import problem
from dgsim import solver
from dgsim import directGaussSim as dgs

class FailingSimulation(dgs.DirectGaussSim):
    def simulate_group(self, group, preproc, rng=None, logger=None):
        raise dgs.DirectGaussSimError('simulation failed')


class TestSolve(unittest.TestCase):
    def setUp(self):
        self.grid = domain.Grid(nx=6, ny=4, sx=0.5, sy=0.5)
        cov_model = gcm.CovModel1D(elem=[('spherical', {'w':1.0, 'r':2.0})])
        self.data = {'a':{3:1.5, 10:-0.5}, 'b':{3:0.2, 20:2.0}}
        self.pb = problem.SimulationProblem(self.grid, ['a', 'b', 'c'], data=self.data, nreal=7)
        self.solver = dgs.DirectGaussSim(
            {'a':dgs.VariableParams(cov_model), 'b':dgs.VariableParams(cov_model), 'c':dgs.VariableParams(cov_model, mean=-3.0)},
            {('a', 'b'):dgs.JointParams(-0.4)})

    def test_shapes(self):
        sol = self.solver.solve(self.pb, seed=1, verbose=0)
        self.assertIsInstance(sol, solver.SimulationSolution)
        self.assertEqual(sol.nreal, 7)
        self.assertEqual(sol.varnames, ['a', 'b', 'c'])
        for varname in sol.varnames:
            self.assertEqual(sol[varname].shape, (7, 24))
            self.assertEqual(sol.mean(varname).shape, (24,))
            self.assertEqual(sol.var(varname).shape, (24,))
        self.assertEqual(set(sol.to_dict().keys()), {'a', 'b', 'c'})

    def test_hard_data_in_every_realization(self):
        sol = self.solver.solve(self.pb, seed=2, verbose=0)
        for varname, data in self.data.items():
            for loc, val in data.items():
                np.testing.assert_array_equal(sol[varname][:, loc], val)

    def test_reproducible(self):
        sol1 = self.solver.solve(self.pb, seed=123, verbose=0)
        sol2 = self.solver.solve(self.pb, seed=123, verbose=0)
        sol3 = self.solver.solve(self.pb, seed=124, verbose=0)
        for varname in self.pb.varnames:
            np.testing.assert_array_equal(sol1[varname], sol2[varname])
        self.assertFalse(np.allclose(sol1['c'], sol3['c']))

    def test_realizations_differ(self):
        sol = self.solver.solve(self.pb, seed=5, verbose=0)
        self.assertFalse(np.allclose(sol['c'][0], sol['c'][1]))

    def test_independent_of_nproc(self):
        sol1 = self.solver.solve(self.pb, seed=42, nproc=1, verbose=0)
        sol2 = self.solver.solve(self.pb, seed=42, nproc=2, verbose=0)
        for varname in self.pb.varnames:
            np.testing.assert_allclose(sol1[varname], sol2[varname])

    def test_to_dataframe(self):
        sol = self.solver.solve(self.pb, seed=3, verbose=0)
        df = sol.to_dataframe(ireal=2)
        self.assertEqual(list(df.columns), ['X', 'Y', 'Z', 'a', 'b', 'c'])
        self.assertEqual(len(df), 24)
        np.testing.assert_allclose(df['X'].values[:6], 0.25 + 0.5 * np.arange(6))
        np.testing.assert_array_equal(df['c'].values, sol['c'][2])

    def test_to_dataframe_point_set(self):
        ps = domain.PointSet(np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 2.0]]))
        pb = problem.SimulationProblem(ps, 'z', nreal=2)
        sol = dgs.DirectGaussSim().solve(pb, seed=0, verbose=0)
        self.assertEqual(list(sol.to_dataframe().columns), ['X', 'Y', 'z'])

    def test_solve_single(self):
        preproc = self.solver.preprocess(self.pb, verbose=0)
        res = self.solver.solve_single(preproc, rng=0)
        self.assertEqual(set(res.keys()), {'a', 'b', 'c'})
        self.assertEqual(res['a'][10], -0.5)
        res2 = self.solver.solve_single(preproc, rng=0)
        np.testing.assert_array_equal(res['c'], res2['c'])

    def test_worker_error(self):
        failing = FailingSimulation(self.solver.varparams, self.solver.jointparams)
        with self.assertRaises(solver.SolverError) as cm:
            failing.solve(self.pb, seed=0, nproc=2, verbose=0)
        self.assertIsInstance(cm.exception.__cause__, dgs.DirectGaussSimError)
        # sequential run raises directly
        with self.assertRaises(dgs.DirectGaussSimError):
            failing.solve(self.pb, seed=0, nproc=1, verbose=0)

    def test_preprocess_error_propagates(self):
        pb = problem.SimulationProblem(self.grid, ['a', 'b', 'c'], data={'a':{0:1.0}})
        with self.assertRaises(dgs.InvalidJointParametersError):
            self.solver.solve(pb, seed=0, verbose=0)


if __name__ == '__main__':
    unittest.main()
