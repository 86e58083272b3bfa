#!/usr/bin/env python
# -*- coding: utf-8 -*-

# -------------------------------------------------------------------------
# Python module:  'solver.py'
# -------------------------------------------------------------------------

"""
Module defining the interface of simulation solvers, the driver generating
the realizations of a simulation problem, and the container of the results.

A solver works in two steps:

- `preprocess(problem)`: computation done once per problem (e.g. factorization \
of covariance matrices), returning a mapping from covariate groups (tuples of
variable names) to preprocessed parameters
- `simulate_group(group, preproc, rng)`: generation of one realization of \
the variables of one covariate group

The method `solve` runs both steps and collects all the realizations.
"""

import abc
import multiprocessing
import numpy as np
import pandas as pd

# ============================================================================
class SolverError(Exception):
    """
    Custom exception related to `solver` module.
    """
    pass
# ============================================================================

# ----------------------------------------------------------------------------
class SimulationSolution(object):
    """
    Class containing the realizations of a simulation problem.

    **Attributes**

    domain : :class:`dgsim.domain.Grid` or :class:`dgsim.domain.PointSet`
        simulation domain

    varnames : list of strs
        names of the simulated variables

    nreal : int
        number of realizations

    realizations : dict
        `realizations[varname]`: 2D array of shape (`nreal`, N), with N the
        number of locations in the domain; `realizations[varname][i]` is the
        i-th realization of the variable `varname`
    """
    def __init__(self, domain, varnames, realizations):
        """
        Inits an instance of the class.

        Parameters
        ----------
        domain : :class:`dgsim.domain.Grid` or :class:`dgsim.domain.PointSet`
            simulation domain

        varnames : list of strs
            names of the simulated variables

        realizations : dict
            `realizations[varname]`: array-like of shape (nreal, N)
        """
        self.domain = domain
        self.varnames = list(varnames)
        self.realizations = {varname: np.asarray(realizations[varname], dtype=float) for varname in self.varnames}
        if len(self.varnames):
            self.nreal = self.realizations[self.varnames[0]].shape[0]
        else:
            self.nreal = 0

    # ------------------------------------------------------------------------
    def __repr__(self):
        out = '*** SimulationSolution object ***'
        out = out + '\n' + 'varnames = {0.varnames}'.format(self)
        out = out + '\n' + 'nreal = {0.nreal} # number of realization(s)'.format(self)
        out = out + '\n' + 'number of locations: {}'.format(self.domain.nelem())
        out = out + '\n' + '*****'
        return out
    # ------------------------------------------------------------------------

    def __getitem__(self, varname):
        return self.realizations[varname]

    def to_dict(self):
        """
        Returns the realizations as a dictionary (variable name -> 2D array).
        """
        return dict(self.realizations)

    def to_dataframe(self, ireal=0):
        """
        Returns one realization as a data frame.

        Parameters
        ----------
        ireal : int, default: 0
            index of the realization

        Returns
        -------
        df : :class:`pandas.DataFrame`
            one row per location, with the coordinates of the location
            (columns 'X', 'Y', 'Z', according to the space dimension) and the
            simulated value of each variable (one column per variable)
        """
        xyz = self.domain.coords()
        columns = {name: xyz[:, i] for i, name in enumerate(('X', 'Y', 'Z')[:xyz.shape[1]])}
        for varname in self.varnames:
            columns[varname] = self.realizations[varname][ireal]
        return pd.DataFrame(columns)

    def mean(self, varname):
        """
        Returns the mean over the realizations of a variable, at each location.
        """
        return np.mean(self.realizations[varname], axis=0)

    def var(self, varname):
        """
        Returns the variance over the realizations of a variable, at each location.
        """
        return np.var(self.realizations[varname], axis=0)
# ----------------------------------------------------------------------------

# ----------------------------------------------------------------------------
class SimulationSolver(abc.ABC):
    """
    Base class of simulation solvers (see module docstring).
    """
    @abc.abstractmethod
    def covariate_groups(self, problem, logger=None):
        """
        Returns the list of covariate groups (tuples of variable names
        simulated together) of a problem.
        """

    @abc.abstractmethod
    def preprocess(self, problem, verbose=1, logger=None):
        """
        Returns a mapping from covariate groups to preprocessed parameters.
        """

    @abc.abstractmethod
    def simulate_group(self, group, preproc, rng=None, logger=None):
        """
        Returns one realization (dict: variable name -> 1D array) of the
        variables of a covariate group.
        """

    def solve_single(self, preproc, rng=None, logger=None):
        """
        Generates one realization of every variable of a problem.

        Parameters
        ----------
        preproc : mapping
            preprocessed parameters (output of method `preprocess`)

        rng : :class:`numpy.random.Generator` or int, optional
            random number generator (or seed); covariate groups are simulated
            in the order of `preproc`, with the same generator

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)

        Returns
        -------
        result : dict
            `result[varname]`: 1D array, realization of the variable `varname`
        """
        rng = np.random.default_rng(rng)
        result = {}
        for group in preproc.keys():
            result.update(self.simulate_group(group, preproc, rng=rng, logger=logger))
        return result

    def solve(self, problem, seed=None, nproc=1, verbose=1, logger=None):
        """
        Generates all the realizations of a simulation problem.

        The problem is preprocessed once, then `problem.nreal` realizations
        are generated, each one with its own random number generator spawned
        from `seed`.

        Parameters
        ----------
        problem : :class:`dgsim.problem.SimulationProblem`
            simulation problem

        seed : int, optional
            seed of the random number generation; specifying a seed guarantees
            reproducible results whatever the number of processes used

        nproc : int, default: 1
            number of processes; the realizations are distributed in a balanced
            way over the processes; a negative number (or zero), -n <= 0, can be
            specified to use the total number of cpu(s) of the system except n;
            `nproc` is finally at maximum equal to `nreal` but at least 1

        verbose : int, default: 1
            verbose mode, higher implies more printing (info)

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)

        Returns
        -------
        solution : :class:`SimulationSolution`
            all the realizations
        """
        fname = 'solve'

        nreal = problem.nreal

        if verbose > 1:
            if logger:
                logger.info(f'{fname}: preprocessing...')
            else:
                print(f'{fname}: preprocessing...')

        preproc = self.preprocess(problem, verbose=verbose, logger=logger)

        # One independent stream per realization
        seed_seq = np.random.SeedSequence(seed).spawn(nreal)

        # Set number of process(es): nproc
        if nproc is None:
            nproc = 1

        if nproc <= 0:
            nproc = max(min(multiprocessing.cpu_count() + nproc, nreal), 1)
        else:
            nproc = max(min(int(nproc), nreal), 1)

        if nproc == 1:
            out = _solve_realizations(self, preproc, seed_seq, verbose=verbose, logger=logger)
        else:
            # Set index for distributing realizations
            q, r = np.divmod(nreal, nproc)
            ids_proc = [i*q + min(i, r) for i in range(nproc+1)]

            if verbose > 1:
                if logger:
                    logger.info(f'{fname}: running on {nproc} processes...')
                else:
                    print(f'{fname}: running on {nproc} processes...')

            # mapping proxies cannot be sent to the workers
            preproc_dict = dict(preproc)

            pool = multiprocessing.Pool(nproc)
            out_pool = []
            for i in range(nproc):
                out_pool.append(pool.apply_async(
                    _solve_realizations,
                    args=(self, preproc_dict, seed_seq[ids_proc[i]:ids_proc[i+1]]),
                    kwds=dict(verbose=verbose*(i==0), logger=logger)))

            pool.close()
            pool.join()

            try:
                out = [res for w in out_pool for res in w.get()]
            except Exception as exc:
                err_msg = f'{fname}: an error occured on a process (worker)'
                if logger: logger.error(err_msg)
                raise SolverError(err_msg) from exc

        realizations = {varname: np.vstack([res[varname] for res in out]) for varname in problem.varnames}

        return SimulationSolution(problem.domain, problem.varnames, realizations)
# ----------------------------------------------------------------------------

# ----------------------------------------------------------------------------
def _solve_realizations(solver, preproc, seed_seq, verbose=1, logger=None):
    """
    Generates one realization per seed sequence in `seed_seq`.
    """
    fname = 'solve'

    out = []
    for i, ss in enumerate(seed_seq):
        if verbose > 2:
            if logger:
                logger.info(f'{fname}: realization {i+1:4d} of {len(seed_seq):4d}...')
            else:
                print(f'{fname}: realization {i+1:4d} of {len(seed_seq):4d}...')
        out.append(solver.solve_single(preproc, rng=np.random.default_rng(ss), logger=logger))
    return out
# ----------------------------------------------------------------------------
