#!/usr/bin/env python
# -*- coding: utf-8 -*-

# -------------------------------------------------------------------------
# Python module:  'directGaussSim.py'
# -------------------------------------------------------------------------

"""
Module for direct Gaussian simulation (a.k.a. LU simulation), of one variable
or two correlated variables, possibly conditioned by hard data.

The covariance matrix between the locations to simulate, conditioned by the
hard data (Schur complement), is factorized once (Cholesky decomposition),
and each realization is then obtained by a matrix-vector product with a
standard Gaussian white noise. Two variables of a same covariate group are
correlated (at lag 0) by mixing their white noises.

References
----------
- F. Alabert (1987) \
The practice of fast conditional simulations through the LU decomposition \
of the covariance matrix. \
Mathematical Geology 19(5):369-386, \
`doi:10.1007/BF00897191 <https://dx.doi.org/10.1007/BF00897191>`_
- D. S. Oliver (2003) \
Gaussian cosimulation: modelling of the cross-covariance. \
Mathematical Geology 35(6):681-698, \
`doi:10.1023/B:MATG.0000002984.56637.ef <https://dx.doi.org/10.1023/B:MATG.0000002984.56637.ef>`_
"""

import types
from collections import namedtuple

import numpy as np
import scipy.linalg

from dgsim import covModel as gcm
from dgsim import solver

# ============================================================================
class DirectGaussSimError(Exception):
    """
    Custom exception related to `directGaussSim` module.
    """
    pass

class InvalidGroupSizeError(DirectGaussSimError):
    """
    A covariate group does not contain 1 or 2 variables.
    """
    pass

class NonStationaryModelError(DirectGaussSimError):
    """
    A covariance model is not stationary.
    """
    pass

class InvalidJointParametersError(DirectGaussSimError):
    """
    Joint parameters of a pair of variables are missing or not valid.
    """
    pass

class IllConditionedCovarianceError(DirectGaussSimError):
    """
    A covariance matrix is not positive definite (Cholesky decomposition failed).

    **Attributes**

    varname : str
        name of the variable

    locs : 1D array of ints
        indexes of the locations spanned by the covariance matrix
    """
    def __init__(self, msg, varname=None, locs=None):
        super().__init__(msg)
        self.varname = varname
        self.locs = locs

class IgnoredMeanWarning(UserWarning):
    """
    A mean is given for a variable that has hard data (the mean is ignored).
    """
    pass
# ============================================================================

# Preprocessed parameters of one variable:
#   z1:    hard data values (at dlocs)
#   d2:    conditional mean contribution (at slocs)
#   L22:   lower triangular Cholesky factor of the conditional covariance (at slocs)
#   mu:    mean (of unconditional simulation)
#   dlocs: data locations
#   slocs: simulation locations (ascending order)
PreprocessedVariable = namedtuple('PreprocessedVariable', ['z1', 'd2', 'L22', 'mu', 'dlocs', 'slocs'])

# Preprocessed parameters of a pair of variables:
#   rho: correlation coefficient (at lag 0)
PreprocessedJoint = namedtuple('PreprocessedJoint', ['rho'])

# ----------------------------------------------------------------------------
def pair_key(varname1, varname2):
    """
    Returns the key identifying the (unordered) pair of variables.
    """
    return tuple(sorted((varname1, varname2)))
# ----------------------------------------------------------------------------

# ----------------------------------------------------------------------------
class VariableParams(object):
    """
    Class defining the parameters of one variable.

    **Attributes**

    cov_model : :class:`dgsim.covModel.CovModel1D`
        stationary covariance model

    mean : float, or None
        mean of the variable, used in unconditional simulation only (ignored if
        the variable has hard data); `None` for a mean of zero
    """
    def __init__(self, cov_model=None, mean=None, logger=None):
        """
        Inits an instance of the class.

        Parameters
        ----------
        cov_model : :class:`dgsim.covModel.CovModel1D`, optional
            stationary covariance model;
            by default (`None`): gaussian model with sill 1 and range 1

        mean : float, optional
            mean of the variable (unconditional simulation)

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)
        """
        fname = 'VariableParams'

        if cov_model is None:
            cov_model = gcm.CovModel1D(elem=[('gaussian', {'w':1.0, 'r':1.0})])

        if not isinstance(cov_model, gcm.CovModel1D):
            err_msg = f'{fname}: `cov_model` invalid, should be a `CovModel1D`'
            if logger: logger.error(err_msg)
            raise DirectGaussSimError(err_msg)

        if not cov_model.is_stationary():
            err_msg = f'{fname}: `cov_model` must be stationary'
            if logger: logger.error(err_msg)
            raise NonStationaryModelError(err_msg)

        if mean is not None:
            mean = float(mean)
            if not np.isfinite(mean):
                err_msg = f'{fname}: `mean` must be finite'
                if logger: logger.error(err_msg)
                raise DirectGaussSimError(err_msg)

        self.cov_model = cov_model
        self.mean = mean

    def __repr__(self):
        return f"VariableParams(cov_model='{self.cov_model.name}', mean={self.mean})"
# ----------------------------------------------------------------------------

# ----------------------------------------------------------------------------
class JointParams(object):
    """
    Class defining the parameters of a pair of variables.

    **Attributes**

    correlation : float
        correlation coefficient (at lag 0) between the two variables, in
        [-1, 1]
    """
    def __init__(self, correlation=0.0, logger=None):
        """
        Inits an instance of the class.

        Parameters
        ----------
        correlation : float, default: 0.0
            correlation coefficient, in [-1, 1]

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)
        """
        fname = 'JointParams'

        correlation = float(correlation)
        if not np.isfinite(correlation) or abs(correlation) > 1.0:
            err_msg = f'{fname}: `correlation` must be in [-1, 1]'
            if logger: logger.error(err_msg)
            raise InvalidJointParametersError(err_msg)

        self.correlation = correlation

    def __repr__(self):
        return f'JointParams(correlation={self.correlation})'
# ----------------------------------------------------------------------------

# ----------------------------------------------------------------------------
def symmetrize(c):
    """
    Returns the symmetric part `(c + c^T)/2` of a square matrix.
    """
    return 0.5 * (c + c.T)

def cholesky_lower(c, varname=None, locs=None, logger=None):
    """
    Computes the lower triangular Cholesky factor of a covariance matrix.

    The matrix is symmetrized before the factorization.

    Parameters
    ----------
    c : 2D array of shape (n, n)
        covariance matrix

    varname : str, optional
        name of the variable (for error message)

    locs : 1D array of ints, optional
        locations spanned by `c` (for error message)

    logger : :class:`logging.Logger`, optional
        logger (see package `logging`)
        if specified, messages are written via `logger` (no print)

    Returns
    -------
    L : 2D array of shape (n, n)
        lower triangular matrix such that `L L^T = (c + c^T)/2`
    """
    fname = 'cholesky_lower'

    if c.shape[0] == 0:
        return np.zeros((0, 0))

    try:
        L = scipy.linalg.cholesky(symmetrize(c), lower=True)
    except (np.linalg.LinAlgError, ValueError) as exc:
        err_msg = f'{fname}: covariance matrix not positive definite (variable `{varname}`, {c.shape[0]} location(s))'
        if logger: logger.error(err_msg)
        raise IllConditionedCovarianceError(err_msg, varname=varname, locs=locs) from exc

    return L
# ----------------------------------------------------------------------------

# ----------------------------------------------------------------------------
def _readonly(a):
    a.setflags(write=False)
    return a
# ----------------------------------------------------------------------------

# ----------------------------------------------------------------------------
class DirectGaussSim(solver.SimulationSolver):
    """
    Direct Gaussian simulation (a.k.a. LU simulation) solver.

    **Attributes**

    varparams : dict
        `varparams[varname]`: :class:`VariableParams`, parameters of the
        variable `varname`; variables of a problem that are not in this
        dictionary get default parameters (`VariableParams()`)

    jointparams : dict
        `jointparams[pair_key(varname1, varname2)]`: :class:`JointParams`,
        parameters of the pair of variables; two variables of a pair are
        simulated together (covariate group)

    Examples
    --------
    Simulate two variables 'v1' and 'v2' independently:

        >>> cov_model = CovModel1D(elem=[('spherical', {'w':1.0, 'r':10.0})])
        >>> solver = DirectGaussSim({'v1':VariableParams(cov_model, mean=10.0),
                                     'v2':VariableParams()})

    Simulate 'v1' and 'v2' with a correlation of 0.7:

        >>> solver = DirectGaussSim({'v1':VariableParams(cov_model, mean=10.0),
                                     'v2':VariableParams()},
                                    {('v1', 'v2'):JointParams(0.7)})
    """
    def __init__(self, varparams=None, jointparams=None, logger=None):
        """
        Inits an instance of the class.

        Parameters
        ----------
        varparams : dict, optional
            `varparams[varname]`: :class:`VariableParams`, or dict of keyword
            arguments for :class:`VariableParams`

        jointparams : dict, optional
            `jointparams[(varname1, varname2)]`: :class:`JointParams`, or
            dict of keyword arguments for :class:`JointParams`; the order of
            the two names in the key does not matter

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)
        """
        fname = 'DirectGaussSim'

        if varparams is None:
            varparams = {}
        if jointparams is None:
            jointparams = {}

        self.varparams = {}
        for varname, p in varparams.items():
            if isinstance(p, dict):
                p = VariableParams(logger=logger, **p)
            elif not isinstance(p, VariableParams):
                err_msg = f'{fname}: parameters of variable `{varname}` invalid'
                if logger: logger.error(err_msg)
                raise DirectGaussSimError(err_msg)
            self.varparams[varname] = p

        self.jointparams = {}
        for names, p in jointparams.items():
            if not isinstance(names, tuple) or len(names) != 2 or names[0] == names[1]:
                err_msg = f'{fname}: joint parameters must be keyed by a pair of distinct variable names'
                if logger: logger.error(err_msg)
                raise InvalidJointParametersError(err_msg)
            key = pair_key(*names)
            if key in self.jointparams:
                err_msg = f'{fname}: joint parameters given twice for pair {key}'
                if logger: logger.error(err_msg)
                raise InvalidJointParametersError(err_msg)
            if isinstance(p, dict):
                p = JointParams(logger=logger, **p)
            elif not isinstance(p, JointParams):
                err_msg = f'{fname}: joint parameters of pair {key} invalid'
                if logger: logger.error(err_msg)
                raise InvalidJointParametersError(err_msg)
            self.jointparams[key] = p

    # ------------------------------------------------------------------------
    def __repr__(self):
        out = '*** DirectGaussSim object ***'
        for varname, p in self.varparams.items():
            out = out + '\n' + "'{}': {}".format(varname, p)
        for key, p in self.jointparams.items():
            out = out + '\n' + '{}: {}'.format(key, p)
        out = out + '\n' + '*****'
        return out
    # ------------------------------------------------------------------------

    def variable_params(self, varname):
        """
        Returns the parameters of a variable (default parameters if not set).
        """
        if varname in self.varparams:
            return self.varparams[varname]
        return VariableParams()

    def joint_params(self, varname1, varname2, logger=None):
        """
        Returns the parameters of a pair of variables (in any order).
        """
        fname = 'joint_params'

        key = pair_key(varname1, varname2)
        if key not in self.jointparams:
            err_msg = f'{fname}: no joint parameters for pair {key}'
            if logger: logger.error(err_msg)
            raise InvalidJointParametersError(err_msg)
        return self.jointparams[key]

    def covariate_groups(self, problem, logger=None):
        """
        Returns the covariate groups of a problem.

        Variables linked by joint parameters are gathered in one group, any
        other variable forms a group by itself. Within a group, variables are
        in the order of `problem.varnames`. Groups are not checked here: a
        variable linked to two other variables gives a group of 3 variables.

        Parameters
        ----------
        problem : :class:`dgsim.problem.SimulationProblem`
            simulation problem

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)

        Returns
        -------
        groups : list of tuples of strs
            covariate groups
        """
        fname = 'covariate_groups'

        for varname in self.varparams.keys():
            if varname not in problem.varnames:
                err_msg = f'{fname}: parameters given for variable `{varname}` that is not in the problem'
                if logger: logger.error(err_msg)
                raise DirectGaussSimError(err_msg)

        for key in self.jointparams.keys():
            if key[0] not in problem.varnames or key[1] not in problem.varnames:
                err_msg = f'{fname}: joint parameters given for pair {key} not in the problem'
                if logger: logger.error(err_msg)
                raise InvalidJointParametersError(err_msg)

        linked = {varname: set() for varname in problem.varnames}
        for v1, v2 in self.jointparams.keys():
            linked[v1].add(v2)
            linked[v2].add(v1)

        groups = []
        done = set()
        for varname in problem.varnames:
            if varname in done:
                continue
            # Connected component of varname
            comp = {varname}
            stack = [varname]
            while stack:
                for v in linked[stack.pop()]:
                    if v not in comp:
                        comp.add(v)
                        stack.append(v)
            done.update(comp)
            groups.append(tuple(v for v in problem.varnames if v in comp))

        return groups

    def preprocess_variable(self, problem, varname, verbose=1, logger=None):
        """
        Preprocesses one variable: partition of the locations and Cholesky
        factorization of the conditional covariance matrix.

        Parameters
        ----------
        problem : :class:`dgsim.problem.SimulationProblem`
            simulation problem

        varname : str
            variable name

        verbose : int, default: 1
            verbose mode, higher implies more printing (info)

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)

        Returns
        -------
        params : :class:`PreprocessedVariable`
            preprocessed parameters

        warnings : list of :class:`IgnoredMeanWarning`
            diagnostic(s) encountered (possibly empty)
        """
        fname = 'preprocess_variable'

        warnings = []

        vparams = self.variable_params(varname)
        cov_model = vparams.cov_model

        if not cov_model.is_stationary():
            err_msg = f'{fname}: covariance model of variable `{varname}` must be stationary'
            if logger: logger.error(err_msg)
            raise NonStationaryModelError(err_msg)

        # Data locations and values
        datamap = problem.observed_locations(varname, logger=logger)
        dlocs = np.array([loc for loc, _ in datamap], dtype=int)
        z1 = np.array([val for _, val in datamap], dtype=float)

        # Simulation locations
        mask = np.ones(problem.domain_size(), dtype=bool)
        mask[dlocs] = False
        slocs = np.flatnonzero(mask)

        if verbose > 1:
            if logger:
                logger.info(f'{fname}: variable `{varname}`: {dlocs.size} data location(s), {slocs.size} simulation location(s)')
            else:
                print(f'{fname}: variable `{varname}`: {dlocs.size} data location(s), {slocs.size} simulation location(s)')

        sill = cov_model.sill()

        # Covariance between simulation locations
        C22 = sill - gcm.pairwise(cov_model, problem.domain, slocs, logger=logger)

        if dlocs.size == 0:
            d2 = np.zeros(slocs.size)
            L22 = cholesky_lower(C22, varname=varname, locs=slocs, logger=logger)
        elif slocs.size == 0:
            # every location is informed
            d2 = np.zeros(0)
            L22 = np.zeros((0, 0))
        else:
            # Covariance between data locations, and data / simulation locations
            C11 = sill - gcm.pairwise(cov_model, problem.domain, dlocs, logger=logger)
            C12 = sill - gcm.pairwise(cov_model, problem.domain, dlocs, slocs, logger=logger)

            L11 = cholesky_lower(C11, varname=varname, locs=dlocs, logger=logger)
            B12 = scipy.linalg.solve_triangular(L11, C12, lower=True)
            A21 = B12.T

            d2 = A21.dot(scipy.linalg.solve_triangular(L11, z1, lower=True))
            L22 = cholesky_lower(C22 - A21.dot(B12), varname=varname, locs=slocs, logger=logger)

        if vparams.mean is not None and dlocs.size > 0:
            msg = f'{fname}: mean of variable `{varname}` is ignored (conditional simulation)'
            warnings.append(IgnoredMeanWarning(msg))
            if verbose > 0:
                if logger:
                    logger.warning(msg)
                else:
                    print(f'{fname}: WARNING: mean of variable `{varname}` is ignored (conditional simulation)')

        # Mean for unconditional simulation
        if vparams.mean is not None and dlocs.size == 0:
            mu = vparams.mean
        else:
            mu = 0.0

        params = PreprocessedVariable(
            _readonly(z1), _readonly(d2), _readonly(L22), mu, _readonly(dlocs), _readonly(slocs))

        return params, warnings

    def preprocess_group(self, problem, group, retrieve_warnings=False, verbose=1, logger=None):
        """
        Preprocesses one covariate group.

        Parameters
        ----------
        problem : :class:`dgsim.problem.SimulationProblem`
            simulation problem

        group : sequence of strs
            covariate group, 1 or 2 variable names

        retrieve_warnings : bool, default: False
            indicates if the warnings encountered are retrieved in output

        verbose : int, default: 1
            verbose mode, higher implies more printing (info)

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)

        Returns
        -------
        params : tuple
            - `(PreprocessedVariable,)` for a group of one variable
            - `(PreprocessedVariable, PreprocessedVariable, PreprocessedJoint)` \
            for a group of two variables

        warnings : list of :class:`IgnoredMeanWarning`
            returned if `retrieve_warnings=True`
        """
        fname = 'preprocess_group'

        group = tuple(group)
        if len(group) not in (1, 2):
            err_msg = f'{fname}: invalid number of variables ({len(group)}) in covariate group {group}, should be 1 or 2'
            if logger: logger.error(err_msg)
            raise InvalidGroupSizeError(err_msg)

        params = []
        warnings = []
        for varname in group:
            p, w = self.preprocess_variable(problem, varname, verbose=verbose, logger=logger)
            params.append(p)
            warnings.extend(w)

        if len(group) == 2:
            rho = self.joint_params(*group, logger=logger).correlation

            if not np.isfinite(rho) or abs(rho) > 1.0:
                err_msg = f'{fname}: correlation of pair {group} must be in [-1, 1]'
                if logger: logger.error(err_msg)
                raise InvalidJointParametersError(err_msg)

            if params[0].slocs.size != params[1].slocs.size:
                err_msg = f'{fname}: variables of pair {group} must have the same number of simulation locations ({params[0].slocs.size} and {params[1].slocs.size})'
                if logger: logger.error(err_msg)
                raise InvalidJointParametersError(err_msg)

            params.append(PreprocessedJoint(rho))

        if retrieve_warnings:
            return tuple(params), warnings
        else:
            return tuple(params)

    def preprocess(self, problem, retrieve_warnings=False, verbose=1, logger=None):
        """
        Preprocesses all the covariate groups of a problem.

        Parameters
        ----------
        problem : :class:`dgsim.problem.SimulationProblem`
            simulation problem

        retrieve_warnings : bool, default: False
            indicates if the warnings encountered are retrieved in output

        verbose : int, default: 1
            verbose mode, higher implies more printing (info)

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)

        Returns
        -------
        preproc : mapping (read-only)
            `preproc[group]`: preprocessed parameters of the covariate group
            `group` (see method `preprocess_group`)

        warnings : list of :class:`IgnoredMeanWarning`
            returned if `retrieve_warnings=True`
        """
        preproc = {}
        warnings = []
        for group in self.covariate_groups(problem, logger=logger):
            preproc[group], w = self.preprocess_group(problem, group, retrieve_warnings=True, verbose=verbose, logger=logger)
            warnings.extend(w)

        preproc = types.MappingProxyType(preproc)
        if retrieve_warnings:
            return preproc, warnings
        else:
            return preproc

    def simulate_group(self, group, preproc, rng=None, logger=None):
        """
        Generates one realization of the variables of a covariate group.

        Parameters
        ----------
        group : sequence of strs
            covariate group, 1 or 2 variable names

        preproc : mapping
            preprocessed parameters (output of method `preprocess`)

        rng : :class:`numpy.random.Generator` or int, optional
            random number generator (or seed)

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)

        Returns
        -------
        result : dict
            `result[varname]`: 1D array of length N (number of locations in
            the domain), realization of the variable `varname`
        """
        fname = 'simulate_group'

        group = tuple(group)
        if group not in preproc:
            err_msg = f'{fname}: covariate group {group} not preprocessed'
            if logger: logger.error(err_msg)
            raise DirectGaussSimError(err_msg)

        params = preproc[group]
        rng = np.random.default_rng(rng)

        # Simulate first variable
        y1, w1 = lusim(params[0], rng=rng, logger=logger)
        result = {group[0]: y1}

        # Simulate second variable
        if len(group) == 2:
            rho = params[2].rho
            y2, _ = lusim(params[1], rho=rho, w1=w1, rng=rng, logger=logger)
            result[group[1]] = y2

        return result
# ----------------------------------------------------------------------------

# ----------------------------------------------------------------------------
def lusim(params, rho=None, w1=None, rng=None, logger=None):
    """
    Generates one realization of a variable from its preprocessed parameters.

    Parameters
    ----------
    params : :class:`PreprocessedVariable`
        preprocessed parameters of the variable

    rho : float, optional
        correlation coefficient with a variable simulated before, whose white
        noise is `w1`; by default (`None`): no correlation

    w1 : 1D array, optional
        white noise of the variable simulated before (used if `rho` is
        not `None`), of same length as the simulation locations

    rng : :class:`numpy.random.Generator` or int, optional
        random number generator (or seed)

    logger : :class:`logging.Logger`, optional
        logger (see package `logging`)
        if specified, messages are written via `logger` (no print)

    Returns
    -------
    y : 1D array
        realization at every location of the domain (hard data reproduced
        at data locations)

    w2 : 1D array
        white noise drawn for this variable
    """
    fname = 'lusim'

    z1, d2, L22, mu, dlocs, slocs = params
    rng = np.random.default_rng(rng)

    # Number of points in domain
    npts = dlocs.size + slocs.size

    w2 = rng.standard_normal(L22.shape[1])
    if rho is None:
        y2 = d2 + L22.dot(w2)
    else:
        w1 = np.asarray(w1, dtype=float)
        if w1.shape != w2.shape:
            err_msg = f'{fname}: white noise `w1` of length {w1.size} incompatible with {w2.size} simulation location(s)'
            if logger: logger.error(err_msg)
            raise InvalidJointParametersError(err_msg)
        y2 = d2 + L22.dot(rho*w1 + np.sqrt(1.0 - rho**2)*w2)

    # Hard data and simulated values
    y = np.empty(npts)
    y[dlocs] = z1
    y[slocs] = y2

    # Mean in case of unconditional simulation
    if dlocs.size == 0:
        y += mu

    return y, w2
# ----------------------------------------------------------------------------
