#!/usr/bin/env python
# -*- coding: utf-8 -*-

# -------------------------------------------------------------------------
# Python module:  'covModel.py'
# -------------------------------------------------------------------------

"""
Module for:

- definition of (omni-directional) covariance / variogram models
- evaluation of pairwise variogram / covariance matrices between subsets of
  locations of a domain
"""

import numpy as np
import scipy.special
from scipy.spatial import distance

# ============================================================================
class CovModelError(Exception):
    """
    Custom exception related to `covModel` module.
    """
    pass
# ============================================================================

# ============================================================================
# Definition of elementary covariance models:
#   - nugget, spherical, exponential, gaussian, triangular, cubic, sinus_cardinal
#       parameters: w, r
#   - gamma, exponential_generalized
#       parameters: w, r, s
#   - matern
#       parameters: w, r, nu
# ============================================================================
# ----------------------------------------------------------------------------
def cov_nug(h, w=1.0):
    """
    Nugget covariance model.

    Function `v = w * f(h)`, where

    * f(h) = 1, if h=0
    * f(h) = 0, otherwise

    Parameters
    ----------
    h : 1D array-like of floats, or float
        value(s) (lag(s)) where the covariance model is evaluated

    w : float, default: 1.0
        weight (sill), should be positive

    Returns
    -------
    v : 1D array of floats, or float
        evaluation of the covariance model at `h`
    """
    return w * np.asarray(h==0., dtype=float)

def cov_sph(h, w=1.0, r=1.0):
    """
    Spherical covariance model.

    Function `v = w * f(|h|/r)`, where

    * f(t) = 1 - 3/2 * t + 1/2 * t**3, if 0 <= t < 1
    * f(t) = 0,                        if t >= 1
    """
    t = np.minimum(np.abs(h)/r, 1.)
    return w * (1 - 0.5 * t * (3. - t**2))

def cov_exp(h, w=1.0, r=1.0):
    """
    Exponential covariance model: `v = w * exp(-3*|h|/r)`.
    """
    return w * np.exp(-3. * np.abs(h)/r)

def cov_gau(h, w=1.0, r=1.0):
    """
    Gaussian covariance model: `v = w * exp(-3*(h/r)**2)`.
    """
    return w * np.exp(-3. * (h/r)**2)

def cov_tri(h, w=1.0, r=1.0):
    """
    Triangular covariance model: `v = w * (1 - min(|h|/r, 1))`.

    Note: valid (positive definite) in 1D only.
    """
    t = np.minimum(np.abs(h)/r, 1.)
    return w * (1.0 - t)

def cov_cub(h, w=1.0, r=1.0):
    """
    Cubic covariance model.

    Function `v = w * f(|h|/r)`, where

    * f(t) = 1 - 7 * t**2 + 35/4 * t**3 - 7/2 * t**5 + 3/4 * t**7, if 0 <= t < 1
    * f(t) = 0,                                                    if t >= 1
    """
    t = np.minimum(np.abs(h)/r, 1.)
    t2 = t**2
    return w * (1 + t2 * (-7. + t * (8.75 + t2 * (-3.5 + 0.75 * t2))))

def cov_sinc(h, w=1.0, r=1.0):
    """
    Sinus-cardinal covariance model: `v = w * sin(pi*h/r)/(pi*h/r)`.
    """
    # np.sinc(x) = np.sin(np.pi*x)/(np.pi*x)
    return w * np.sinc(h/r)

def cov_gamma(h, w=1.0, r=1.0, s=1.0):
    """
    Gamma covariance model.

    Function `v = w / (1 + alpha*|h|/r)**s`, with `alpha = 20**(1/s) - 1`
    (i.e. `v = w/20` at `|h| = r`).
    """
    alpha = 20.0**(1.0/s) - 1.0
    return w / (1.0 + alpha * np.abs(h)/r)**s

def cov_exp_gen(h, w=1.0, r=1.0, s=1.0):
    """
    Exponential-generalized covariance model: `v = w * exp(-3*(|h|/r)**s)`.
    """
    return w * np.exp(-3. * (np.abs(h)/r)**s)

def cov_matern(h, w=1.0, r=1.0, nu=0.5):
    """
    Matern covariance model.

    Function

    * `v = w * 1.0/(2.0**(nu-1.0)*Gamma(nu)) * u**nu * K_{nu}(u)`

    where

    * `u = np.sqrt(2.0*nu)/r * |h|`
    * Gamma is the function gamma
    * `K_{nu}` is the modified Bessel function of the second kind of \
    parameter `nu`

    Parameters
    ----------
    h : 1D array-like of floats, or float
        value(s) (lag(s)) where the covariance model is evaluated

    w : float, default: 1.0
        weight (sill), should be positive

    r : float, default: 1.0
        scale parameter, should be positive

    nu : float, default: 0.5
        smoothness parameter, should be positive

    Returns
    -------
    v : 1D array of floats, or float
        evaluation of the covariance model at `h`

    Notes
    -----
    `cov_matern(h, w, r, nu=0.5) = cov_exp(h, w, 3*r)`
    """
    h = np.asarray(h, dtype=float)
    v = np.zeros_like(h)
    u = np.sqrt(2.0*nu)/r * np.abs(h)
    with np.errstate(over='ignore'):
        u1 = (0.5*u)**nu
    u2 = scipy.special.kv(nu, u)
    i1 = np.isinf(u1)
    i2 = np.isinf(u2) # lag 0
    ii = ~np.logical_or(i1, i2)
    v[ii] = w * 2.0/scipy.special.gamma(nu) * u1[ii] * u2[ii]
    v[i2] = w
    if v.ndim == 0:
        v = float(v)
    return v
# ----------------------------------------------------------------------------

# Elementary type -> (covariance function, allowed parameters)
_elem_cov_model = {
    'nugget':                  (cov_nug,     ('w',)),
    'spherical':               (cov_sph,     ('w', 'r')),
    'exponential':             (cov_exp,     ('w', 'r')),
    'gaussian':                (cov_gau,     ('w', 'r')),
    'triangular':              (cov_tri,     ('w', 'r')),
    'cubic':                   (cov_cub,     ('w', 'r')),
    'sinus_cardinal':          (cov_sinc,    ('w', 'r')),
    'gamma':                   (cov_gamma,   ('w', 'r', 's')),
    'exponential_generalized': (cov_exp_gen, ('w', 'r', 's')),
    'matern':                  (cov_matern,  ('w', 'r', 'nu')),
}

# ----------------------------------------------------------------------------
def check_elem_cov_model(elem, verbose=0):
    """
    Checks type and dictionary of parameters for an elementary covariance.

    Parameters
    ----------
    elem : 2-tuple
        elementary model (contributing to a covariance model), elem = (t, d)
        with

        * t : str
            type of elementary covariance model, can be

            - 'nugget'         (see function :func:`cov_nug`)
            - 'spherical'      (see function :func:`cov_sph`)
            - 'exponential'    (see function :func:`cov_exp`)
            - 'gaussian'       (see function :func:`cov_gau`)
            - 'triangular'     (see function :func:`cov_tri`)
            - 'cubic'          (see function :func:`cov_cub`)
            - 'sinus_cardinal' (see function :func:`cov_sinc`)
            - 'gamma'          (see function :func:`cov_gamma`)
            - 'exponential_generalized' (see function :func:`cov_exp_gen`)
            - 'matern'         (see function :func:`cov_matern`)

        * d : dict
            dictionary of required parameters to be passed to the elementary
            model `t`: `w` for every type, `r` for every type except
            'nugget', `s` for 'gamma' and 'exponential_generalized', `nu` for
            'matern'

    verbose : int, default: 0
        verbose mode, error message(s) are printed if `verbose>0`

    Returns
    -------
    ok : bool
        - True: covariance type and parameters are valid
        - False: otherwise

    err_mes_list : list
        list of error message (empty if `ok=True`)

    Notes
    -----
    Parameters may be given as arrays; the model is then non-stationary.
    """
    fname = 'check_elem_cov_model'

    ok = True
    err_mes_list = []

    try:
        t, d = elem
    except (TypeError, ValueError):
        err_mes_list.append(f'ERROR ({fname}): elementary contribution should be a 2-tuple (type, parameters)')
        ok = False
        if verbose > 0:
            for s in err_mes_list:
                print(s)
        return ok, err_mes_list

    if t not in _elem_cov_model:
        err_mes_list.append(f"ERROR ({fname}): unknown covariance type `'{t}'`")
        ok = False
    else:
        params = _elem_cov_model[t][1]
        for p in params:
            if p not in d.keys():
                err_mes_list.append(f"ERROR ({fname}): covariance type `'{t}'`: parameter '{p}' is required")
                ok = False
            elif p == 'w':
                if np.any(np.asarray(d['w']) < 0.0):
                    err_mes_list.append(f"ERROR ({fname}): covariance type `'{t}'`: parameter 'w' must be >= 0.0")
                    ok = False
            elif np.any(np.asarray(d[p]) <= 0.0):
                err_mes_list.append(f"ERROR ({fname}): covariance type `'{t}'`: parameter '{p}' must be > 0.0")
                ok = False
        # Check that no other parameter is present
        for p in d.keys():
            if p not in params:
                err_mes_list.append(f"ERROR ({fname}): covariance type `'{t}'`: unknown parameter `{p}`")
                ok = False

    if verbose > 0 and not ok:
        for s in err_mes_list:
            print(s)

    return ok, err_mes_list
# ----------------------------------------------------------------------------

# ============================================================================
# Definition of class for covariance models, as combination of elementary
# models
# ============================================================================
# ----------------------------------------------------------------------------
class CovModel1D(object):
    """
    Class defining an (omni-directional) covariance model.

    A covariance model is defined as the sum of elementary covariance models.

    An elementary variogram model is defined as its weight parameter (`w`) minus
    the covariance elementary model, and a variogram model is defined as the sum
    of elementary variogram models.

    The model is a function of the lag (distance) only; it is applied to the
    Euclidean distance between locations whatever the space dimension.

    This class is callable, returning the evaluation of the model (covariance or
    variogram) at given lag(s).

    **Attributes**

    elem : 1D array-like
        sequence of elementary model(s) (contributing to the covariance model),
        each element of the sequence is a 2-tuple (t, d), where

        - t : str
            type of elementary covariance model (see
            :func:`check_elem_cov_model`)

        - d : dict
            dictionary of required parameters to be passed to the elementary
            model `t`

        e.g.

        - (t, d) = ('spherical', {'w':2.0, 'r':1.5})
        - (t, d) = ('matern', {'w':2.0, 'r':1.5, 'nu':1.5})

    name : str, optional
        name of the model

    **Private attributes (SHOULD NOT BE SET DIRECTLY)**

    _sill : float
        sill (sum of weight of elementary contributions)

    _is_weight_stationary : bool
        indicates if the covariance model has stationary weight

    _is_range_stationary : bool
        indicates if the covariance model has stationary range(s)

    _is_stationary : bool
        indicates if the covariance model is stationary

    Examples
    --------
    To define a covariance model that is the sum of the 2 following
    elementary models:

    - gaussian with a contribution (weight) of 10.0 and a range of 100.0,
    - nugget of (contribution, weight) 0.5

        >>> cov_model = CovModel1D(elem=[
            ('gaussian', {'w':10., 'r':100.0}), # elementary contribution
            ('nugget', {'w':0.5})               # elementary contribution
            ], name='gau+nug')                  # name (optional)
    """
    def __init__(self,
                 elem=None,
                 name=None,
                 logger=None):
        """
        Inits an instance of the class.

        Parameters
        ----------
        elem : 1D array-like, optional
            sequence of elementary model(s)

        name : str, optional
            name of the model

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)
        """
        fname = 'CovModel1D'

        if elem is None:
            elem = []
        self.elem = list(elem)
        for el in self.elem:
            ok, err_mes_list = check_elem_cov_model(el, verbose=0)
            if not ok:
                err_msg = f'{fname}: elementary contribution not valid\n ... ' + '\n ... '.join(err_mes_list)
                if logger: logger.error(err_msg)
                raise CovModelError(err_msg)

        if name is None:
            if len(self.elem) == 1:
                name = 'cov1D-' + self.elem[0][0]
            elif len(self.elem) > 1:
                name = 'cov1D-multi-contribution'
            else:
                name = 'cov1D-zero'
        self.name = name
        self.reset_private_attributes()

    # ------------------------------------------------------------------------
    def __repr__(self):
        out = '*** CovModel1D object ***'
        out = out + '\n' + "name = '{0.name}'".format(self)
        out = out + '\n' + 'number of elementary contribution(s): {}'.format(len(self.elem))
        for i, el in enumerate(self.elem):
            out = out + '\n' + 'elementary contribution {}'.format(i)
            out = out + '\n' + '    type: {}'.format(el[0])
            out = out + '\n' + '    parameters:'
            for k, val in el[1].items():
                out = out + '\n' + '        {} = {}'.format(k, val)
        out = out + '\n' + '*****'
        return out
    # ------------------------------------------------------------------------

    # ------------------------------------------------------------------------
    def __call__(self, h, vario=False):
        """
        Evaluates the covariance model at given lags (`h`).

        Parameters
        ----------
        h : array-like of floats, or float
            lag(s) where the covariance model is evaluated

        vario : bool, default: False
            - if False: computes the covariance
            - if True: computes the variogram

        Returns
        -------
        y : array
            evaluation of the covariance or variogram model at `h`, of same
            shape as `h` (1D array if `h` is a float)
        """
        if vario:
            return self.vario_func()(h)
        else:
            return self.func()(h)
    # ------------------------------------------------------------------------

    def reset_private_attributes(self):
        """
        Resets (sets to `None`) the "private" attributes (beginning with "_").
        """
        self._sill = None
        self._is_weight_stationary = None
        self._is_range_stationary = None
        self._is_stationary = None

    def is_weight_stationary(self, recompute=False):
        """
        Checks if the covariance model has stationary weight.

        Parameters
        ----------
        recompute : bool, default: False
            True to force (re-)computing

        Returns
        -------
        flag : bool
            boolean indicating if the weight (parameter `w`) of every elementary
            contribution is stationary (defined as a unique value)
        """
        if self._is_weight_stationary is None or recompute:
            self._is_weight_stationary = not np.any([np.size(el[1]['w']) > 1 for el in self.elem])
        return self._is_weight_stationary

    def is_range_stationary(self, recompute=False):
        """
        Checks if the covariance model has stationary range.

        Parameters
        ----------
        recompute : bool, default: False
            True to force (re-)computing

        Returns
        -------
        flag : bool
            boolean indicating if the range (parameter `r`) of every elementary
            contribution is stationary (defined as a unique value)
        """
        if self._is_range_stationary is None or recompute:
            self._is_range_stationary = True
            for el in self.elem:
                if 'r' in el[1].keys() and np.size(el[1]['r']) > 1:
                    self._is_range_stationary = False
                    break
        return self._is_range_stationary

    def is_stationary(self, recompute=False):
        """
        Checks if the covariance model is stationary.

        Parameters
        ----------
        recompute : bool, default: False
            True to force (re-)computing

        Returns
        -------
        flag : bool
            boolean indicating if all the parameters are stationary (defined as
            a unique value)
        """
        if self._is_stationary is None or recompute:
            self._is_stationary = self.is_weight_stationary(recompute) and self.is_range_stationary(recompute)
            if self._is_stationary:
                for t, d in self.elem:
                    if np.any([np.size(v) > 1 for k, v in d.items() if k not in ('w', 'r')]):
                        self._is_stationary = False
                        break
        return self._is_stationary

    def sill(self, recompute=False):
        """
        Retrieves the sill of the covariance model.

        Parameters
        ----------
        recompute : bool, default: False
            True to force (re-)computing

        Returns
        -------
        sill : float
            sill, sum of the weights of all elementary contributions

        Notes
        -----
        Nothing is returned if the model has non-stationary weight
        (return `None`).
        """
        if self._sill is None or recompute:
            # Prevent calculation if weight is not stationary
            if not self.is_weight_stationary(recompute):
                self._sill = None
                return self._sill

            self._sill = float(sum([d['w'] for t, d in self.elem]))

        return self._sill

    def func(self):
        """
        Returns the function f for the evaluation of the covariance model.

        Returns
        -------
        f : function
            function of the lag(s) `h` (array-like of floats, or float),
            returning the evaluation of the covariance model at `h`

        Notes
        -----
        No evaluation is done if the model is not stationary (return `None`).
        """
        # Prevent calculation if covariance model is not stationary
        if not self.is_stationary():
            return None
        def f(h):
            h = np.atleast_1d(np.asarray(h, dtype=float))
            s = np.zeros(h.shape)
            for t, d in self.elem:
                s = s + _elem_cov_model[t][0](h, **d)
            return s

        return f

    def vario_func(self):
        """
        Returns the function f for the evaluation of the variogram model.

        Returns
        -------
        f : function
            function of the lag(s) `h` (array-like of floats, or float),
            returning the evaluation of the variogram model at `h`

        Notes
        -----
        No evaluation is done if the model is not stationary (return `None`).
        """
        # Prevent calculation if covariance model is not stationary
        if not self.is_stationary():
            return None
        def f(h):
            h = np.atleast_1d(np.asarray(h, dtype=float))
            s = np.zeros(h.shape)
            for t, d in self.elem:
                s = s + d['w'] - _elem_cov_model[t][0](h, **d)
            return s

        return f
# ----------------------------------------------------------------------------

# ----------------------------------------------------------------------------
def pairwise(cov_model, domain, locs_a, locs_b=None, vario=True, logger=None):
    """
    Computes the matrix of variogram (or covariance) values between two subsets
    of locations of a domain.

    Parameters
    ----------
    cov_model : :class:`CovModel1D`
        stationary covariance model, applied to Euclidean distances

    domain : :class:`dgsim.domain.Grid` or :class:`dgsim.domain.PointSet`
        domain, providing the coordinates of its locations (method `coords`)

    locs_a : 1D array-like of ints
        indexes of the locations (rows of the output)

    locs_b : 1D array-like of ints, optional
        indexes of the locations (columns of the output);
        by default (`None`): `locs_a` is used (the output is symmetric)

    vario : bool, default: True
        - if True: variogram values are computed
        - if False: covariance values are computed

    logger : :class:`logging.Logger`, optional
        logger (see package `logging`)
        if specified, messages are written via `logger` (no print)

    Returns
    -------
    m : 2D array of shape (len(locs_a), len(locs_b))
        `m[i, j]`: variogram (or covariance) between locations `locs_a[i]` and
        `locs_b[j]`
    """
    fname = 'pairwise'

    if not cov_model.is_stationary():
        err_msg = f'{fname}: `cov_model` is not stationary'
        if logger: logger.error(err_msg)
        raise CovModelError(err_msg)

    xyz = domain.coords()
    locs_a = np.asarray(locs_a, dtype=int).reshape(-1)
    if locs_b is None:
        locs_b = locs_a
    else:
        locs_b = np.asarray(locs_b, dtype=int).reshape(-1)

    if locs_a.size == 0 or locs_b.size == 0:
        return np.zeros((locs_a.size, locs_b.size))

    h = distance.cdist(xyz[locs_a], xyz[locs_b])
    return cov_model(h, vario=vario)
# ----------------------------------------------------------------------------
