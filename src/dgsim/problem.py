#!/usr/bin/env python
# -*- coding: utf-8 -*-

# -------------------------------------------------------------------------
# Python module:  'problem.py'
# -------------------------------------------------------------------------

"""
Module defining a simulation problem: a domain, the variables to simulate,
the hard data (conditioning data) and the number of realizations.
"""

import numpy as np

# ============================================================================
class ProblemError(Exception):
    """
    Custom exception related to `problem` module.
    """
    pass
# ============================================================================

# ----------------------------------------------------------------------------
class SimulationProblem(object):
    """
    Class defining a simulation problem.

    **Attributes**

    domain : :class:`dgsim.domain.Grid` or :class:`dgsim.domain.PointSet`
        simulation domain

    varnames : list of strs
        names of the variables to simulate

    nreal : int
        number of realizations

    **Private attributes (SHOULD NOT BE SET DIRECTLY)**

    _datamap : dict
        `_datamap[varname]`: list of 2-tuples `(location, value)` of the hard
        data of the variable `varname`, mapped on the domain
    """
    def __init__(self,
                 domain,
                 varnames,
                 data=None,
                 nreal=1,
                 verbose=1,
                 logger=None):
        """
        Inits an instance of the class.

        Parameters
        ----------
        domain : :class:`dgsim.domain.Grid` or :class:`dgsim.domain.PointSet`
            simulation domain

        varnames : str or sequence of strs
            name(s) of the variable(s) to simulate

        data : dict, optional
            hard data, `data[varname]` is either

            - a 2-tuple `(x, v)`, with `x` the coordinates of the data points \
            (2D array of shape (n, d), or 1D array of shape (n,) in 1D) and \
            `v` the values (1D array of shape (n,)); each point is mapped on \
            the domain location given by `domain.locate`
            - a dict `{location: value}`, with location indexes in the domain

            non-finite values are ignored; if several data are mapped on the
            same location, their mean is retained

        nreal : int, default: 1
            number of realizations

        verbose : int, default: 1
            verbose mode, higher implies more printing (info)

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)
        """
        fname = 'SimulationProblem'

        if isinstance(varnames, str):
            varnames = [varnames]
        self.varnames = list(varnames)
        if len(self.varnames) == 0 or len(set(self.varnames)) != len(self.varnames):
            err_msg = f'{fname}: `varnames` must be a non-empty sequence of distinct names'
            if logger: logger.error(err_msg)
            raise ProblemError(err_msg)

        self.nreal = int(nreal)
        if self.nreal < 1:
            err_msg = f'{fname}: `nreal` must be at least 1'
            if logger: logger.error(err_msg)
            raise ProblemError(err_msg)

        self.domain = domain

        if data is None:
            data = {}

        for varname in data.keys():
            if varname not in self.varnames:
                err_msg = f'{fname}: data given for unknown variable `{varname}`'
                if logger: logger.error(err_msg)
                raise ProblemError(err_msg)

        self._datamap = {}
        for varname in self.varnames:
            if varname in data:
                self._datamap[varname] = self._map_data(varname, data[varname], verbose=verbose, logger=logger)
            else:
                self._datamap[varname] = []

    # ------------------------------------------------------------------------
    def __repr__(self):
        out = '*** SimulationProblem object ***'
        out = out + '\n' + 'varnames = {0.varnames}'.format(self)
        out = out + '\n' + 'number of locations: {}'.format(self.domain_size())
        for varname in self.varnames:
            out = out + '\n' + "number of hard data for '{}': {}".format(varname, len(self._datamap[varname]))
        out = out + '\n' + 'nreal = {0.nreal}'.format(self)
        out = out + '\n' + '*****'
        return out
    # ------------------------------------------------------------------------

    def _map_data(self, varname, vdata, verbose=1, logger=None):
        """
        Maps the hard data of one variable on the domain locations.
        """
        fname = 'SimulationProblem'

        n = self.domain_size()

        if isinstance(vdata, dict):
            locs = np.asarray(list(vdata.keys()), dtype=int)
            v = np.asarray(list(vdata.values()), dtype=float)
            if np.any((locs < 0) | (locs >= n)):
                err_msg = f'{fname}: data location out of the domain for variable `{varname}`'
                if logger: logger.error(err_msg)
                raise ProblemError(err_msg)
        else:
            try:
                x, v = vdata
            except (TypeError, ValueError) as exc:
                err_msg = f'{fname}: data for variable `{varname}` should be a 2-tuple (x, v) or a dict'
                if logger: logger.error(err_msg)
                raise ProblemError(err_msg) from exc

            x = np.asarray(x, dtype=float)
            v = np.asarray(v, dtype=float).reshape(-1)
            if x.shape[0] != v.size:
                err_msg = f'{fname}: size of `x` and `v` not compatible for variable `{varname}`'
                if logger: logger.error(err_msg)
                raise ProblemError(err_msg)

            ind = np.isfinite(v)
            x, v = x[ind], v[ind]
            locs = self.domain.locate(x, logger=logger)

        # Ignore uninformed values
        ind = np.isfinite(v)
        locs, v = locs[ind], v[ind]

        # Aggregate data located in the same location (mean), keeping the order
        # of first occurrence
        uniq_locs, first, inv = np.unique(locs, return_index=True, return_inverse=True)
        if uniq_locs.size < locs.size:
            if verbose > 0:
                if logger:
                    logger.warning(f'{fname}: {locs.size - uniq_locs.size} data point(s) of variable `{varname}` share a location with another one (mean value retained)')
                else:
                    print(f'{fname}: WARNING: {locs.size - uniq_locs.size} data point(s) of variable `{varname}` share a location with another one (mean value retained)')
            vsum = np.bincount(inv.reshape(-1), weights=v, minlength=uniq_locs.size)
            vcount = np.bincount(inv.reshape(-1), minlength=uniq_locs.size)
            vmean = vsum / vcount
            order = np.argsort(first, kind='stable')
            return [(int(uniq_locs[i]), float(vmean[i])) for i in order]

        return [(int(loc), float(val)) for loc, val in zip(locs, v)]

    def domain_size(self):
        """
        Returns the number of locations of the domain.
        """
        return self.domain.nelem()

    def observed_locations(self, varname, logger=None):
        """
        Retrieves the hard data of a variable.

        Parameters
        ----------
        varname : str
            variable name

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)

        Returns
        -------
        datamap : list of 2-tuples
            `(location, value)` pairs, in the order the data were given
        """
        fname = 'observed_locations'

        if varname not in self._datamap:
            err_msg = f'{fname}: unknown variable `{varname}`'
            if logger: logger.error(err_msg)
            raise ProblemError(err_msg)

        return list(self._datamap[varname])
# ----------------------------------------------------------------------------
