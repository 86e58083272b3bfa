#!/usr/bin/env python
# -*- coding: utf-8 -*-

# -------------------------------------------------------------------------
# Python module:  'domain.py'
# -------------------------------------------------------------------------

"""
Module defining the simulation domains: regular grids and point sets.

A domain is a finite set of locations, indexed by `0, ..., N-1`. Every domain
class provides:

- `nelem()`: the number of locations `N`
- `coords()`: the coordinates of the locations, 2D array of shape `(N, d)`
- `locate(x)`: the index of the location matching each given point
"""

import numpy as np
from scipy.spatial import distance

# ============================================================================
class DomainError(Exception):
    """
    Custom exception related to `domain` module.
    """
    pass
# ============================================================================

# ----------------------------------------------------------------------------
class Grid(object):
    """
    Class defining a regular 3D-grid, whose cells are the locations.

    **Attributes**

    nx, ny, nz : ints, default: 1
        number of grid cells along x, y, z axis

    sx, sy, sz : floats, default: 1.0
        cell size along x, y, z axis

    ox, oy, oz : floats, default: 0.0
        origin of the grid along x, y, z axis (coordinates of the
        "bottom-lower-left" corner of the grid)

    Notes
    -----
    The cell of index `(ix, iy, iz)` along each axis is the location of index
    `ix + nx * (iy + ny * iz)`, and its coordinates are the ones of the cell
    center.
    """
    def __init__(self,
                 nx=1,   ny=1,   nz=1,
                 sx=1.0, sy=1.0, sz=1.0,
                 ox=0.0, oy=0.0, oz=0.0,
                 logger=None):
        """
        Inits an instance of the class.

        Parameters
        ----------
        nx, ny, nz : ints, default: 1
            grid dimension (number of cells)

        sx, sy, sz : floats, default: 1.0
            cell size

        ox, oy, oz : floats, default: 0.0
            origin of the grid

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)
        """
        fname = 'Grid'

        self.nx = int(nx)
        self.ny = int(ny)
        self.nz = int(nz)
        self.sx = float(sx)
        self.sy = float(sy)
        self.sz = float(sz)
        self.ox = float(ox)
        self.oy = float(oy)
        self.oz = float(oz)

        if min(self.nx, self.ny, self.nz) < 1:
            err_msg = f'{fname}: grid dimension must be at least 1 along each axis'
            if logger: logger.error(err_msg)
            raise DomainError(err_msg)

        if min(self.sx, self.sy, self.sz) <= 0.0:
            err_msg = f'{fname}: cell size must be positive along each axis'
            if logger: logger.error(err_msg)
            raise DomainError(err_msg)

    # ------------------------------------------------------------------------
    def __repr__(self):
        out = '*** Grid object ***'
        out = out + '\n' + '(nx, ny, nz) = ({0.nx}, {0.ny}, {0.nz}) # number of cells along each axis'.format(self)
        out = out + '\n' + '(sx, sy, sz) = ({0.sx}, {0.sy}, {0.sz}) # cell size (spacing) along each axis'.format(self)
        out = out + '\n' + '(ox, oy, oz) = ({0.ox}, {0.oy}, {0.oz}) # origin (coordinates of bottom-lower-left corner)'.format(self)
        out = out + '\n' + '*****'
        return out
    # ------------------------------------------------------------------------

    def nelem(self):
        """
        Returns the number of locations (cells), `nx*ny*nz`.
        """
        return self.nx * self.ny * self.nz

    def x(self):
        """
        Returns 1D array of "unique" x coordinates of the grid cell centers.
        """
        return self.ox + 0.5 * self.sx + self.sx * np.arange(self.nx)

    def y(self):
        """
        Returns 1D array of "unique" y coordinates of the grid cell centers.
        """
        return self.oy + 0.5 * self.sy + self.sy * np.arange(self.ny)

    def z(self):
        """
        Returns 1D array of "unique" z coordinates of the grid cell centers.
        """
        return self.oz + 0.5 * self.sz + self.sz * np.arange(self.nz)

    def coords(self):
        """
        Returns the coordinates of the grid cell centers.

        Returns
        -------
        xyz : 2D array of shape (`nelem()`, 3)
            `xyz[i]`: coordinates (x, y, z) of the center of the cell of
            index `i`
        """
        zz, yy, xx = np.meshgrid(self.z(), self.y(), self.x(), indexing='ij')
        return np.column_stack((xx.reshape(-1), yy.reshape(-1), zz.reshape(-1)))

    def locate(self, x, logger=None):
        """
        Retrieves the index of the cell containing each given point.

        Parameters
        ----------
        x : 2D array of floats of shape (n, k), with k <= 3
            points coordinates, each row is a point; the k first coordinates
            (x, y, z) are given, the missing ones are taken as the grid center;
            note: 1D array of shape `(n,)` is accepted (x coordinates only)

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)

        Returns
        -------
        locs : 1D array of ints of shape (n,)
            index of the cell containing each point
        """
        fname = 'locate'

        x = np.asarray(x, dtype=float)
        if x.ndim == 1:
            x = x.reshape(-1, 1)

        k = x.shape[1]
        if k > 3:
            err_msg = f'{fname}: points have more than 3 coordinates'
            if logger: logger.error(err_msg)
            raise DomainError(err_msg)

        dim = (self.nx, self.ny, self.nz)
        spa = (self.sx, self.sy, self.sz)
        ori = (self.ox, self.oy, self.oz)

        ind = []
        for i in range(3):
            if i < k:
                ind_f = (x[:, i] - ori[i])/spa[i]
                # point on the upper border belongs to the last cell
                ii = np.floor(ind_f).astype(int)
                ii[np.isclose(ind_f, dim[i], rtol=0.0)] = dim[i] - 1
                if np.any((ii < 0) | (ii >= dim[i])):
                    err_msg = f'{fname}: point(s) out of the grid'
                    if logger: logger.error(err_msg)
                    raise DomainError(err_msg)
            else:
                ii = np.full(x.shape[0], dim[i]//2)
            ind.append(ii)

        return ind[0] + self.nx * (ind[1] + self.ny * ind[2])
# ----------------------------------------------------------------------------

# ----------------------------------------------------------------------------
class PointSet(object):
    """
    Class defining a set of points, which are the locations.

    **Attributes**

    x : 2D array of floats of shape (npt, d)
        coordinates of the points, `x[i]` is the location of index `i`

    npt : int
        number of points
    """
    def __init__(self, x, logger=None):
        """
        Inits an instance of the class.

        Parameters
        ----------
        x : 2D array of floats of shape (npt, d)
            coordinates of the points;
            note: 1D array of shape `(npt,)` is accepted for points in 1D

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)
        """
        fname = 'PointSet'

        x = np.asarray(x, dtype=float)
        if x.ndim == 1:
            x = x.reshape(-1, 1)
        if x.ndim != 2 or not np.all(np.isfinite(x)):
            err_msg = f'{fname}: `x` invalid'
            if logger: logger.error(err_msg)
            raise DomainError(err_msg)

        self.x = x
        self.npt = x.shape[0]

    # ------------------------------------------------------------------------
    def __repr__(self):
        out = '*** PointSet object ***'
        out = out + '\n' + 'npt = {0.npt} # number of point(s)'.format(self)
        out = out + '\n' + 'dim = {} # space dimension'.format(self.x.shape[1])
        out = out + '\n' + '*****'
        return out
    # ------------------------------------------------------------------------

    def nelem(self):
        """
        Returns the number of locations (points).
        """
        return self.npt

    def coords(self):
        """
        Returns the coordinates of the points, 2D array of shape (`npt`, d).
        """
        return self.x

    def locate(self, x, logger=None):
        """
        Retrieves the index of the nearest point for each given point.

        Parameters
        ----------
        x : 2D array of floats of shape (n, d)
            points coordinates, in the same space dimension as the point set;
            note: 1D array of shape `(n,)` is accepted for points in 1D

        logger : :class:`logging.Logger`, optional
            logger (see package `logging`)
            if specified, messages are written via `logger` (no print)

        Returns
        -------
        locs : 1D array of ints of shape (n,)
            index of the nearest point
        """
        fname = 'locate'

        x = np.asarray(x, dtype=float)
        if x.ndim == 1:
            x = x.reshape(-1, 1)

        if x.shape[1] != self.x.shape[1]:
            err_msg = f'{fname}: points and point set do not have the same dimension'
            if logger: logger.error(err_msg)
            raise DomainError(err_msg)

        if x.shape[0] == 0:
            return np.zeros(0, dtype=int)

        return np.argmin(distance.cdist(x, self.x), axis=1)
# ----------------------------------------------------------------------------
