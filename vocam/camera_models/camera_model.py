# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


r"""
This module provides an abstract base class (abc) for implementing vocam camera models.

This abc provides a design guide for building camera models that can be selected and driven by the
:class:`.CameraManager`.  Every camera model maps a point expressed in the camera frame onto a normalized (gnomic)
image plane location, distorts that location according to the lens model, and finally converts the distorted location
into pixels using the intrinsic matrix

.. math::
    &\mathbf{x}_I = \frac{1}{z_C}\left[\begin{array}{c} x_C \\ y_C \end{array}\right] \\
    &\mathbf{x}_I' = d(\mathbf{x}_I) \\
    &\mathbf{x}_P = \left[\begin{array}{ccc} f_x & 0 & c_x \\ 0 & f_y & c_y\end{array}\right]
    \left[\begin{array}{c} \mathbf{x}_I' \\ 1 \end{array}\right]

where :math:`d` is the distortion model which is the only thing that differs between the concrete models.

Every model has a state vector of fixed length :attr:`~CameraModel.DIM` whose first four elements are always
:math:`f_x, f_y, c_x, c_y` in that order followed by the distortion coefficients of the model.  This ordering is part of
the contract and is exposed explicitly through :attr:`~CameraModel.intrinsics`.

Use
___

To implement a custom camera model, subclass :class:`CameraModel`, set the :attr:`~CameraModel.DIM` and
:attr:`~CameraModel.distortion_labels` class attributes, and implement the following methods

=============================================================== ========================================================
Method                                                          Use
=============================================================== ========================================================
:meth:`~CameraModel.apply_distortion`                           applies the distortion model to gnomic locations
:meth:`~CameraModel._compute_ddistorted_gnomic_dgnomic`         the 2x2 Jacobian of the distorted gnomic location with
                                                                respect to the gnomic location
:meth:`~CameraModel._compute_ddistorted_gnomic_ddistortion`     the Jacobian of the distorted gnomic location with
                                                                respect to the distortion coefficients
=============================================================== ========================================================

The following methods are implemented here for all models and may be overridden when a closed form is available

=============================================================== ========================================================
Method                                                          Use
=============================================================== ========================================================
:meth:`~CameraModel.remove_distortion`                          removes the distortion from distorted gnomic locations
                                                                (fixed point iteration by default)
:meth:`~CameraModel.project`                                    projects points onto the image, optionally returning
                                                                Jacobians
:meth:`~CameraModel.unproject`                                  converts pixels into normalized directions, optionally
                                                                returning the Jacobian
:meth:`~CameraModel.apply_update`                               applies an additive update to the state vector
:meth:`~CameraModel.pixels_to_unit`                             converts pixels into unit vectors in the camera frame
:meth:`~CameraModel.prepare_interp`                             precomputes the unprojection over the detector
=============================================================== ========================================================
"""

import copy

import sys

import warnings

from abc import ABCMeta, abstractmethod

from typing import Tuple, Optional, List

import numpy as np
from scipy.interpolate import RegularGridInterpolator

from vocam._typing import ARRAY_LIKE, DOUBLE_ARRAY, NONEARRAY, WriteableTarget


class UnsupportedJacobianError(NotImplementedError):
    """
    Raised when a Jacobian is requested that no camera model provides.

    Currently this is only the Jacobian of the unprojected direction with respect to the camera intrinsics.
    """


class CameraModel(metaclass=ABCMeta):
    """
    This is the abstract base class for all camera models in vocam.

    A camera model is a mapping from a 3D point expressed in the camera frame to a corresponding 2D point in the image.
    For more description of a camera model refer to the :mod:`.camera_model` documentation.

    .. note:: Because this is an ABC, you cannot create an instance of CameraModel (it will raise a ``TypeError``)
    """

    DIM: int = 4
    """
    The number of parameters in the state vector of this model.
    """

    distortion_labels: List[str] = []
    """
    The names of the distortion coefficients, in the order they appear in the state vector after fx, fy, cx, cy.
    """

    def __init__(self, fx: float = 1.0, fy: float = 1.0, cx: float = 0.0, cy: float = 0.0,
                 distortion_coefficients: NONEARRAY = None, intrinsic_matrix: NONEARRAY = None,
                 n_rows: int = 1, n_cols: int = 1):
        """
        :param fx: The focal length divided by the pixel pitch along the x axis in units of pixels
        :param fy: The focal length divided by the pixel pitch along the y axis in units of pixels
        :param cx: the x component of the pixel location of the principal point in the image in units of pixels
        :param cy: the y component of the pixel location of the principal point in the image in units of pixels
        :param distortion_coefficients: The distortion coefficients of the model as a length ``DIM - 4`` array
        :param intrinsic_matrix: the intrinsic matrix for the camera as a numpy shape (2, 3) array.  Note that this
                                 overrides ``fx``, ``fy``, ``cx``, and ``cy``.
        :param n_rows: the number of rows of the active image array
        :param n_cols: the number of columns in the active image array
        """

        self.intrinsic_matrix = np.array([[fx, 0, cx], [0, fy, cy]], dtype=np.float64)
        r"""
        The 2x3 intrinsic matrix contains the conversion from unitless distorted gnomic locations to a location in an
        image with units of pixels.

        It is defined as

        .. math::
            \mathbf{K} = \left[\begin{array}{ccc} f_x & 0 & c_x \\
            0 & f_y & c_y \end{array}\right]
        """

        if intrinsic_matrix is not None:
            self.intrinsic_matrix = np.array(intrinsic_matrix, dtype=np.float64).reshape(2, 3)

        self.distortion_coefficients = np.zeros(self.DIM - 4)
        """
        The distortion coefficients of the model in the order given by :attr:`distortion_labels`
        """

        if distortion_coefficients is not None:
            distortion_coefficients = np.array(distortion_coefficients, dtype=np.float64).ravel()
            if distortion_coefficients.size != self.DIM - 4:
                raise ValueError('{} expects {} distortion coefficients ({}) but {} were given'.format(
                    self.__class__.__name__, self.DIM - 4, self.distortion_labels, distortion_coefficients.size))
            self.distortion_coefficients = distortion_coefficients

        self.n_rows = n_rows
        """
        The number of rows in the active pixel array for the camera
        """

        self.n_cols = n_cols
        """
        The number of columns in the active pixel array for the camera
        """

        self._interp: Optional[RegularGridInterpolator] = None
        """
        An instance of SciPy's RegularGridInterpolator for converting pixels to gnomic coordinates.

        This is generated by a call to :meth:`prepare_interp` and discarded by :meth:`apply_update`
        """

        self.important_attributes = ['intrinsic_matrix', 'distortion_coefficients', 'n_rows', 'n_cols']
        """
        A list specifying the attributes that are checked when comparing two models for equality.
        """

    def __eq__(self, other) -> bool:
        """
        Camera models are defined as equal if all of the :attr:`important_attributes` attributes are equivalent

        :param other: The other camera model to compare to
        :return: True if the camera models are equivalent, False if otherwise
        """

        if not isinstance(other, self.__class__):
            return False

        for var in self.important_attributes:

            if not np.array_equal(getattr(self, var), getattr(other, var)):
                return False

        return True

    def __repr__(self) -> str:

        coefficients = ', '.join('{}={}'.format(label, getattr(self, label)) for label in self.distortion_labels)
        if coefficients:
            coefficients = ', ' + coefficients

        return '{}(fx={}, fy={}, cx={}, cy={}{}, n_rows={}, n_cols={})'.format(
            self.__class__.__name__, self.fx, self.fy, self.cx, self.cy, coefficients, self.n_rows, self.n_cols)

    @property
    def fx(self) -> float:
        """
        The focal length in units of pixels along the x axis (focal length divided by x axis pixel pitch)

        This points to the (0, 0) index of the intrinsic matrix
        """
        return float(self.intrinsic_matrix[0, 0])

    @fx.setter
    def fx(self, val):
        self.intrinsic_matrix[0, 0] = val

    @property
    def fy(self) -> float:
        """
        The focal length in units of pixels along the y axis (focal length divided by y axis pixel pitch)

        This points to the (1, 1) index of the intrinsic matrix
        """
        return float(self.intrinsic_matrix[1, 1])

    @fy.setter
    def fy(self, val):
        self.intrinsic_matrix[1, 1] = val

    @property
    def cx(self) -> float:
        """
        The x pixel location of the principal point.  This points to the (0, 2) index of the intrinsic matrix
        """
        return float(self.intrinsic_matrix[0, 2])

    @cx.setter
    def cx(self, val):
        self.intrinsic_matrix[0, 2] = val

    @property
    def cy(self) -> float:
        """
        The y pixel location of the principal point.  This points to the (1, 2) index of the intrinsic matrix
        """
        return float(self.intrinsic_matrix[1, 2])

    @cy.setter
    def cy(self, val):
        self.intrinsic_matrix[1, 2] = val

    @property
    def intrinsics(self) -> Tuple[float, float, float, float]:
        """
        The four intrinsic values common to every model as ``(fx, fy, cx, cy)``.
        """
        return self.fx, self.fy, self.cx, self.cy

    @property
    def intrinsic_matrix_inv(self) -> np.ndarray:
        r"""
        The inverse of the intrinsic matrix.

        The inverse of the intrinsic matrix is used to convert from units of pixels with an origin at the upper left
        corner of the image to distorted gnomic locations with an origin at the principal point of the image.

        .. math::
            \mathbf{K}^{-1} = \left[\begin{array}{ccc} \frac{1}{f_x} & 0 & \frac{-c_x}{f_x} \\
            0 & \frac{1}{f_y} & \frac{-c_y}{f_y} \end{array}\right]

        .. note:: Since the intrinsic matrix is defined as a :math:`2\times 3` matrix this isn't a formal inverse.
        """

        return np.array([[1 / self.fx, 0, -self.cx / self.fx],
                         [0, 1 / self.fy, -self.cy / self.fy]])

    @property
    def state_labels(self) -> List[str]:
        """
        The names of the elements of the state vector, in order.
        """
        return ['fx', 'fy', 'cx', 'cy'] + list(self.distortion_labels)

    @property
    def state_vector(self) -> DOUBLE_ARRAY:
        """
        The length :attr:`DIM` state vector ``[fx, fy, cx, cy, distortion coefficients...]``
        """
        return np.array([getattr(self, label) for label in self.state_labels], dtype=np.float64)

    def apply_update(self, update_vec: ARRAY_LIKE):
        r"""
        This method takes in a delta update to the camera parameters (:math:`\Delta\mathbf{c}`) and applies the update
        to the current instance in place.

        The update vector must be length :attr:`DIM` and is ordered the same as :attr:`state_labels`.  Each element is
        applied as an additive update with no check on the physical validity of the result.  Any interpolator prepared
        by :meth:`prepare_interp` is discarded since it no longer matches the model.

        :param update_vec: An iterable of delta updates to the model parameters
        :raises ValueError: if the update vector is not length :attr:`DIM`
        """

        update_vec = np.asanyarray(update_vec, dtype=np.float64).ravel()

        if update_vec.size != self.DIM:
            raise ValueError('The update vector for {} must be length {} but is length {}'.format(
                self.__class__.__name__, self.DIM, update_vec.size))

        for ind, label in enumerate(self.state_labels):
            setattr(self, label, getattr(self, label) + update_vec.item(ind))

        self._interp = None

    @abstractmethod
    def apply_distortion(self, pinhole_locations: ARRAY_LIKE) -> np.ndarray:
        """
        This method applies the distortion model to the specified pinhole (gnomic) locations in the image frame.

        :param pinhole_locations: The unitless image plane location of points to be distorted as a shape (2,) or (2, n)
                                  array.
        :return: The unitless distorted locations of the points on the image plane as a shape (2,) or (2, n) array.
        """
        pass

    @abstractmethod
    def _compute_ddistorted_gnomic_dgnomic(self, gnomic: np.ndarray) -> np.ndarray:
        """
        Computes the partial derivative of the distorted gnomic location with respect to a change in the gnomic location

        :param gnomic: The gnomic location of the point being considered as a shape (2,) numpy array
        :return: The 2x2 partial derivative
        """
        pass

    @abstractmethod
    def _compute_ddistorted_gnomic_ddistortion(self, gnomic: np.ndarray) -> np.ndarray:
        """
        Computes the partial derivative of the distorted gnomic location with respect to a change in the distortion
        coefficients.

        :param gnomic: The gnomic location of the point being considered as a shape (2,) numpy array
        :return: The 2 x (DIM - 4) partial derivative
        """
        pass

    def remove_distortion(self, distorted_gnomic: np.ndarray) -> np.ndarray:
        r"""
        Removes the distortion from distorted gnomic locations using a fixed point algorithm.

        .. math::
           \mathbf{x}_{Ip}' = d(\mathbf{x}_{Ip}) \\
           \mathbf{x}_{In} = \mathbf{x}_{Ip} + (\mathbf{x}_I' - \mathbf{x}_{Ip}')

        where a subscript of :math:`p` indicates the previous iteration's value, a subscript of :math:`n` indicates
        the new value, and :math:`d()` is the distortion model (method :meth:`apply_distortion`).  This iteration is
        repeated until the solution converges, or 20 iterations have been performed.

        :param distorted_gnomic: The distorted gnomic locations as a shape (2,) or (2, n) array
        :return: The undistorted gnomic locations
        """

        distorted_gnomic = np.asanyarray(distorted_gnomic, dtype=np.float64)

        gnomic_guess = distorted_gnomic.copy()

        for _ in range(20):

            gnomic_guess_distorted = self.apply_distortion(gnomic_guess)

            gnomic_guess += distorted_gnomic - gnomic_guess_distorted

            if np.all(np.linalg.norm(gnomic_guess_distorted - distorted_gnomic, axis=0) <= 1e-15):
                break

        return gnomic_guess

    @staticmethod
    def _to_gnomic(points: np.ndarray) -> np.ndarray:
        """
        Converts camera frame points (first axis length 3) or already normalized locations (first axis length 2) into
        gnomic locations.
        """

        if points.shape[0] == 3:
            return points[:2] / points[2]
        elif points.shape[0] == 2:
            return points.copy()

        raise ValueError('points must have a first axis of length 2 (normalized) or 3 (camera frame), '
                         'not {}'.format(points.shape[0]))

    def get_projections(self, points_in_camera_frame: ARRAY_LIKE) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        This method computes and returns the gnomic, distorted gnomic, and pixel locations for a set of points expressed
        in the camera frame.

        The points can be given as 3D points/directions (shape (3,) or (3, n)) or as already normalized locations
        ``(x/z, y/z)`` (shape (2,) or (2, n)).

        :param points_in_camera_frame: a shape (3,), (3, n), (2,), or (2, n) array of points to project
        :return: A tuple of the gnomic, distorted gnomic, and pixel locations
        """

        points_in_camera_frame = np.asanyarray(points_in_camera_frame, dtype=np.float64)

        gnomic_locations = self._to_gnomic(points_in_camera_frame)

        distorted_locations = self.apply_distortion(gnomic_locations)

        # need to mess with transposes due to numpy broadcasting rules
        pixel_locations = ((self.intrinsic_matrix[:, :2] @ distorted_locations).T + self.intrinsic_matrix[:, 2]).T

        return gnomic_locations, distorted_locations, pixel_locations

    def project(self, points_in_camera_frame: ARRAY_LIKE, return_point_jacobian: bool = False,
                return_intrinsic_jacobian: bool = False) -> np.ndarray | Tuple[np.ndarray, ...]:
        """
        Projects points expressed in the camera frame onto the image.

        When neither Jacobian is requested only the pixel locations are returned.  Otherwise a tuple is returned
        containing the pixel locations followed by the requested Jacobians in the order point Jacobian
        (:meth:`compute_pixel_jacobian`), intrinsic Jacobian (:meth:`compute_jacobian`).

        :param points_in_camera_frame: a shape (3,), (3, n), (2,), or (2, n) array of points to project
        :param return_point_jacobian: return the Jacobian of the pixel location with respect to the input point
        :param return_intrinsic_jacobian: return the Jacobian of the pixel location with respect to the state vector
        :return: The pixel locations, or a tuple of the pixel locations and the requested Jacobians
        """

        _, __, pixel_locations = self.get_projections(points_in_camera_frame)

        if not (return_point_jacobian or return_intrinsic_jacobian):
            return pixel_locations

        out = [pixel_locations]

        if return_point_jacobian:
            out.append(self.compute_pixel_jacobian(points_in_camera_frame))

        if return_intrinsic_jacobian:
            out.append(self.compute_jacobian(points_in_camera_frame))

        return tuple(out)

    @staticmethod
    def _compute_dgnomic_dcamera_point(point: np.ndarray) -> np.ndarray:
        r"""
        The partial derivative of the gnomic location with respect to the camera frame point

        .. math::
            \frac{\partial\mathbf{x}_I}{\partial\mathbf{x}_C} = \frac{1}{z_C}\left[\begin{array}{ccc}
            1 & 0 & -x_C/z_C \\ 0 & 1 & -y_C/z_C \end{array}\right]
        """

        return np.array([[1 / point[2], 0, -point[0] / point[2] ** 2],
                         [0, 1 / point[2], -point[1] / point[2] ** 2]])

    def compute_pixel_jacobian(self, vectors_in_camera_frame: ARRAY_LIKE) -> np.ndarray:
        r"""
        This method computes the Jacobian matrix :math:`\partial\mathbf{x}_P/\partial\mathbf{x}_C` where
        :math:`\mathbf{x}_C` is a vector in the camera frame that projects to :math:`\mathbf{x}_P` which is the
        pixel location.

        When the input is normalized (first axis length 2) the Jacobian is taken with respect to the normalized location
        and is 2x2, otherwise it is 2x3.

        :param vectors_in_camera_frame: The vectors to compute the Jacobian at
        :return: The Jacobian matrix as a 2xk array for a single vector or an nx2xk array for n vectors
        """

        vectors_in_camera_frame = np.asanyarray(vectors_in_camera_frame, dtype=np.float64)

        jacobian = []

        for vector in vectors_in_camera_frame.reshape(vectors_in_camera_frame.shape[0], -1).T:

            gnomic_location = self._to_gnomic(vector)

            dpix_dvector = self.intrinsic_matrix[:, :2] @ self._compute_ddistorted_gnomic_dgnomic(gnomic_location)

            if vector.size == 3:
                dpix_dvector = dpix_dvector @ self._compute_dgnomic_dcamera_point(vector)

            jacobian.append(dpix_dvector)

        if vectors_in_camera_frame.ndim == 1:
            return jacobian[0]

        return np.array(jacobian)

    def compute_jacobian(self, vectors_in_camera_frame: ARRAY_LIKE) -> np.ndarray:
        r"""
        This method computes the Jacobian matrix :math:`\partial\mathbf{x}_P/\partial\mathbf{c}` where
        :math:`\mathbf{c}` is the state vector of the model (see :attr:`state_labels`).

        .. math::
            \frac{\partial\mathbf{x}_P}{\partial\mathbf{c}} = \left[\begin{array}{ccccc}
            x_I' & 0 & 1 & 0 & \\ 0 & y_I' & 0 & 1 &
            \mathbf{K}_{2\times 2}\frac{\partial\mathbf{x}_I'}{\partial\mathbf{d}}\end{array}\right]

        :param vectors_in_camera_frame: The vectors to compute the Jacobian at
        :return: The Jacobian matrix as a 2xDIM array for a single vector or an nx2xDIM array for n vectors
        """

        vectors_in_camera_frame = np.asanyarray(vectors_in_camera_frame, dtype=np.float64)

        jacobian = []

        for vector in vectors_in_camera_frame.reshape(vectors_in_camera_frame.shape[0], -1).T:

            gnomic_location = self._to_gnomic(vector)

            distorted_location = self.apply_distortion(gnomic_location)

            dpix_dintrinsic = np.array([[distorted_location[0], 0, 1, 0],
                                        [0, distorted_location[1], 0, 1]])

            dpix_ddistortion = self.intrinsic_matrix[:, :2] @ \
                self._compute_ddistorted_gnomic_ddistortion(gnomic_location)

            jacobian.append(np.hstack([dpix_dintrinsic, dpix_ddistortion]))

        if vectors_in_camera_frame.ndim == 1:
            return jacobian[0]

        return np.array(jacobian)

    def pixels_to_gnomic(self, pixels: ARRAY_LIKE, _allow_interp: bool = False) -> np.ndarray:
        r"""
        This method takes an input in pixels and computes the undistorted gnomic location.

        First, the pixel locations are converted to distorted gnomic locations by multiplying by the inverse intrinsic
        matrix, then the distortion is removed with :meth:`remove_distortion`.

        :param pixels: The pixels to be converted as a shape (2,) or (2, n) array
        :param _allow_interp: A flag allowing this to dispatch to the interpolation based conversion in
                              :meth:`pixels_to_gnomic_interp` when :meth:`prepare_interp` has been called
        :return: The undistorted gnomic location of the points
        """

        if _allow_interp and self._interp is not None:
            return self.pixels_to_gnomic_interp(pixels)

        pixels = np.asanyarray(pixels, dtype=np.float64)

        if pixels.shape[0] != 2:
            raise ValueError('pixels must have a first axis of length 2, not {}'.format(pixels.shape[0]))

        gnomic_distorted = ((self.intrinsic_matrix_inv[:, :2] @ pixels).T + self.intrinsic_matrix_inv[:, 2]).T

        return self.remove_distortion(gnomic_distorted)

    def unproject(self, pixels: ARRAY_LIKE, return_pixel_jacobian: bool = False,
                  return_intrinsic_jacobian: bool = False,
                  allow_interp: bool = True) -> np.ndarray | Tuple[np.ndarray, np.ndarray]:
        """
        Converts pixel locations into normalized directions ``(x/z, y/z)`` in the camera frame.

        :param pixels: The pixel locations as a shape (2,) or (2, n) array
        :param return_pixel_jacobian: also return the Jacobian of the direction with respect to the pixel location
                                      (see :meth:`compute_unproject_jacobian`)
        :param return_intrinsic_jacobian: not supported by any model, requesting it raises
                                          :class:`UnsupportedJacobianError`
        :param allow_interp: Allow the approximate conversion using interpolation when :meth:`prepare_interp` has been
                             called
        :return: The normalized directions, or a tuple of the normalized directions and the pixel Jacobian
        """

        if return_intrinsic_jacobian:
            raise UnsupportedJacobianError('the Jacobian of unproject with respect to the camera intrinsics is not '
                                           'implemented for {}'.format(self.__class__.__name__))

        gnomic_locations = self.pixels_to_gnomic(pixels, _allow_interp=allow_interp)

        if return_pixel_jacobian:
            return gnomic_locations, self.compute_unproject_jacobian(pixels)

        return gnomic_locations

    def compute_unproject_jacobian(self, pixels: ARRAY_LIKE) -> np.ndarray:
        r"""
        Computes the Jacobian :math:`\partial\mathbf{x}_I/\partial\mathbf{x}_P` of the undistorted gnomic location with
        respect to the pixel location.

        This is computed from the inverse function theorem

        .. math::
            \frac{\partial\mathbf{x}_I}{\partial\mathbf{x}_P} = \left(\frac{\partial\mathbf{x}_I'}
            {\partial\mathbf{x}_I}\right)^{-1}\mathbf{K}^{-1}_{2\times 2}

        :param pixels: The pixel locations as a shape (2,) or (2, n) array
        :return: The Jacobian as a 2x2 array for a single pixel or an nx2x2 array for n pixels
        """

        pixels = np.asanyarray(pixels, dtype=np.float64)

        jacobian = []

        for pixel in pixels.reshape(2, -1).T:

            gnomic_location = self.pixels_to_gnomic(pixel)

            dgnom_ddist_gnom = np.linalg.inv(self._compute_ddistorted_gnomic_dgnomic(gnomic_location))

            jacobian.append(dgnom_ddist_gnom @ self.intrinsic_matrix_inv[:, :2])

        if pixels.ndim == 1:
            return jacobian[0]

        return np.array(jacobian)

    def pixels_to_unit(self, pixels: ARRAY_LIKE, allow_interp: bool = True) -> np.ndarray:
        r"""
        This method converts pixel image locations to unit vectors expressed in the camera frame.

        .. math::
            \hat{\mathbf{x}}_C = \frac{1}{\sqrt{\mathbf{x}_I^T\mathbf{x}_I + 1}}
            \left[\begin{array}{c} \mathbf{x}_I \\ 1 \end{array}\right]

        :param pixels: The image points as a shape (2,) or (2, n) array
        :param allow_interp: Allow the approximate conversion using interpolation for speed
        :return: The unit vectors as a shape (3,) or (3, n) array.
        """

        pixels = np.asanyarray(pixels, dtype=np.float64)

        gnomic_locs = self.pixels_to_gnomic(pixels, _allow_interp=allow_interp)

        if pixels.ndim == 1:
            los_vectors = np.hstack([gnomic_locs, 1.0])

        else:
            los_vectors = np.vstack([gnomic_locs, np.ones((1, pixels.shape[1]))])

        return los_vectors / np.linalg.norm(los_vectors, axis=0, keepdims=True)

    def prepare_interp(self, pixel_bounds: int = 100):
        """
        This method prepares a SciPy RegularGridInterpolator for converting pixels into undistorted gnomic locations.

        This is done by making calls to :meth:`pixels_to_gnomic` to compute the transformation at every pixel in the
        detector plus/minus the pixel bounds.  Once prepared, :meth:`unproject`, :meth:`pixels_to_unit`, and
        :meth:`pixels_to_gnomic` (when allowed) use the interpolator.  :meth:`apply_update` discards it.

        :param pixel_bounds: An integer specifying how many pixels to pad when computing the transformation
        """

        if self.n_rows <= 1 or self.n_cols <= 1:
            warnings.warn('preparing the interpolator for a {}x{} detector, check n_rows and n_cols'.format(
                self.n_rows, self.n_cols))

        col_labels = np.arange(-pixel_bounds, self.n_cols + pixel_bounds, dtype=np.float64)
        row_labels = np.arange(-pixel_bounds, self.n_rows + pixel_bounds, dtype=np.float64)

        cols, rows = np.meshgrid(col_labels, row_labels)
        pix = np.vstack([cols.ravel(), rows.ravel()])

        gnomic = self.pixels_to_gnomic(pix).T.reshape(row_labels.size, col_labels.size, 2)

        self._interp = RegularGridInterpolator((row_labels, col_labels), gnomic, bounds_error=False, fill_value=None)

    def pixels_to_gnomic_interp(self, pixels: ARRAY_LIKE) -> np.ndarray:
        """
        This method takes an input in pixels and approximates the undistorted gnomic location.

        This approximation is done by linearly interpolating values previously computed by :meth:`prepare_interp`.

        :param pixels: The pixels to be converted as a shape (2,) or (2, n) array
        :return: The undistorted gnomic location of the points
        :raises ValueError: if :meth:`prepare_interp` has not been called
        """

        pixels = np.asanyarray(pixels, dtype=np.float64)

        if self._interp is None:
            raise ValueError('prepare_interp must be called before pixels_to_gnomic_interp')

        # the interpolator is indexed by (row, col)
        return self._interp(pixels.reshape(2, -1)[::-1].T).T.reshape(pixels.shape)

    def copy(self) -> 'CameraModel':
        """
        Returns a deep copy of this object, breaking all references with ``self``.
        """

        return copy.deepcopy(self)

    def print_model(self, out: Optional[WriteableTarget] = None):
        """
        Writes the human readable description of the model (``str(self)``) to ``out`` (stdout by default).

        :param out: The target to write the description to
        """

        if out is None:
            out = sys.stdout

        out.write(str(self))
