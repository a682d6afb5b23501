# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


r"""
This module provides a subclass of :class:`.CameraModel` that implements the equidistant (Kannala-Brandt/OpenCV
fisheye) camera model, which adds distortion corrections to the Pinhole model to account for very wide FOV lenses.

Theory
------

Given some 3D point (or direction) expressed in the camera frame, :math:`\mathbf{x}_C`, the model is defined as

.. math::
    &\mathbf{x}_I = \frac{1}{z_C}\left[\begin{array}{c} x_C \\ y_C \end{array}\right] \\
    &r = \sqrt{x_I^2 + y_I^2} \\
    &\theta = \text{atan}(r) \\
    &\mathbf{x}_I' = \frac{\theta}{r}\left(1+k_1\theta^2+k_2\theta^4+k_3\theta^6+k_4\theta^8\right)\mathbf{x}_I\\
    &\mathbf{x}_P = \left[\begin{array}{ccc} f_x & 0 & c_x \\ 0 & f_y & c_y\end{array}\right]
    \left[\begin{array}{c} \mathbf{x}_I' \\ 1 \end{array}\right]

where :math:`k_{1-4}` are radial distortion coefficients.  The state vector is
:math:`[f_x, f_y, c_x, c_y, k_1, k_2, k_3, k_4]` so :attr:`.EquidistantModel.DIM` is 8.  More details can be found at
https://docs.opencv.org/4.x/db/d58/group__calib3d__fisheye.html.

The inverse of the distortion is found by solving
:math:`\theta_d = \theta(1+k_1\theta^2+k_2\theta^4+k_3\theta^6+k_4\theta^8)` for :math:`\theta` with Newton's method
and then setting :math:`r = \tan\theta`.

Use
___

    >>> from vocam.camera_models import EquidistantModel
    >>> model = EquidistantModel(fx=190.97, fy=190.97, cx=254.93, cy=256.90, n_rows=512, n_cols=512,
    ...                          k1=0.0034, k2=0.0007, k3=-0.0020, k4=0.0002)
    >>> model.project([0, 0, 1])
    array([254.93, 256.9 ])
"""

import numpy as np

from vocam.camera_models.camera_model import CameraModel
from vocam._typing import ARRAY_LIKE, NONENUM, NONEARRAY


_SMALL_RADIUS = 1e-12
"""
Radial distances below this are treated as lying on the optical axis where the distortion limit is the identity.
"""


class EquidistantModel(CameraModel):
    r"""
    This class provides an implementation of the equidistant fisheye camera model for projecting 3D points onto images.

    The :class:`EquidistantModel` class provides the properties :attr:`k1`, :attr:`k2`, :attr:`k3`, and :attr:`k4`
    for the radial distortion coefficients corresponding to :math:`\theta^3`, :math:`\theta^5`, :math:`\theta^7`, and
    :math:`\theta^9` respectively.
    """

    DIM = 8

    distortion_labels = ['k1', 'k2', 'k3', 'k4']

    def __init__(self, fx: float = 1.0, fy: float = 1.0, cx: float = 0.0, cy: float = 0.0,
                 distortion_coefficients: NONEARRAY = None, intrinsic_matrix: NONEARRAY = None,
                 k1: NONENUM = None, k2: NONENUM = None, k3: NONENUM = None, k4: NONENUM = None,
                 n_rows: int = 1, n_cols: int = 1, max_iterations: int = 20):
        """
        :param fx: The focal length divided by the pixel pitch along the x axis in units of pixels
        :param fy: The focal length divided by the pixel pitch along the y axis in units of pixels
        :param cx: the x component of the pixel location of the principal point in the image in units of pixels
        :param cy: the y component of the pixel location of the principal point in the image in units of pixels
        :param distortion_coefficients: A length 4 array ``[k1, k2, k3, k4]``
        :param intrinsic_matrix: the intrinsic matrix for the camera as a numpy shape (2, 3) array
        :param k1: the distortion coefficient corresponding to the theta**3 term
        :param k2: the distortion coefficient corresponding to the theta**5 term
        :param k3: the distortion coefficient corresponding to the theta**7 term
        :param k4: the distortion coefficient corresponding to the theta**9 term
        :param n_rows: the number of rows of the active image array
        :param n_cols: the number of columns in the active image array
        :param max_iterations: the maximum number of Newton iterations used when removing the distortion
        """

        super().__init__(fx=fx, fy=fy, cx=cx, cy=cy, distortion_coefficients=distortion_coefficients,
                         intrinsic_matrix=intrinsic_matrix, n_rows=n_rows, n_cols=n_cols)

        if k1 is not None:
            self.k1 = k1
        if k2 is not None:
            self.k2 = k2
        if k3 is not None:
            self.k3 = k3
        if k4 is not None:
            self.k4 = k4

        self.max_iterations = max_iterations
        """
        The maximum number of Newton iterations used by :meth:`remove_distortion`
        """

    def __str__(self):

        template = u"Equidistant Camera Model:\n\n" \
                   u" __  __     __     __    \n" \
                   u"|   x  | _ |  Xc/Zc  |   \n" \
                   u"|   y  | - |  Yc/Zc  |   \n" \
                   u" --  --     --     --    \n" \
                   u"                _________ \n" \
                   u"               /  2   2   \n" \
                   u"theta = atan(\\/  x + y  ) \n\n" \
                   u" __ __                                                         __ __  \n" \
                   u"|  x' |   theta            2        4        6        8       |  x  | \n" \
                   u"|     | = ----- (1 + k1*theta + k2*theta + k3*theta + k4*theta ) |     | \n" \
                   u"|  y' |     r                                                  |  y  | \n" \
                   u" -- --                                                         -- --  \n" \
                   u" __ __     __          __  __  __  \n" \
                   u"|  u  | _ |  fx  0   cx  ||  x' | \n" \
                   u"|  v  | - |  0   fy  cy  ||  y' | \n" \
                   u" -- --     --          -- |  1  | \n" \
                   u"                           --  --  \n\n" \
                   u"————————————————————————————————————————————————————————————————————————————\n\n" \
                   u"distortion coefficients:\n" \
                   u"    k1={k1}, k2={k2}, k3={k3}, k4={k4}\n\n" \
                   u"camera parameters:\n" \
                   u"    fx={fx}, fy={fy}, cx={cx}, cy={cy}\n\n"

        return template.format(fx=self.fx, fy=self.fy, cx=self.cx, cy=self.cy,
                               k1=self.k1, k2=self.k2, k3=self.k3, k4=self.k4)

    @property
    def k1(self) -> float:
        """
        The distortion coefficient corresponding to the theta**3 term
        """
        return float(self.distortion_coefficients[0])

    @k1.setter
    def k1(self, val):
        self.distortion_coefficients[0] = val

    @property
    def k2(self) -> float:
        """
        The distortion coefficient corresponding to the theta**5 term
        """
        return float(self.distortion_coefficients[1])

    @k2.setter
    def k2(self, val):
        self.distortion_coefficients[1] = val

    @property
    def k3(self) -> float:
        """
        The distortion coefficient corresponding to the theta**7 term
        """
        return float(self.distortion_coefficients[2])

    @k3.setter
    def k3(self, val):
        self.distortion_coefficients[2] = val

    @property
    def k4(self) -> float:
        """
        The distortion coefficient corresponding to the theta**9 term
        """
        return float(self.distortion_coefficients[3])

    @k4.setter
    def k4(self, val):
        self.distortion_coefficients[3] = val

    def _distorted_theta(self, theta: np.ndarray) -> np.ndarray:
        theta2 = theta * theta
        return theta * (1 + theta2 * (self.k1 + theta2 * (self.k2 + theta2 * (self.k3 + theta2 * self.k4))))

    def _ddistorted_theta_dtheta(self, theta: np.ndarray) -> np.ndarray:
        theta2 = theta * theta
        return 1 + theta2 * (3 * self.k1 + theta2 * (5 * self.k2 + theta2 * (7 * self.k3 + theta2 * 9 * self.k4)))

    def apply_distortion(self, pinhole_locations: ARRAY_LIKE) -> np.ndarray:
        r"""
        This method applies the distortion model to the specified pinhole (gnomic) locations in the image frame.

        .. math::
            \mathbf{x}_I' = \frac{\theta}{r}\left(1+k_1\theta^2+k_2\theta^4+k_3\theta^6+k_4\theta^8\right)\mathbf{x}_I

        On the optical axis (:math:`r\rightarrow 0`) the scale factor tends to 1.

        :param pinhole_locations: The unitless image plane location of points to be distorted as a shape (2,) or (2, n)
                                  array.
        :return: The unitless distorted locations of the points on the image plane as a shape (2,) or (2, n) array.
        """

        pinhole_locations = np.asanyarray(pinhole_locations, dtype=np.float64)

        radius = np.sqrt((pinhole_locations * pinhole_locations).sum(axis=0))

        on_axis = radius < _SMALL_RADIUS
        safe_radius = np.where(on_axis, 1.0, radius)

        scale = np.where(on_axis, 1.0, self._distorted_theta(np.arctan(radius)) / safe_radius)

        return scale * pinhole_locations

    def remove_distortion(self, distorted_gnomic: np.ndarray) -> np.ndarray:
        r"""
        Removes the distortion by solving for :math:`\theta` with Newton's method

        .. math::
            \theta_{n} = \theta_{p} - \frac{\theta_d(\theta_p) - \|\mathbf{x}_I'\|}{\theta_d'(\theta_p)}

        starting from :math:`\theta = \|\mathbf{x}_I'\|` and stopping after :attr:`max_iterations` or once the step
        falls below 1e-15.  The undistorted location is then :math:`\frac{\tan\theta}{\|\mathbf{x}_I'\|}\mathbf{x}_I'`.

        :param distorted_gnomic: The distorted gnomic locations as a shape (2,) or (2, n) array
        :return: The undistorted gnomic locations
        """

        distorted_gnomic = np.asanyarray(distorted_gnomic, dtype=np.float64)

        distorted_radius = np.sqrt((distorted_gnomic * distorted_gnomic).sum(axis=0))

        theta = np.array(distorted_radius, dtype=np.float64)

        for _ in range(self.max_iterations):

            step = (self._distorted_theta(theta) - distorted_radius) / self._ddistorted_theta_dtheta(theta)

            theta = theta - step

            if np.all(np.abs(step) <= 1e-15):
                break

        on_axis = distorted_radius < _SMALL_RADIUS
        safe_radius = np.where(on_axis, 1.0, distorted_radius)

        scale = np.where(on_axis, 1.0, np.tan(theta) / safe_radius)

        return scale * distorted_gnomic

    def _compute_ddistorted_gnomic_dgnomic(self, gnomic: np.ndarray) -> np.ndarray:
        r"""
        Computes the partial derivative of the distorted gnomic location with respect to a change in the gnomic location

        Mathematically this is given by:

        .. math::
            \frac{\partial\mathbf{x}_I'}{\partial\mathbf{x}_I} = \frac{\theta_d}{r}\mathbf{I}_{2\times 2} +
            \frac{1+3k_1\theta^2+5k_2\theta^4+7k_3\theta^6+9k_4\theta^8}{r^2(1+r^2)}\mathbf{x}_I\mathbf{x}_I^T -
            \frac{\theta_d}{r^3}\mathbf{x}_I\mathbf{x}_I^T

        where :math:`\theta_d=\theta(1+k_1\theta^2+k_2\theta^4+k_3\theta^6+k_4\theta^8)`.  On the optical axis this is
        the identity.
        """

        gnomic = np.asanyarray(gnomic, dtype=np.float64)

        radius2 = gnomic @ gnomic
        radius = np.sqrt(radius2)

        if radius < _SMALL_RADIUS:
            return np.eye(2)

        theta = np.arctan(radius)

        radial = self._distorted_theta(theta) / radius

        dradius_dgnom = gnomic / radius

        dtheta_dgnom = dradius_dgnom / (1 + radius2)

        return (radial * np.eye(2) +
                self._ddistorted_theta_dtheta(theta) / radius * np.outer(gnomic, dtheta_dgnom) -
                radial / radius * np.outer(gnomic, dradius_dgnom))

    def _compute_ddistorted_gnomic_ddistortion(self, gnomic: np.ndarray) -> np.ndarray:
        r"""
        Computes the partial derivative of the distorted gnomic location with respect to a change in the distortion
        coefficients.

        .. math::
            \frac{\partial\mathbf{x}_I'}{\partial\mathbf{d}} = \frac{\theta}{r}\mathbf{x}_I\left[
            \begin{array}{cccc} \theta^2 & \theta^4 & \theta^6 &\theta^8 \end{array}\right]

        where :math:`\mathbf{d}=[k_1, k_2, k_3, k_4]^T`.
        """

        gnomic = np.asanyarray(gnomic, dtype=np.float64)

        radius = np.sqrt(gnomic @ gnomic)

        if radius < _SMALL_RADIUS:
            return np.zeros((2, 4))

        theta = np.arctan(radius)
        theta2 = theta * theta
        theta4 = theta2 * theta2
        theta6 = theta2 * theta4
        theta8 = theta4 * theta4

        return np.outer(theta / radius * gnomic, [theta2, theta4, theta6, theta8])
