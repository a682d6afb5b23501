# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


r"""
This module provides a subclass of :class:`.CameraModel` that implements the radial-tangential (plumb bob) camera
model, which adds basic distortion corrections to the Pinhole model.

Theory
------

The radial-tangential model is the pinhole camera model combined with a lens distortion model.  Given some 3D point (or
direction) expressed in the camera frame, :math:`\mathbf{x}_C`, the model is defined as

.. math::
    &\mathbf{x}_I = \frac{1}{z_C}\left[\begin{array}{c} x_C \\ y_C \end{array}\right] \\
    &r = \sqrt{x_I^2 + y_I^2} \\
    &\mathbf{x}_I' = (1 + k_1r^2+k_2r^4+k_3r^6)\mathbf{x}_I +
    \left[\begin{array}{c} 2p_1x_Iy_I+p_2(r^2+2x_I^2) \\ p_1(r^2+2y_I^2) + 2p_2x_Iy_I \end{array}\right] \\
    &\mathbf{x}_P = \left[\begin{array}{ccc} f_x & 0 & c_x \\ 0 & f_y & c_y\end{array}\right]
    \left[\begin{array}{c} \mathbf{x}_I' \\ 1 \end{array}\right]

where :math:`k_{1-3}` are radial distortion coefficients and :math:`p_{1-2}` are tangential (decentering) distortion
coefficients.  The state vector is :math:`[f_x, f_y, c_x, c_y, k_1, k_2, p_1, p_2, k_3]` (the OpenCV coefficient
order) so :attr:`.RadTanModel.DIM` is 9.

There is no closed form inverse of the distortion so unprojection uses the fixed point iteration of
:meth:`.CameraModel.remove_distortion`.

Use
___

    >>> from vocam.camera_models import RadTanModel
    >>> model = RadTanModel(fx=458.654, fy=457.296, cx=367.215, cy=248.375, n_rows=480, n_cols=752,
    ...                     k1=-0.28340811, k2=0.07395907, p1=0.00019359, p2=1.76187114e-05)
    >>> model.project([0, 0, 1])
    array([367.215, 248.375])
"""

import numpy as np

from vocam.camera_models.camera_model import CameraModel
from vocam._typing import ARRAY_LIKE, NONENUM, NONEARRAY


class RadTanModel(CameraModel):
    r"""
    This class provides an implementation of the radial-tangential camera model for projecting 3D points onto images.

    The :class:`RadTanModel` class also provides the following properties for easy getting/setting:

    ================================ ===================================================================================
    Property                         Description
    ================================ ===================================================================================
    :attr:`k1`                       :math:`k_1`, the radial distortion coefficient corresponding to :math:`r^2`
    :attr:`k2`                       :math:`k_2`, the radial distortion coefficient corresponding to :math:`r^4`
    :attr:`k3`                       :math:`k_3`, the radial distortion coefficient corresponding to :math:`r^6`
    :attr:`p1`                       :math:`p_1`, the tangential distortion coefficient corresponding to :math:`y_I`
    :attr:`p2`                       :math:`p_2`, the tangential distortion coefficient corresponding to :math:`x_I`
    ================================ ===================================================================================

    .. note:: The properties refer to elements of :attr:`distortion_coefficients`, which is stored in the order
              ``[k1, k2, p1, p2, k3]``.
    """

    DIM = 9

    distortion_labels = ['k1', 'k2', 'p1', 'p2', 'k3']

    def __init__(self, fx: float = 1.0, fy: float = 1.0, cx: float = 0.0, cy: float = 0.0,
                 distortion_coefficients: NONEARRAY = None, intrinsic_matrix: NONEARRAY = None,
                 k1: NONENUM = None, k2: NONENUM = None, p1: NONENUM = None, p2: NONENUM = None, k3: NONENUM = None,
                 n_rows: int = 1, n_cols: int = 1):
        """
        :param fx: The focal length divided by the pixel pitch along the x axis in units of pixels
        :param fy: The focal length divided by the pixel pitch along the y axis in units of pixels
        :param cx: the x component of the pixel location of the principal point in the image in units of pixels
        :param cy: the y component of the pixel location of the principal point in the image in units of pixels
        :param distortion_coefficients: A length 5 array ``[k1, k2, p1, p2, k3]``.  Note that this array is
                                        overwritten with any distortion coefficients that are specified independently.
        :param intrinsic_matrix: the intrinsic matrix for the camera as a numpy shape (2, 3) array
        :param k1: the radial distortion coefficient corresponding to the r**2 term
        :param k2: the radial distortion coefficient corresponding to the r**4 term
        :param p1: the tangential distortion coefficient corresponding to the y term
        :param p2: the tangential distortion coefficient corresponding to the x term
        :param k3: the radial distortion coefficient corresponding to the r**6 term
        :param n_rows: the number of rows of the active image array
        :param n_cols: the number of columns in the active image array
        """

        super().__init__(fx=fx, fy=fy, cx=cx, cy=cy, distortion_coefficients=distortion_coefficients,
                         intrinsic_matrix=intrinsic_matrix, n_rows=n_rows, n_cols=n_cols)

        if k1 is not None:
            self.k1 = k1
        if k2 is not None:
            self.k2 = k2
        if p1 is not None:
            self.p1 = p1
        if p2 is not None:
            self.p2 = p2
        if k3 is not None:
            self.k3 = k3

    def __str__(self):

        template = u"Radial-Tangential Camera Model:\n\n" \
                   u" __  __     __     __    \n" \
                   u"|   x  | _ |  Xc/Zc  |   \n" \
                   u"|   y  | - |  Yc/Zc  |   \n" \
                   u" --  --     --     --    \n" \
                   u"      _________ \n" \
                   u"     /  2   2   \n" \
                   u"r =\\/  x + y    \n" \
                   u" __ __                               __ __     __               2    2 __   \n" \
                   u"|  x' |            2      4      6  |  x  |   |  2p1*x*y + p2*(r + 2x )  |  \n" \
                   u"|     | = (1 + k1*r + k2*r + k3*r ) |     | + |      2    2              |  \n" \
                   u"|  y' |                             |  y  | + |  p1(r + 2y ) + 2p2*x*y   |  \n" \
                   u" -- --                               -- --     --                      --   \n" \
                   u" __ __     __          __  __  __  \n" \
                   u"|  u  | _ |  fx  0   cx  ||  x' | \n" \
                   u"|  v  | - |  0   fy  cy  ||  y' | \n" \
                   u" -- --     --          -- |  1  | \n" \
                   u"                           --  --  \n\n" \
                   u"————————————————————————————————————————————————————————————————————————————\n\n" \
                   u"distortion coefficients:\n" \
                   u"    k1={k1}, k2={k2}, p1={p1}, p2={p2}, k3={k3}\n\n" \
                   u"camera parameters:\n" \
                   u"    fx={fx}, fy={fy}, cx={cx}, cy={cy}\n\n"

        return template.format(fx=self.fx, fy=self.fy, cx=self.cx, cy=self.cy,
                               k1=self.k1, k2=self.k2, p1=self.p1, p2=self.p2, k3=self.k3)

    @property
    def k1(self) -> float:
        """
        The radial distortion coefficient corresponding to the r**2 term

        This corresponds to the [0] index of the distortion_coefficients array
        """
        return float(self.distortion_coefficients[0])

    @k1.setter
    def k1(self, val):
        self.distortion_coefficients[0] = val

    @property
    def k2(self) -> float:
        """
        The radial distortion coefficient corresponding to the r**4 term

        This corresponds to the [1] index of the distortion_coefficients array
        """
        return float(self.distortion_coefficients[1])

    @k2.setter
    def k2(self, val):
        self.distortion_coefficients[1] = val

    @property
    def p1(self) -> float:
        """
        The tangential distortion coefficient corresponding to the y term

        This corresponds to the [2] index of the distortion_coefficients array
        """
        return float(self.distortion_coefficients[2])

    @p1.setter
    def p1(self, val):
        self.distortion_coefficients[2] = val

    @property
    def p2(self) -> float:
        """
        The tangential distortion coefficient corresponding to the x term

        This corresponds to the [3] index of the distortion_coefficients array
        """
        return float(self.distortion_coefficients[3])

    @p2.setter
    def p2(self, val):
        self.distortion_coefficients[3] = val

    @property
    def k3(self) -> float:
        """
        The radial distortion coefficient corresponding to the r**6 term

        This corresponds to the [4] index of the distortion_coefficients array
        """
        return float(self.distortion_coefficients[4])

    @k3.setter
    def k3(self, val):
        self.distortion_coefficients[4] = val

    def apply_distortion(self, pinhole_locations: ARRAY_LIKE) -> np.ndarray:
        r"""
        This method applies the distortion model to the specified pinhole (gnomic) locations in the image frame.

        .. math::
            \mathbf{x}_I' = (1 + k_1r^2+k_2r^4+k_3r^6)\mathbf{x}_I +
            \left[\begin{array}{c} 2p_1x_Iy_I+p_2(r^2+2x_I^2) \\ p_1(r^2+2y_I^2) + 2p_2x_Iy_I \end{array}\right]

        :param pinhole_locations: The unitless image plane location of points to be distorted as a shape (2,) or (2, n)
                                  array.
        :return: The unitless distorted locations of the points on the image plane as a shape (2,) or (2, n) array.
        """

        pinhole_locations = np.asanyarray(pinhole_locations, dtype=np.float64)

        # compute the powers of the radial distance from the optical axis
        radius2 = (pinhole_locations * pinhole_locations).sum(axis=0)
        radius4 = radius2 * radius2
        radius6 = radius2 * radius4

        cols = pinhole_locations[0]
        rows = pinhole_locations[1]

        rows_cols = rows * cols

        radial_distortion = (self.k1 * radius2 + self.k2 * radius4 + self.k3 * radius6) * pinhole_locations

        decentering_distortion = np.stack([self.p1 * 2 * rows_cols + self.p2 * (radius2 + 2 * cols * cols),
                                           self.p1 * (radius2 + 2 * rows * rows) + self.p2 * 2 * rows_cols])

        return pinhole_locations + radial_distortion + decentering_distortion

    def _compute_ddistorted_gnomic_dgnomic(self, gnomic: np.ndarray) -> np.ndarray:
        r"""
        Computes the partial derivative of the distorted gnomic location with respect to a change in the gnomic location

        Mathematically this is given by:

        .. math::
            \frac{\partial\mathbf{x}_I'}{\partial\mathbf{x}_I} = &\left(1 + k_1r^2+k_2r^4+k_3r^6\right)
            \mathbf{I}_{2\times 2} + \left(2k_1+4k_2r^2+6k_3r^4\right)\mathbf{x}_I\mathbf{x}_I^T + \\
            & \left[\begin{array}{cc}2p_1y_I+6p_2x_I & 2p_1x_I+2p_2y_I \\
            2p_1x_I+2p_2y_I & 6p_1y_I+2p_2x_I \end{array}\right]
        """

        gnomic = np.asanyarray(gnomic, dtype=np.float64)

        radius2 = gnomic @ gnomic
        radius4 = radius2 * radius2
        radius6 = radius4 * radius2

        col = gnomic[0]
        row = gnomic[1]

        radial_part = ((1 + self.k1 * radius2 + self.k2 * radius4 + self.k3 * radius6) * np.eye(2) +
                       (2 * self.k1 + 4 * self.k2 * radius2 + 6 * self.k3 * radius4) * np.outer(gnomic, gnomic))

        cross = 2 * self.p1 * col + 2 * self.p2 * row

        decentering_part = np.array([[2 * self.p1 * row + 6 * self.p2 * col, cross],
                                     [cross, 6 * self.p1 * row + 2 * self.p2 * col]])

        return radial_part + decentering_part

    def _compute_ddistorted_gnomic_ddistortion(self, gnomic: np.ndarray) -> np.ndarray:
        r"""
        Computes the partial derivative of the distorted gnomic location with respect to a change in the distortion
        coefficients.

        .. math::
            \frac{\partial\mathbf{x}_I'}{\partial\mathbf{d}} = \left[\begin{array}{ccccc}
            r^2x_I & r^4x_I & 2x_Iy_I & r^2+2x_I^2 & r^6x_I \\
            r^2y_I & r^4y_I & r^2+2y_I^2 & 2x_Iy_I & r^6y_I \end{array}\right]

        where :math:`\mathbf{d}=[k_1, k_2, p_1, p_2, k_3]^T`.
        """

        gnomic = np.asanyarray(gnomic, dtype=np.float64)

        radius2 = gnomic @ gnomic
        radius4 = radius2 * radius2
        radius6 = radius4 * radius2

        col = gnomic[0]
        row = gnomic[1]

        return np.array([[radius2 * col, radius4 * col, 2 * col * row, radius2 + 2 * col * col, radius6 * col],
                         [radius2 * row, radius4 * row, radius2 + 2 * row * row, 2 * col * row, radius6 * row]])
