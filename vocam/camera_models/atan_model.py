# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


r"""
This module provides a subclass of :class:`.CameraModel` that implements the ATAN (field of view) camera model of
Devernay and Faugeras, commonly used for wide angle cameras in visual odometry.

Theory
------

Given some 3D point (or direction) expressed in the camera frame, :math:`\mathbf{x}_C`, the model is defined as

.. math::
    &\mathbf{x}_I = \frac{1}{z_C}\left[\begin{array}{c} x_C \\ y_C \end{array}\right] \\
    &r = \sqrt{x_I^2 + y_I^2} \\
    &\mathbf{x}_I' = \frac{\text{atan}\left(2r\tan\frac{w}{2}\right)}{wr}\mathbf{x}_I \\
    &\mathbf{x}_P = \left[\begin{array}{ccc} f_x & 0 & c_x \\ 0 & f_y & c_y\end{array}\right]
    \left[\begin{array}{c} \mathbf{x}_I' \\ 1 \end{array}\right]

where :math:`w` is the field of view parameter of the lens in radians.  The state vector is
:math:`[f_x, f_y, c_x, c_y, w]` so :attr:`.ATANModel.DIM` is 5.

Unlike the other distortion models the inverse is available in closed form

.. math::
    r = \frac{\tan(r'w)}{2\tan\frac{w}{2}}

When :math:`w` is 0 the model degenerates to the pinhole model.

Use
___

    >>> from vocam.camera_models import ATANModel
    >>> model = ATANModel(fx=400, fy=400, cx=320, cy=240, w=0.9, n_rows=480, n_cols=640)
    >>> model.unproject(model.project([0.1, 0.2, 1]))
    array([0.1, 0.2])
"""

import numpy as np

from vocam.camera_models.camera_model import CameraModel
from vocam._typing import ARRAY_LIKE, NONENUM, NONEARRAY


_SMALL_VALUE = 1e-12
"""
Radii and field of view parameters below this are treated as 0 and the corresponding limits are used.
"""


class ATANModel(CameraModel):
    """
    This class provides an implementation of the ATAN (field of view) camera model.

    The field of view parameter is available through the :attr:`w` property.
    """

    DIM = 5

    distortion_labels = ['w']

    def __init__(self, fx: float = 1.0, fy: float = 1.0, cx: float = 0.0, cy: float = 0.0,
                 distortion_coefficients: NONEARRAY = None, intrinsic_matrix: NONEARRAY = None,
                 w: NONENUM = None, n_rows: int = 1, n_cols: int = 1):
        """
        :param fx: The focal length divided by the pixel pitch along the x axis in units of pixels
        :param fy: The focal length divided by the pixel pitch along the y axis in units of pixels
        :param cx: the x component of the pixel location of the principal point in the image in units of pixels
        :param cy: the y component of the pixel location of the principal point in the image in units of pixels
        :param distortion_coefficients: A length 1 array ``[w]``
        :param intrinsic_matrix: the intrinsic matrix for the camera as a numpy shape (2, 3) array
        :param w: the field of view parameter in radians
        :param n_rows: the number of rows of the active image array
        :param n_cols: the number of columns in the active image array
        """

        super().__init__(fx=fx, fy=fy, cx=cx, cy=cy, distortion_coefficients=distortion_coefficients,
                         intrinsic_matrix=intrinsic_matrix, n_rows=n_rows, n_cols=n_cols)

        if w is not None:
            self.w = w

    def __str__(self):

        template = u"ATAN Camera Model:\n\n" \
                   u" __  __     __     __    \n" \
                   u"|   x  | _ |  Xc/Zc  |   \n" \
                   u"|   y  | - |  Yc/Zc  |   \n" \
                   u" --  --     --     --    \n" \
                   u"      _________ \n" \
                   u"     /  2   2   \n" \
                   u"r =\\/  x + y    \n\n" \
                   u" __ __                                 __ __  \n" \
                   u"|  x' |   atan(2*r*tan(w/2))           |  x  | \n" \
                   u"|     | = ------------------           |     | \n" \
                   u"|  y' |          w*r                   |  y  | \n" \
                   u" -- --                                 -- --  \n" \
                   u" __ __     __          __  __  __  \n" \
                   u"|  u  | _ |  fx  0   cx  ||  x' | \n" \
                   u"|  v  | - |  0   fy  cy  ||  y' | \n" \
                   u" -- --     --          -- |  1  | \n" \
                   u"                           --  --  \n\n" \
                   u"————————————————————————————————————————————————————————————————————————————\n\n" \
                   u"distortion coefficients:\n" \
                   u"    w={w}\n\n" \
                   u"camera parameters:\n" \
                   u"    fx={fx}, fy={fy}, cx={cx}, cy={cy}\n\n"

        return template.format(fx=self.fx, fy=self.fy, cx=self.cx, cy=self.cy, w=self.w)

    @property
    def w(self) -> float:
        """
        The field of view parameter of the lens in radians

        This corresponds to the [0] index of the distortion_coefficients array
        """
        return float(self.distortion_coefficients[0])

    @w.setter
    def w(self, val):
        self.distortion_coefficients[0] = val

    @property
    def _tan_scale(self) -> float:
        """
        :math:`2\\tan\\frac{w}{2}`
        """
        return 2 * np.tan(self.w / 2)

    def apply_distortion(self, pinhole_locations: ARRAY_LIKE) -> np.ndarray:
        r"""
        This method applies the distortion model to the specified pinhole (gnomic) locations in the image frame.

        .. math::
            \mathbf{x}_I' = \frac{\text{atan}\left(2r\tan\frac{w}{2}\right)}{wr}\mathbf{x}_I

        On the optical axis the scale factor tends to :math:`\frac{2\tan\frac{w}{2}}{w}`.

        :param pinhole_locations: The unitless image plane location of points to be distorted as a shape (2,) or (2, n)
                                  array.
        :return: The unitless distorted locations of the points on the image plane as a shape (2,) or (2, n) array.
        """

        pinhole_locations = np.asanyarray(pinhole_locations, dtype=np.float64)

        if abs(self.w) < _SMALL_VALUE:
            return pinhole_locations.copy()

        tan_scale = self._tan_scale

        radius = np.sqrt((pinhole_locations * pinhole_locations).sum(axis=0))

        on_axis = radius < _SMALL_VALUE
        safe_radius = np.where(on_axis, 1.0, radius)

        scale = np.where(on_axis, tan_scale / self.w, np.arctan(tan_scale * radius) / (self.w * safe_radius))

        return scale * pinhole_locations

    def remove_distortion(self, distorted_gnomic: np.ndarray) -> np.ndarray:
        r"""
        Removes the distortion in closed form

        .. math::
            \mathbf{x}_I = \frac{\tan(r'w)}{2r'\tan\frac{w}{2}}\mathbf{x}_I'

        where :math:`r'` is the radial distance of the distorted location.

        :param distorted_gnomic: The distorted gnomic locations as a shape (2,) or (2, n) array
        :return: The undistorted gnomic locations
        """

        distorted_gnomic = np.asanyarray(distorted_gnomic, dtype=np.float64)

        if abs(self.w) < _SMALL_VALUE:
            return distorted_gnomic.copy()

        tan_scale = self._tan_scale

        distorted_radius = np.sqrt((distorted_gnomic * distorted_gnomic).sum(axis=0))

        on_axis = distorted_radius < _SMALL_VALUE
        safe_radius = np.where(on_axis, 1.0, distorted_radius)

        scale = np.where(on_axis, self.w / tan_scale, np.tan(distorted_radius * self.w) / (tan_scale * safe_radius))

        return scale * distorted_gnomic

    def _compute_ddistorted_gnomic_dgnomic(self, gnomic: np.ndarray) -> np.ndarray:
        r"""
        Computes the partial derivative of the distorted gnomic location with respect to a change in the gnomic location

        With :math:`s=2\tan\frac{w}{2}` and :math:`f(r) = \frac{\text{atan}(sr)}{w}` this is

        .. math::
            \frac{\partial\mathbf{x}_I'}{\partial\mathbf{x}_I} = \frac{f}{r}\mathbf{I}_{2\times 2} +
            \frac{f'r - f}{r^3}\mathbf{x}_I\mathbf{x}_I^T, \qquad f'(r) = \frac{s}{w(1+s^2r^2)}
        """

        gnomic = np.asanyarray(gnomic, dtype=np.float64)

        if abs(self.w) < _SMALL_VALUE:
            return np.eye(2)

        tan_scale = self._tan_scale

        radius2 = gnomic @ gnomic
        radius = np.sqrt(radius2)

        if radius < _SMALL_VALUE:
            return tan_scale / self.w * np.eye(2)

        distorted_radius = np.arctan(tan_scale * radius) / self.w

        ddistorted_radius_dradius = tan_scale / (self.w * (1 + tan_scale * tan_scale * radius2))

        return (distorted_radius / radius * np.eye(2) +
                (ddistorted_radius_dradius * radius - distorted_radius) / (radius2 * radius) *
                np.outer(gnomic, gnomic))

    def _compute_ddistorted_gnomic_ddistortion(self, gnomic: np.ndarray) -> np.ndarray:
        r"""
        Computes the partial derivative of the distorted gnomic location with respect to a change in :math:`w`.

        With :math:`s=2\tan\frac{w}{2}` and :math:`\frac{\partial s}{\partial w} = 1 + \frac{s^2}{4}`

        .. math::
            \frac{\partial\mathbf{x}_I'}{\partial w} = \left(\frac{\partial s/\partial w}{w(1+s^2r^2)} -
            \frac{\text{atan}(sr)}{w^2r}\right)\mathbf{x}_I

        which tends to 0 as :math:`w` tends to 0.
        """

        gnomic = np.asanyarray(gnomic, dtype=np.float64)

        if abs(self.w) < _SMALL_VALUE:
            return np.zeros((2, 1))

        tan_scale = self._tan_scale
        dtan_scale_dw = 1 + tan_scale * tan_scale / 4

        radius2 = gnomic @ gnomic
        radius = np.sqrt(radius2)

        if radius < _SMALL_VALUE:
            atan_over_radius = tan_scale
        else:
            atan_over_radius = np.arctan(tan_scale * radius) / radius

        factor = dtan_scale_dw / (self.w * (1 + tan_scale * tan_scale * radius2)) - atan_over_radius / self.w ** 2

        return (factor * gnomic).reshape(2, 1)
