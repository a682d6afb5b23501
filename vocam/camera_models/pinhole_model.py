# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


r"""
This module provides a subclass of :class:`.CameraModel` that implements the distortion free Pinhole camera model.

Theory
------

Given some 3D point (or direction) expressed in the camera frame, :math:`\mathbf{x}_C`, the pinhole model is defined as

.. math::
    &\mathbf{x}_I = \frac{1}{z_C}\left[\begin{array}{c} x_C \\ y_C \end{array}\right] \\
    &\mathbf{x}_P = \left[\begin{array}{ccc} f_x & 0 & c_x \\ 0 & f_y & c_y\end{array}\right]
    \left[\begin{array}{c} \mathbf{x}_I \\ 1 \end{array}\right]

The state vector of the model is :math:`[f_x, f_y, c_x, c_y]` so :attr:`.PinholeModel.DIM` is 4.

Use
___

    >>> from vocam.camera_models import PinholeModel
    >>> model = PinholeModel(fx=500, fy=500, cx=320, cy=240, n_rows=480, n_cols=640)
    >>> model.project([0.1, -0.2, 1])
    array([370., 140.])
    >>> model.unproject([370, 140])
    array([ 0.1, -0.2])
"""

import numpy as np

from vocam.camera_models.camera_model import CameraModel
from vocam._typing import ARRAY_LIKE


class PinholeModel(CameraModel):
    """
    This class provides an implementation of the pinhole camera model for projecting 3d points onto images.

    Since there is no distortion, :meth:`apply_distortion` and :meth:`remove_distortion` are both the identity and the
    unprojection is exact.
    """

    DIM = 4

    distortion_labels = []

    def __str__(self):
        template = u"Pinhole Camera Model:\n\n" \
                   u" __  __     __     __    \n" \
                   u"|   x  | _ |  Xc/Zc  |   \n" \
                   u"|   y  | - |  Yc/Zc  |   \n" \
                   u" --  --     --     --    \n" \
                   u" __ __     __          __  __ __  \n" \
                   u"|  u  | _ |  fx  0   cx  ||  x  | \n" \
                   u"|  v  | - |  0   fy  cy  ||  y  | \n" \
                   u" -- --     --          -- |  1  | \n" \
                   u"                           -- --  \n\n" \
                   u"—————————————————————————————————————————\n\n" \
                   u"camera parameters:\n" \
                   u"    fx={0}, fy={1}, cx={2}, cy={3}\n\n"

        return template.format(self.fx, self.fy, self.cx, self.cy)

    def apply_distortion(self, pinhole_locations: ARRAY_LIKE) -> np.ndarray:
        """
        The pinhole model has no distortion so this returns a copy of the input.

        :param pinhole_locations: The unitless image plane location of points as a shape (2,) or (2, n) array.
        :return: a copy of the input
        """

        return np.array(pinhole_locations, dtype=np.float64)

    def remove_distortion(self, distorted_gnomic: np.ndarray) -> np.ndarray:

        return np.array(distorted_gnomic, dtype=np.float64)

    def _compute_ddistorted_gnomic_dgnomic(self, gnomic: np.ndarray) -> np.ndarray:

        return np.eye(2)

    def _compute_ddistorted_gnomic_ddistortion(self, gnomic: np.ndarray) -> np.ndarray:

        return np.zeros((2, 0))
