"""
This package provides classes for creating/using geometric camera models in vocam.

In vocam, a camera model refers to a class that provides a collection of methods for mapping 3D points and directions
expressed in the camera frame to 2D points in an image, for mapping 2D points in an image to directions in the camera
frame, and provides jacobian matrices for those processes.

The modules in this package provide the models that the :class:`.CameraManager` can select between: the
:mod:`.pinhole_model`, the :mod:`.radtan_model`, the :mod:`.equidistant_model`, and the :mod:`.atan_model`.  In
addition, the :mod:`.camera_model` module provides an abstract base class and instructions for constructing your own
camera models.

While all of the classes in this package are defined in the sub-modules discussed above, they are imported into the
package to make access easier; therefore, you can do::

    >>> from vocam.camera_models import RadTanModel, EquidistantModel
"""

from vocam.camera_models.camera_model import CameraModel, UnsupportedJacobianError
from vocam.camera_models.pinhole_model import PinholeModel
from vocam.camera_models.radtan_model import RadTanModel
from vocam.camera_models.equidistant_model import EquidistantModel
from vocam.camera_models.atan_model import ATANModel

__all__ = ['CameraModel', 'UnsupportedJacobianError', 'PinholeModel', 'RadTanModel', 'EquidistantModel',
           'ATANModel']
