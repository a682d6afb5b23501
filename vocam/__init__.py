# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
vocam provides the camera models used by visual odometry code and the :class:`.CameraManager` that selects between
them at run time.

The most commonly used objects are imported here::

    >>> from vocam import CameraManager, CameraManagerOptions
    >>> manager = CameraManager(CameraManagerOptions(model='radtan', fx=500, fy=500, cx=320, cy=240))
"""

from vocam.camera_manager import (CameraManager, CameraManagerOptions, CameraModelType, UnknownCameraModelError,
                                  CameraManagerAlreadyCreatedError, CameraManagerNotCreatedError, create, instance)
from vocam.camera_models import (CameraModel, UnsupportedJacobianError, PinholeModel, RadTanModel, EquidistantModel,
                                 ATANModel)

__all__ = ['CameraManager', 'CameraManagerOptions', 'CameraModelType', 'UnknownCameraModelError',
           'CameraManagerAlreadyCreatedError', 'CameraManagerNotCreatedError', 'create', 'instance',
           'CameraModel', 'UnsupportedJacobianError', 'PinholeModel', 'RadTanModel', 'EquidistantModel', 'ATANModel']
