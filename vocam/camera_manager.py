# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


r"""
This module provides the :class:`CameraManager`, the single object that client code uses to project and unproject
points regardless of which camera model was chosen at configuration time.

Description
-----------

Visual odometry, calibration, and bundle adjustment code wants to be written once against "the camera" while the lens
model (pinhole, radial-tangential, equidistant, or ATAN) is chosen by configuration.  The :class:`CameraManager`
holds exactly one active :class:`.CameraModel` (or the :attr:`CameraModelType.UNSET` sentinel when the configured model
name was not recognized) and forwards :meth:`~CameraManager.project`, :meth:`~CameraManager.unproject`,
:meth:`~CameraManager.update_state`, and :meth:`~CameraManager.print_model` to it.

In addition, the manager keeps a read optimized copy of the four intrinsics every model shares, :math:`f_x, f_y, c_x,
c_y`, along with the derived focal length

.. math::
    f = \sqrt{\frac{f_x^2 + f_y^2}{2}}

This copy is refreshed from the active model every time :meth:`~CameraManager.update_state` changes the model
parameters.

Use
---

A process normally creates a single manager from its configuration and retrieves it wherever it is needed::

    >>> from vocam import camera_manager
    >>> camera_manager.create({'model': 'pinhole', 'rows': 480, 'cols': 640,
    ...                        'fx': 500, 'fy': 500, 'cx': 320, 'cy': 240})
    >>> manager = camera_manager.instance()
    >>> manager.dim
    4
    >>> manager.update_state([1, 1, 0, 0])
    >>> manager.focal_length
    501.0

A :class:`CameraManager` can also be constructed directly and handed to the code that needs it when a process wide
instance is not wanted.  The manager does no internal locking; if it is shared between threads, calls to
:meth:`~CameraManager.update_state` must be serialized against all other calls.
"""

import json

import logging

import math

from dataclasses import dataclass, field

from enum import Enum

from typing import Optional, List, Dict, Type, Tuple

import numpy as np

from vocam.camera_models import CameraModel, PinholeModel, RadTanModel, EquidistantModel, ATANModel
from vocam.camera_models import UnsupportedJacobianError
from vocam.utilities.options import UserOptions
from vocam._typing import ARRAY_LIKE, PATH, CONFIG_MAPPING, WriteableTarget


_LOGGER: logging.Logger = logging.getLogger(__name__)
"""
This is the logging interface for reporting status, results, issues, and other information.
"""


class UnknownCameraModelError(RuntimeError):
    """
    Raised when a camera operation is dispatched while no camera model is active.

    This indicates that the manager was configured with a model name that was not recognized.
    """


class CameraManagerAlreadyCreatedError(RuntimeError):
    """
    Raised when :func:`create` is called more than once in a process.
    """


class CameraManagerNotCreatedError(RuntimeError):
    """
    Raised when :func:`instance` is called before :func:`create`.
    """


class CameraModelType(Enum):
    """
    This enumeration specifies the closed set of camera models the :class:`CameraManager` can select between.
    """

    UNSET = "unset"
    """
    No model is active.  Any dispatched operation raises :class:`UnknownCameraModelError`.
    """

    ATAN = "atan"
    """
    The ATAN (field of view) model, :class:`.ATANModel`
    """

    EQUIDISTANT = "equidistant"
    """
    The equidistant (fisheye) model, :class:`.EquidistantModel`
    """

    RADTAN = "radtan"
    """
    The radial-tangential model, :class:`.RadTanModel`
    """

    PINHOLE = "pinhole"
    """
    The distortion free pinhole model, :class:`.PinholeModel`
    """

    @classmethod
    def from_name(cls, name: str) -> 'CameraModelType':
        """
        Interprets a configured model name, including the accepted aliases, returning :attr:`UNSET` if the name is not
        recognized.

        :param name: the model name from the configuration
        :return: the corresponding model type
        """

        return MODEL_NAMES.get(str(name).strip().lower(), cls.UNSET)

    @property
    def model_class(self) -> Optional[Type[CameraModel]]:
        """
        The :class:`.CameraModel` subclass implementing this model type (``None`` for :attr:`UNSET`)
        """

        return MODEL_CLASSES.get(self)


MODEL_NAMES: Dict[str, CameraModelType] = {
    'atan': CameraModelType.ATAN,
    'fov': CameraModelType.ATAN,
    'equidistant': CameraModelType.EQUIDISTANT,
    'equidist': CameraModelType.EQUIDISTANT,
    'fisheye': CameraModelType.EQUIDISTANT,
    'radtan': CameraModelType.RADTAN,
    'radial_tangential': CameraModelType.RADTAN,
    'pinhole': CameraModelType.PINHOLE,
}
"""
The model names (and aliases) accepted in configuration.
"""

MODEL_CLASSES: Dict[CameraModelType, Type[CameraModel]] = {
    CameraModelType.ATAN: ATANModel,
    CameraModelType.EQUIDISTANT: EquidistantModel,
    CameraModelType.RADTAN: RadTanModel,
    CameraModelType.PINHOLE: PinholeModel,
}
"""
The concrete model class for each model type.
"""


@dataclass
class CameraManagerOptions(UserOptions):
    """
    The configuration record used to build a :class:`CameraManager`.
    """

    model: str = 'pinhole'
    """
    The name of the camera model to use (see :data:`MODEL_NAMES` for the accepted names)
    """

    n_rows: int = 480
    """
    The number of rows in the images
    """

    n_cols: int = 640
    """
    The number of columns in the images
    """

    fx: float = 1.0
    """
    The focal length in units of pixels along the x axis
    """

    fy: float = 1.0
    """
    The focal length in units of pixels along the y axis
    """

    cx: float = 0.0
    """
    The x pixel location of the principal point
    """

    cy: float = 0.0
    """
    The y pixel location of the principal point
    """

    distortion_coefficients: List[float] = field(default_factory=list)
    """
    The distortion coefficients of the model in the order of the model's ``distortion_labels``.

    An empty list means all zeros.
    """

    def override_options(self):
        """
        Normalizes the model name and converts the numeric values to python types
        """

        self.model = str(self.model).strip().lower()
        self.n_rows = int(self.n_rows)
        self.n_cols = int(self.n_cols)
        self.fx = float(self.fx)
        self.fy = float(self.fy)
        self.cx = float(self.cx)
        self.cy = float(self.cy)
        if self.distortion_coefficients is None:
            self.distortion_coefficients = []

        self.distortion_coefficients = [float(coef) for coef in np.ravel(self.distortion_coefficients)]

    @property
    def model_type(self) -> CameraModelType:
        """
        The :class:`CameraModelType` named by :attr:`model`
        """

        return CameraModelType.from_name(self.model)

    @classmethod
    def from_dict(cls, config: CONFIG_MAPPING) -> 'CameraManagerOptions':
        """
        Builds the options from a configuration mapping (for instance a parsed JSON object).

        The recognized keys are ``model``, ``rows`` (or ``n_rows``), ``cols`` (or ``n_cols``), ``fx``, ``fy``, ``cx``,
        ``cy``, and the distortion coefficients, given either as a list under ``distortion_coefficients`` (or ``d``)
        or by name using the model's coefficient names (``k1``, ``p1``, ``w``, ...).  Named coefficients that are not
        given default to 0.

        :param config: The configuration mapping
        :return: The options
        :raises KeyError: if ``model`` is missing from the configuration
        """

        model = config['model']

        options = cls(model=model,
                      n_rows=config.get('rows', config.get('n_rows', cls.n_rows)),
                      n_cols=config.get('cols', config.get('n_cols', cls.n_cols)),
                      fx=config.get('fx', cls.fx),
                      fy=config.get('fy', cls.fy),
                      cx=config.get('cx', cls.cx),
                      cy=config.get('cy', cls.cy))

        if 'distortion_coefficients' in config:
            options.distortion_coefficients = list(config['distortion_coefficients'])

        elif 'd' in config:
            options.distortion_coefficients = list(config['d'])

        else:
            model_class = CameraModelType.from_name(model).model_class

            if model_class is not None and any(label in config for label in model_class.distortion_labels):
                options.distortion_coefficients = [config.get(label, 0.0)
                                                   for label in model_class.distortion_labels]

        options.override_options()

        return options

    @classmethod
    def from_json(cls, file: PATH, key: Optional[str] = None) -> 'CameraManagerOptions':
        """
        Reads the options from a JSON file.

        :param file: The JSON file to read
        :param key: An optional key of the top level JSON object holding the camera configuration (for instance
                    ``'camera_cfg'``).  If ``None`` the top level object is used.
        :return: The options
        """

        with open(file, 'r') as ifile:
            config = json.load(ifile)

        if key is not None:
            config = config[key]

        return cls.from_dict(config)


class CameraManager:
    """
    This class selects a camera model from configuration and forwards the camera operations to it.

    The active model is fixed at construction.  The cached intrinsics (:attr:`fx`, :attr:`fy`, :attr:`cx`,
    :attr:`cy`, :attr:`focal_length`) mirror the active model's state and are refreshed by :meth:`update_state`.

    Managers cannot be copied; use :func:`create`/:func:`instance` to share a single process wide manager, or pass an
    explicitly constructed manager to the code that needs it.
    """

    def __init__(self, options: Optional[CameraManagerOptions] = None):
        """
        :param options: The configuration to build the manager from.  If ``None`` the defaults of
                        :class:`CameraManagerOptions` are used.
        :raises ValueError: if the image size is not positive or the distortion coefficients do not match the model
        """

        if options is None:
            options = CameraManagerOptions()

        options.override_options()

        if options.n_rows <= 0 or options.n_cols <= 0:
            raise ValueError('the image size must be positive, got {}x{}'.format(options.n_rows, options.n_cols))

        self._rows: int = options.n_rows
        self._cols: int = options.n_cols

        self._model_type: CameraModelType = options.model_type

        self._model: Optional[CameraModel] = None

        model_class = self._model_type.model_class

        if model_class is None:
            _LOGGER.error(f'unknown camera model {options.model!r}, camera operations will fail')

        else:
            self._model = model_class(fx=options.fx, fy=options.fy, cx=options.cx, cy=options.cy,
                                      distortion_coefficients=options.distortion_coefficients or None,
                                      n_rows=self._rows, n_cols=self._cols)

            _LOGGER.info(f'created {self._model_type.value} camera model with {model_class.DIM} intrinsic '
                         f'parameters for {self._cols}x{self._rows} images')

        self._dim: int = 0 if self._model is None else self._model.DIM

        self._fx: float = options.fx
        self._fy: float = options.fy
        self._cx: float = options.cx
        self._cy: float = options.cy
        self._focal_length: float = 0.0

        self._refresh_intrinsics()

    def __repr__(self) -> str:

        return ('CameraManager(model_type={}, rows={}, cols={}, fx={}, fy={}, cx={}, cy={}, focal_length={}, '
                'dim={})'.format(self._model_type, self._rows, self._cols, self._fx, self._fy, self._cx, self._cy,
                                 self._focal_length, self._dim))

    def __copy__(self):
        raise TypeError('CameraManager instances cannot be copied')

    def __deepcopy__(self, memo):
        raise TypeError('CameraManager instances cannot be copied')

    @property
    def model_type(self) -> CameraModelType:
        """
        The type of the active camera model
        """
        return self._model_type

    @property
    def model(self) -> Optional[CameraModel]:
        """
        The active camera model, or ``None`` if no model is active.

        Changes to the model made directly through this reference are not reflected in the cached intrinsics; use
        :meth:`update_state` instead.
        """
        return self._model

    @property
    def rows(self) -> int:
        """
        The number of rows in the images
        """
        return self._rows

    @property
    def cols(self) -> int:
        """
        The number of columns in the images
        """
        return self._cols

    @property
    def fx(self) -> float:
        return self._fx

    @property
    def fy(self) -> float:
        return self._fy

    @property
    def cx(self) -> float:
        return self._cx

    @property
    def cy(self) -> float:
        return self._cy

    @property
    def focal_length(self) -> float:
        """
        The focal length in pixels, :math:`\\sqrt{(f_x^2 + f_y^2)/2}`
        """
        return self._focal_length

    @property
    def dim(self) -> int:
        """
        The number of intrinsic parameters of the active model (0 when no model is active)
        """
        return self._dim

    def _refresh_intrinsics(self):
        """
        Copies fx, fy, cx, cy from the active model and recomputes the focal length.
        """

        if self._model is not None:
            self._fx, self._fy, self._cx, self._cy = self._model.intrinsics

        self._focal_length = math.sqrt(0.5 * (self._fx * self._fx + self._fy * self._fy))

    def _active_model(self) -> CameraModel:
        """
        Returns the active camera model.

        :raises UnknownCameraModelError: if no model is active
        """

        if self._model_type is CameraModelType.UNSET or self._model is None:
            _LOGGER.error('unknown camera model')
            raise UnknownCameraModelError('unknown camera model')

        return self._model

    def project(self, points_in_camera_frame: ARRAY_LIKE, return_point_jacobian: bool = False,
                return_intrinsic_jacobian: bool = False) -> np.ndarray | Tuple[np.ndarray, ...]:
        """
        Projects points in the camera frame onto the image using the active model.

        See :meth:`.CameraModel.project` for details on the inputs and outputs.

        :param points_in_camera_frame: a shape (3,), (3, n), (2,), or (2, n) array of points to project
        :param return_point_jacobian: return the Jacobian of the pixel location with respect to the input point
        :param return_intrinsic_jacobian: return the Jacobian of the pixel location with respect to the intrinsics
        :return: The pixel locations, or a tuple of the pixel locations and the requested Jacobians
        :raises UnknownCameraModelError: if no model is active
        """

        return self._active_model().project(points_in_camera_frame,
                                            return_point_jacobian=return_point_jacobian,
                                            return_intrinsic_jacobian=return_intrinsic_jacobian)

    def unproject(self, pixels: ARRAY_LIKE, return_pixel_jacobian: bool = False,
                  return_intrinsic_jacobian: bool = False) -> np.ndarray | Tuple[np.ndarray, np.ndarray]:
        """
        Converts pixels into normalized directions ``(x/z, y/z)`` in the camera frame using the active model.

        See :meth:`.CameraModel.unproject` for details on the inputs and outputs.

        :param pixels: The pixel locations as a shape (2,) or (2, n) array
        :param return_pixel_jacobian: also return the Jacobian of the direction with respect to the pixel location
        :param return_intrinsic_jacobian: not supported by any model
        :return: The normalized directions, or a tuple of the normalized directions and the pixel Jacobian
        :raises UnsupportedJacobianError: if ``return_intrinsic_jacobian`` is ``True``, for any model
        :raises UnknownCameraModelError: if no model is active
        """

        if return_intrinsic_jacobian:
            _LOGGER.error('jacobian w.r.t. camera intrinsics is not implemented for unproject')
            raise UnsupportedJacobianError('the Jacobian of unproject with respect to the camera intrinsics is not '
                                           'implemented')

        return self._active_model().unproject(pixels, return_pixel_jacobian=return_pixel_jacobian)

    def update_state(self, update_vec: ARRAY_LIKE):
        """
        Applies an additive update to the active model's parameters and refreshes the cached intrinsics.

        The first :attr:`.CameraModel.DIM` elements of ``update_vec`` (the active model's own size) are given to
        :meth:`.CameraModel.apply_update`; any further elements are ignored.  Afterwards :attr:`fx`, :attr:`fy`,
        :attr:`cx`, and :attr:`cy` are copied from the model and :attr:`focal_length` is recomputed.

        :param update_vec: The delta update, at least :attr:`dim` long
        :raises UnknownCameraModelError: if no model is active
        :raises ValueError: if ``update_vec`` is shorter than the active model's state vector
        """

        model = self._active_model()

        update_vec = np.asanyarray(update_vec, dtype=np.float64).ravel()

        if update_vec.size < model.DIM:
            raise ValueError('the update vector must have at least {} elements for the {} model, got {}'.format(
                model.DIM, self._model_type.value, update_vec.size))

        model.apply_update(update_vec[:model.DIM])

        self._refresh_intrinsics()

        _LOGGER.debug(f'updated camera intrinsics fx={self._fx}, fy={self._fy}, cx={self._cx}, cy={self._cy}, '
                      f'focal_length={self._focal_length}')

    def print_model(self, out: Optional[WriteableTarget] = None):
        """
        Writes the active model's description to ``out`` (stdout by default).

        :param out: The target to write the description to
        :raises UnknownCameraModelError: if no model is active
        """

        self._active_model().print_model(out)

    @classmethod
    def create(cls, options: CameraManagerOptions | CONFIG_MAPPING) -> 'CameraManager':
        """
        Creates the process wide camera manager.

        This must be called exactly once, before any call to :meth:`instance`.

        :param options: The options or a configuration mapping (see :meth:`CameraManagerOptions.from_dict`)
        :return: The created manager
        :raises CameraManagerAlreadyCreatedError: if the process wide manager already exists
        """

        global _INSTANCE

        if _INSTANCE is not None:
            _LOGGER.error('the camera manager has already been created')
            raise CameraManagerAlreadyCreatedError('the camera manager has already been created')

        if not isinstance(options, CameraManagerOptions):
            options = CameraManagerOptions.from_dict(options)

        _LOGGER.info(f'creating the camera manager from {options.options_dict}')

        _INSTANCE = cls(options)

        return _INSTANCE

    @staticmethod
    def instance() -> 'CameraManager':
        """
        Returns the process wide camera manager without transferring ownership.

        :raises CameraManagerNotCreatedError: if :meth:`create` has not been called
        """

        if _INSTANCE is None:
            raise CameraManagerNotCreatedError('the camera manager has not been created, call create first')

        return _INSTANCE


_INSTANCE: Optional[CameraManager] = None
"""
The process wide camera manager built by :func:`create`.
"""


create = CameraManager.create
"""
Alias of :meth:`CameraManager.create`
"""

instance = CameraManager.instance
"""
Alias of :meth:`CameraManager.instance`
"""
