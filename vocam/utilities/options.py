# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module provides the :class:`UserOptions` abstract dataclass which all configuration records in vocam derive from.
"""

from dataclasses import dataclass, fields

from typing import Dict, Any

from abc import ABCMeta


@dataclass
class UserOptions(metaclass=ABCMeta):
    """
    This is an abstract class used to create a dataclass of user options.

    These options are used to set defaults for parameters set inside the associated class for the options.

    Example:
        :class:`.CameraManagerOptions` contains the configuration for the :class:`.CameraManager` class.

    Custom objects built from this abstract class must follow the naming scheme <callable_name>Options and be given
    to the associated callable when it is built.

    for example:
        >>> @dataclass
        >>> class ExampleOptions(UserOptions):
        >>>     example_var : int = 1234
        >>> ExampleOptions().options_dict
        ...     {'example_var': 1234}
    """

    def override_options(self):
        """
        This method is used for special cases when certain options should be overwritten or normalized before use
        """
        pass

    @property
    def options_dict(self) -> Dict[str, Any]:
        """
        Determine the options input to the dataclass.

        This property method will ignore all internal properties and functions
        """

        self.override_options()
        return {field.name: getattr(self, field.name) for field in fields(self)}
