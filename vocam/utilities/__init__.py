# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This package provides general utilities used throughout vocam.
"""

from vocam.utilities.options import UserOptions

__all__ = ['UserOptions']
