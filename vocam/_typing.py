# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


from typing import Union, Protocol, runtime_checkable, Any, Mapping
from pathlib import Path

import numpy as np
import numpy.typing as npt

DOUBLE_ARRAY = npt.NDArray[np.float64]
ARRAY_LIKE = npt.ArrayLike

PATH = Union[Path, str]

NONENUM = Union[float, None]
NONEARRAY = Union[npt.NDArray, None]

CONFIG_MAPPING = Mapping[str, Any]


@runtime_checkable
class WriteableTarget(Protocol):

    def write(self, s: Any, /) -> int: ...
