import numpy as np
import numpy.typing as npt

POSITIONS = npt.NDArray[np.float64]
INDEX = npt.NDArray[np.int32]
BUFFER = npt.NDArray[np.float32]
MATRIX = npt.NDArray[np.float32]
EULER = tuple[float, float, float]
