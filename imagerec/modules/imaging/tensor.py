from dataclasses import dataclass

import numpy as np

CHANNELS = 3


@dataclass(frozen=True)
class Tensor:
    """A batch of flattened HWC float32 images, shape ``(batch, H*W*C)``."""

    data: np.ndarray
    height: int
    width: int
    channels: int = CHANNELS

    def __post_init__(self):
        if self.data.ndim != 2:
            raise ValueError(f"tensor data must be 2-D, got {self.data.ndim}-D")
        expected = self.height * self.width * self.channels
        if self.data.shape[1] != expected:
            raise ValueError(
                f"tensor row length {self.data.shape[1]} does not match "
                f"{self.height}x{self.width}x{self.channels}"
            )

    @property
    def batch_size(self) -> int:
        return int(self.data.shape[0])

    @property
    def shape(self) -> list[int]:
        return [self.batch_size, self.height, self.width, self.channels]

    def hwc(self) -> np.ndarray:
        return self.data.reshape(self.batch_size, self.height, self.width, self.channels)

    def nchw(self) -> np.ndarray:
        return np.ascontiguousarray(self.hwc().transpose(0, 3, 1, 2))

    def row(self, index: int = 0) -> np.ndarray:
        return self.data[index]
