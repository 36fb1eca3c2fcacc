from imagerec.utils.logger import get_logger


class BaseService:
    """Base service class wiring a per-class structured logger."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)
