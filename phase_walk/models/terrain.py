from abc import ABC, abstractmethod


class HeightMap(ABC):
    """
    Terrain height at a horizontal position.
    get_height may be called with floats or casadi MX, implementations have to support both.
    """

    @abstractmethod
    def get_height(self, x, y):
        pass


class FlatGround(HeightMap):

    def __init__(self, height: float = 0.0):
        self.height = height

    def get_height(self, x, y):
        return self.height
