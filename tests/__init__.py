from tests._RandomGenerator import RandomGenerator
from tests.helper import normalized_rmse

__all__ = ["RandomGenerator", "normalized_rmse"]
