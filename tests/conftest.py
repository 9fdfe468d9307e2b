import os
import sys

import numpy as np
import pytest

# Allow running tests without installing the package.
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)


@pytest.fixture
def flat_discount():
    """Flat curve df(t) = exp(-r t) whose single state variable is r."""

    def make(r):
        def discount(t, gradient=False):
            df = float(np.exp(-r * t))
            if gradient:
                return df, np.array([-t * df])
            return df

        return discount

    return make
