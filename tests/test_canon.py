import unittest

from tests.canon_runner import CanonTests  # noqa: F401


if __name__ == "__main__":  # pragma: no cover
    unittest.main(verbosity=2)
