import logging
import os
import tempfile
import unittest

from intraday_direction.logging_setup import configure_logging, resolve_level


class TestLoggingSetup(unittest.TestCase):
    def tearDown(self):
        logging.disable(logging.CRITICAL)

    def test_configure_logging_file_only_no_console(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = os.path.join(td, "logs", "engine.log")
            configure_logging(level=logging.INFO, log_file=path, console=False)
            root = logging.getLogger()

            console_handlers = [
                h
                for h in root.handlers
                if isinstance(h, logging.StreamHandler)
                and not isinstance(h, logging.FileHandler)
            ]
            self.assertEqual(console_handlers, [])
            self.assertTrue(any(isinstance(h, logging.FileHandler) for h in root.handlers))
            self.assertTrue(os.path.isdir(os.path.join(td, "logs")))
            for h in list(root.handlers):
                h.close()
                root.removeHandler(h)

    def test_never_left_unconfigured(self) -> None:
        configure_logging(console=False)
        self.assertTrue(any(isinstance(h, logging.NullHandler) for h in logging.getLogger().handlers))

    def test_resolve_level_names(self) -> None:
        self.assertEqual(resolve_level("debug"), logging.DEBUG)
        self.assertEqual(resolve_level(logging.WARNING), logging.WARNING)
        with self.assertRaises(ValueError):
            resolve_level("chatty")


if __name__ == "__main__":
    unittest.main()
